"""
JavaScript / TypeScript 环境变量提取

使用 tree-sitter 解析源码，支持：
- 直接引用: process.env.KEY、import.meta.env.KEY、process.env?.KEY
- 下标引用: process.env["KEY"]、import.meta.env[`KEY`]
- 解构: const { KEY, OTHER = "default" } = process.env
- 守卫识别: KEY || "x"、KEY ?? "x"、三元表达式/if 条件

.vue / .svelte / .astro 只解析 <script> 块（以及 astro 的 frontmatter），
其余内容替换为空格并保留换行，行列号与原文件一致。
"""

import logging
import re
import threading
from pathlib import Path
from typing import Optional

import tree_sitter
import tree_sitter_javascript
import tree_sitter_typescript

from envaudit.core.errors import ParseError
from envaudit.core.models import EnvVarNode, FileRef, Finding, ScanOptions, Source
from envaudit.core.utils import is_public_variable, is_valid_env_var_name
from envaudit.providers.base import Provider

logger = logging.getLogger(__name__)

# 环境对象根 -> 来源标签
ENV_ROOTS: dict[str, Source] = {
    "process.env": Source.PROCESS,
    "import.meta.env": Source.IMPORTMETA,
}

GRAMMARS = {
    "javascript": tree_sitter_javascript.language,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
}

EXTENSION_GRAMMARS = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

TEMPLATE_EXTENSIONS = (".vue", ".svelte", ".astro")

# 守卫检测最多向上看几层
MAX_GUARD_DEPTH = 3

# 条件表达式中可以“穿透”的包裹节点
CONDITION_WRAPPERS = frozenset({
    "parenthesized_expression",
    "unary_expression",
    "binary_expression",
})

FUNCTION_NODE_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "arrow_function",
    "method_definition",
})

SCRIPT_BLOCK_PATTERN = re.compile(
    r'<script\b([^>]*)>(.*?)</script\s*>',
    re.DOTALL | re.IGNORECASE,
)
TS_LANG_PATTERN = re.compile(r'\blang\s*=\s*["\'](?:ts|typescript)["\']', re.IGNORECASE)
ASTRO_FRONTMATTER_PATTERN = re.compile(r'\A\s*---[ \t]*\n(.*?)\n---', re.DOTALL)

# 字符串字面量中的转义序列
ESCAPE_PATTERN = re.compile(r'\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])')

SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

LINE_CONTINUATIONS = frozenset({"\n", "\r", "\r\n", "\u2028", "\u2029"})


# ------------------------------------------------------------
# 解析器缓存（tree-sitter Parser 不是线程安全的，按线程缓存）
# ------------------------------------------------------------

_local = threading.local()


def _get_parser(grammar: str) -> tree_sitter.Parser:
    """获取或创建当前线程的解析器"""
    cache: dict[str, tree_sitter.Parser] = getattr(_local, "parsers", None)
    if cache is None:
        cache = {}
        _local.parsers = cache
    if grammar not in cache:
        lang = tree_sitter.Language(GRAMMARS[grammar]())
        cache[grammar] = tree_sitter.Parser(lang)
    return cache[grammar]


# ------------------------------------------------------------
# 模板文件
# ------------------------------------------------------------

def _blank(text: str) -> str:
    return "".join(ch if ch == "\n" else " " for ch in text)


def extract_template_scripts(content: str, suffix: str) -> tuple[str, str]:
    """
    从模板文件中抽取脚本

    Returns:
        (与原文等长的脚本文本, 语法名)
    """
    spans: list[tuple[int, int]] = []
    grammar = "javascript"

    if suffix == ".astro":
        match = ASTRO_FRONTMATTER_PATTERN.match(content)
        if match:
            spans.append(match.span(1))
            grammar = "typescript"

    for match in SCRIPT_BLOCK_PATTERN.finditer(content):
        spans.append(match.span(2))
        if TS_LANG_PATTERN.search(match.group(1)):
            grammar = "typescript"

    pieces: list[str] = []
    position = 0
    for start, end in sorted(spans):
        pieces.append(_blank(content[position:start]))
        pieces.append(content[start:end])
        position = end
    pieces.append(_blank(content[position:]))
    return "".join(pieces), grammar


# ------------------------------------------------------------
# 节点辅助函数
# ------------------------------------------------------------

def _text(node: Optional[tree_sitter.Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _decode_escape(match: re.Match) -> str:
    escape = match.group(1)
    if escape.startswith("u{"):
        return chr(int(escape[2:-1], 16))
    if escape[0] in "ux" and len(escape) > 1:
        return chr(int(escape[1:], 16))
    if escape in LINE_CONTINUATIONS:
        return ""
    return SIMPLE_ESCAPES.get(escape, escape)


def decode_string_escapes(raw: str) -> str:
    r"""解码字符串字面量中的转义序列（\n、\x41、\u{1F600}、行延续等）"""
    return ESCAPE_PATTERN.sub(_decode_escape, raw)


def string_literal_value(node: Optional[tree_sitter.Node]) -> Optional[str]:
    """字符串字面量（含无插值的模板字符串）解码后的值，其他节点返回 None"""
    if node is None:
        return None
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.children):
            return None
    elif node.type != "string":
        return None
    return decode_string_escapes(_text(node)[1:-1])


def env_root_source(node: Optional[tree_sitter.Node]) -> Optional[Source]:
    """node 是否为 process.env / import.meta.env"""
    if node is None or node.type != "member_expression":
        return None
    return ENV_ROOTS.get(_text(node).replace(" ", ""))


def detect_guard(node: tree_sitter.Node) -> tuple[bool, Optional[str]]:
    """
    检查访问节点是否被守卫

    - 穿过括号后父节点是 || / ?? 且自身在左侧：守卫，右侧为字符串时记为默认值
    - 在 MAX_GUARD_DEPTH 层内作为三元表达式或 if 语句的条件：守卫，无默认值
    """
    operand = node
    for _ in range(MAX_GUARD_DEPTH):
        if operand.parent is None or operand.parent.type != "parenthesized_expression":
            break
        operand = operand.parent

    parent = operand.parent
    if parent is not None and parent.type == "binary_expression":
        operator = parent.child_by_field_name("operator")
        left = parent.child_by_field_name("left")
        if operator is not None and operator.type in ("||", "??") and left == operand:
            return True, string_literal_value(parent.child_by_field_name("right"))

    current = node
    for _ in range(MAX_GUARD_DEPTH):
        parent = current.parent
        if parent is None:
            break
        if parent.type in ("ternary_expression", "if_statement"):
            if parent.child_by_field_name("condition") == current:
                return True, None
            break
        if parent.type not in CONDITION_WRAPPERS:
            break
        current = parent

    return False, None


def _function_name(node: tree_sitter.Node) -> Optional[str]:
    name = node.child_by_field_name("name")
    if name is not None:
        return _text(name)
    parent = node.parent
    # const handler = () => {...}
    if parent is not None and parent.type == "variable_declarator":
        declared = parent.child_by_field_name("name")
        if declared is not None and declared.type == "identifier":
            return _text(declared)
    # { handler: function () {...} }
    if parent is not None and parent.type == "pair":
        return _text(parent.child_by_field_name("key")) or None
    return None


class EnvAccessExtractor:
    """单个文件的环境变量访问提取器"""

    def __init__(self, file_path: str, source_bytes: bytes):
        self.file_path = file_path
        self._lines = source_bytes.split(b"\n")
        self.nodes: list[EnvVarNode] = []

    def extract(self, root: tree_sitter.Node) -> list[EnvVarNode]:
        # 显式栈遍历，避免深层嵌套代码触发递归上限
        stack: list[tuple[tree_sitter.Node, Optional[str]]] = [(root, None)]
        while stack:
            node, context = stack.pop()

            if node.type in FUNCTION_NODE_TYPES:
                name = _function_name(node)
                if name:
                    context = f"Function: {name}"

            if node.type == "member_expression":
                self._handle_member(node, context)
            elif node.type == "subscript_expression":
                self._handle_subscript(node, context)
            elif node.type == "variable_declarator":
                self._handle_declarator(node, context)

            for child in reversed(node.named_children):
                stack.append((child, context))

        return self.nodes

    def _point(self, point: tuple[int, int]) -> tuple[int, int]:
        """tree-sitter 的 (行, 字节列) 转为 1 起始的 (行, 字符列)"""
        row, byte_column = point
        prefix = self._lines[row][:byte_column] if row < len(self._lines) else b""
        return row + 1, len(prefix.decode("utf-8", errors="replace")) + 1

    def _add(
        self,
        name: str,
        source: Source,
        node: tree_sitter.Node,
        has_guards: bool,
        default_value: Optional[str],
        context: Optional[str],
    ) -> None:
        if not is_valid_env_var_name(name):
            logger.debug(f"Ignoring invalid variable name {name!r} in {self.file_path}")
            return
        self.nodes.append(EnvVarNode(
            name=name,
            source=source,
            start=self._point(node.start_point),
            end=self._point(node.end_point),
            has_guards=has_guards,
            default_value=default_value,
            context=context,
        ))

    def _handle_member(self, node: tree_sitter.Node, context: Optional[str]) -> None:
        source = env_root_source(node.child_by_field_name("object"))
        if source is None:
            return
        prop = node.child_by_field_name("property")
        if prop is None or prop.type != "property_identifier":
            return
        has_guards, default = detect_guard(node)
        self._add(_text(prop), source, node, has_guards, default, context)

    def _handle_subscript(self, node: tree_sitter.Node, context: Optional[str]) -> None:
        source = env_root_source(node.child_by_field_name("object"))
        if source is None:
            return
        name = string_literal_value(node.child_by_field_name("index"))
        if name is None:
            # process.env[key] 之类的动态访问无法静态解析
            logger.debug(f"Skipping dynamic environment access in {self.file_path}")
            return
        has_guards, default = detect_guard(node)
        self._add(name, source, node, has_guards, default, context)

    def _handle_declarator(self, node: tree_sitter.Node, context: Optional[str]) -> None:
        source = env_root_source(node.child_by_field_name("value"))
        pattern = node.child_by_field_name("name")
        if source is None or pattern is None or pattern.type != "object_pattern":
            return

        for element in pattern.named_children:
            if element.type == "shorthand_property_identifier_pattern":
                self._add(_text(element), source, element, False, None, context)

            elif element.type == "object_assignment_pattern":
                # { KEY = 'default' }
                left = element.child_by_field_name("left")
                right = element.child_by_field_name("right")
                self._add(_text(left), source, element, True, string_literal_value(right), context)

            elif element.type == "pair_pattern":
                # { KEY: alias } / { KEY: alias = 'default' } / { 'KEY': alias }
                key = element.child_by_field_name("key")
                value = element.child_by_field_name("value")
                name = string_literal_value(key) if key is not None and key.type == "string" else _text(key)
                if value is not None and value.type == "assignment_pattern":
                    default = string_literal_value(value.child_by_field_name("right"))
                    self._add(name, source, element, True, default, context)
                else:
                    self._add(name, source, element, False, None, context)

            # rest_pattern 等其余元素忽略


def nodes_to_findings(nodes: list[EnvVarNode], file_path: str, options: ScanOptions) -> list[Finding]:
    """
    按 (来源, 变量名) 合并文件内的观测

    文件内只有全部访问都未被守卫时才视为必需；默认值取第一个捕获到的。
    """
    grouped: dict[tuple[Source, str], list[EnvVarNode]] = {}
    for node in nodes:
        grouped.setdefault((node.source, node.name), []).append(node)

    findings: list[Finding] = []
    for (source, name), group in grouped.items():
        findings.append(Finding(
            name=name,
            source=source,
            files=tuple(
                FileRef(file_path, node.start[0], node.start[1], context=node.context)
                for node in group
            ),
            required=not any(node.has_guards for node in group),
            default_value=next((node.default_value for node in group if node.default_value), None),
            is_public=is_public_variable(name, options.public_prefixes),
        ))
    return findings


def _first_error_line(root: tree_sitter.Node) -> Optional[int]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(reversed(node.children))
    return None


class AstProvider(Provider):
    """Provider for JavaScript, TypeScript and component template files."""

    name = "ast"
    source = Source.AST
    extensions = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".vue", ".svelte", ".astro")

    def handles(self, file_path: str) -> bool:
        if file_path.lower().endswith(".d.ts"):
            return False
        return super().handles(file_path)

    def scan_content(self, content: str, file_path: str, options: ScanOptions) -> list[Finding]:
        suffix = Path(file_path).suffix.lower()
        if suffix in TEMPLATE_EXTENSIONS:
            content, grammar = extract_template_scripts(content, suffix)
            if not content.strip():
                return []
        else:
            grammar = EXTENSION_GRAMMARS.get(suffix, "javascript")

        source_bytes = content.encode("utf-8")
        tree = _get_parser(grammar).parse(source_bytes)
        if tree.root_node.has_error:
            raise ParseError(
                f"Failed to parse {grammar} source",
                file_path,
                line=_first_error_line(tree.root_node),
            )

        nodes = EnvAccessExtractor(file_path, source_bytes).extract(tree.root_node)
        logger.debug(f"Found {len(nodes)} environment accesses in {file_path}")
        return nodes_to_findings(nodes, file_path, options)
