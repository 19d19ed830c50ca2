"""
DotEnv 文件解析

解析 .env / .env.example 等声明文件：
- KEY=value、export KEY=value
- 引号包裹的值（去掉一层引号）
- 行尾注释（引号外的 #）作为备注
- 空值或占位符视为“没有真实默认值”，变量为必需
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from envaudit.core.models import DEFAULT_MAX_FILE_SIZE, FileRef, Finding, ScanOptions, Source
from envaudit.core.utils import (
    is_public_variable,
    is_valid_env_var_name,
    read_file_safe,
    strip_matching_quotes,
)
from envaudit.providers.base import Provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DotEnvEntry:
    """dotenv 文件条目"""
    name: str
    value: Optional[str] = None
    comment: Optional[str] = None
    line_number: int = 0
    file_path: str = ""

    @property
    def has_value(self) -> bool:
        return self.value is not None


# .env 文件名模式
DOTENV_FILE_PATTERNS = [
    re.compile(r'^\.env$'),
    re.compile(r'^\.env\..+$'),
    re.compile(r'^env$'),
    re.compile(r'^environment$'),
    re.compile(r'^.+\.env$'),
]

# 表示“没有真实值”的占位符（大小写不敏感）
PLACEHOLDER_VALUES = frozenset({
    "YOUR_VALUE_HERE",
    "CHANGE_ME",
    "REPLACE_ME",
    "TODO",
    "TBD",
    "...",
    "XXX",
})

LINE_PATTERN = re.compile(r'^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$')


def split_inline_comment(line: str) -> tuple[str, Optional[str]]:
    """
    拆分行尾注释

    只有当 # 之前的单引号和双引号数量都为偶数时，才认为它是注释起点。
    """
    for index, char in enumerate(line):
        if char != '#' or index == 0:
            continue
        before = line[:index]
        if before.count("'") % 2 == 0 and before.count('"') % 2 == 0:
            return before.strip(), line[index + 1:].strip()
    return line, None


def parse_value(raw: str) -> Optional[str]:
    """解析值，空值和占位符返回 None"""
    value = strip_matching_quotes(raw.strip())
    if not value or value.upper() in PLACEHOLDER_VALUES:
        return None
    return value


def parse_dotenv_line(line: str, line_number: int = 0, file_path: str = "") -> Optional[DotEnvEntry]:
    """解析单行，无法识别的行返回 None"""
    stripped = line.strip()
    if not stripped or stripped.startswith('#'):
        return None

    working, comment = split_inline_comment(stripped)
    match = LINE_PATTERN.match(working)
    if not match:
        return None

    name = match.group(1)
    if not is_valid_env_var_name(name):
        return None

    return DotEnvEntry(
        name=name,
        value=parse_value(match.group(2)),
        comment=comment or None,
        line_number=line_number,
        file_path=file_path,
    )


def parse_dotenv_content(content: str, file_path: str = "") -> list[DotEnvEntry]:
    """解析 .env 文件内容字符串"""
    entries: list[DotEnvEntry] = []
    for line_num, line in enumerate(content.splitlines(), 1):
        entry = parse_dotenv_line(line, line_num, file_path)
        if entry:
            entries.append(entry)
    return entries


def parse_dotenv_file(file_path: Path, max_size: int = DEFAULT_MAX_FILE_SIZE) -> list[DotEnvEntry]:
    """解析 .env 文件"""
    content = read_file_safe(file_path, max_size)
    if content is None:
        logger.warning(f"Failed to read {file_path}")
        return []
    return parse_dotenv_content(content, str(file_path))


def is_dotenv_file(file_path: str) -> bool:
    """是否为 dotenv 风格文件"""
    file_name = Path(file_path).name
    return any(pattern.match(file_name) for pattern in DOTENV_FILE_PATTERNS)


class DotenvProvider(Provider):
    """Provider for .env declaration files."""

    name = "dotenv"
    source = Source.DOTENV
    extensions = (".env",)

    def handles(self, file_path: str) -> bool:
        return is_dotenv_file(file_path)

    def scan_content(self, content: str, file_path: str, options: ScanOptions) -> list[Finding]:
        findings: list[Finding] = []
        for entry in parse_dotenv_content(content, file_path):
            findings.append(Finding(
                name=entry.name,
                source=self.source,
                files=(FileRef(file_path, entry.line_number, 1, context=entry.comment),),
                required=not entry.has_value,
                default_value=entry.value,
                is_public=is_public_variable(entry.name, options.public_prefixes),
                notes=(entry.comment,) if entry.comment else (),
            ))
        return findings
