"""
输出文件写入器

- EnvExampleWriter: .env.example（必需/可选分组，注释中给出备注和位置）
- JsonSchemaWriter: JSON Schema (draft-07)
- MarkdownWriter: Markdown 文档（总表 + 每个变量的详情）
"""

import json
import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Union

from envaudit.core.errors import ConfigurationError, FileSystemError
from envaudit.core.models import FileRef, Finding, ScanResult

logger = logging.getLogger(__name__)

# 每个变量在注释中列出的位置数量上限
MAX_LISTED_LOCATIONS = 3

SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"


def _needs_quotes(value: str) -> bool:
    return any(ch in value for ch in (" ", "#", "\t", '"', "'")) or value != value.strip()


def format_env_value(value: Optional[str]) -> str:
    """.env 中的值，包含空白或 # 时加双引号"""
    if not value:
        return ""
    if _needs_quotes(value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


class BaseWriter:
    """写入器基类：子类实现 generate"""

    filename = ""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root).resolve() if root else None

    def location(self, ref: FileRef) -> str:
        path = ref.file_path
        if self.root is not None:
            try:
                path = Path(ref.file_path).relative_to(self.root).as_posix()
            except ValueError:
                pass
        return f"{path}:{ref.line}"

    def generate(self, result: ScanResult) -> str:
        raise NotImplementedError

    def write(self, result: ScanResult, path: Union[str, Path]) -> Path:
        """生成内容并写入 path，必要时创建父目录"""
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(self.generate(result), encoding="utf-8")
        except OSError as e:
            raise FileSystemError(f"Failed to write {target}: {e}", "write", str(target)) from e
        logger.debug(f"Wrote {target}")
        return target


class EnvExampleWriter(BaseWriter):
    """生成 .env.example"""

    filename = ".env.example"

    def _entry(self, finding: Finding) -> list[str]:
        lines = [f"# {note}" for note in finding.notes]
        if finding.is_public:
            lines.append("# Public: exposed to client-side code")
        locations = [self.location(ref) for ref in finding.files[:MAX_LISTED_LOCATIONS]]
        extra = len(finding.files) - len(locations)
        used_in = ", ".join(locations) + (f" (+{extra} more)" if extra > 0 else "")
        lines.append(f"# Used in: {used_in}")
        lines.append(f"{finding.name}={format_env_value(finding.default_value)}")
        return lines

    def generate(self, result: ScanResult) -> str:
        required = [f for f in result.findings if f.required]
        optional = [f for f in result.findings if not f.required]

        lines = [
            "# Environment variables",
            f"# Generated by envaudit on {result.scanned_at}",
            "",
        ]
        for title, group in (("Required", required), ("Optional", optional)):
            if not group:
                continue
            lines.append(f"# ---- {title} ----")
            lines.append("")
            for finding in group:
                lines.extend(self._entry(finding))
                lines.append("")
        return "\n".join(lines).rstrip("\n") + "\n"


class JsonSchemaWriter(BaseWriter):
    """生成 JSON Schema"""

    filename = "schema.json"

    def to_schema(self, result: ScanResult) -> dict:
        properties: dict[str, dict] = {}
        for finding in result.findings:
            prop: dict = {
                "type": "string",
                "description": "; ".join(finding.notes)
                or f"Referenced in {len(finding.files)} location(s)",
                "x-public": finding.is_public,
                "x-source": finding.source.value,
            }
            if finding.default_value is not None:
                prop["default"] = finding.default_value
            properties[finding.name] = prop

        return {
            "$schema": SCHEMA_DRAFT,
            "title": "Environment variables",
            "type": "object",
            "properties": properties,
            "required": [f.name for f in result.findings if f.required],
            "additionalProperties": True,
        }

    def generate(self, result: ScanResult) -> str:
        return json.dumps(self.to_schema(result), indent=2, ensure_ascii=False) + "\n"


def _md_escape(value: str) -> str:
    return value.replace("|", "\\|")


class MarkdownWriter(BaseWriter):
    """生成 Markdown 文档"""

    filename = "README.md"

    def generate(self, result: ScanResult) -> str:
        findings = result.findings
        required = sum(1 for f in findings if f.required)
        lines = [
            "# Environment Variables",
            "",
            f"{len(findings)} variables found ({required} required) "
            f"in {result.stats.total_files} files.",
            "",
        ]
        if not findings:
            return "\n".join(lines)

        lines.extend([
            "| Variable | Required | Public | Default | Source |",
            "|----------|----------|--------|---------|--------|",
        ])
        for f in findings:
            default = f"`{_md_escape(f.default_value)}`" if f.default_value else ""
            lines.append(
                f"| `{f.name}` | {'Yes' if f.required else 'No'} | "
                f"{'Yes' if f.is_public else 'No'} | {default} | {f.source.value} |"
            )
        lines.append("")

        for f in findings:
            lines.append(f"## {f.name}")
            lines.append("")
            for note in f.notes:
                lines.append(f"> {note}")
                lines.append("")
            lines.append(f"- **Required:** {'yes' if f.required else 'no'}")
            lines.append(f"- **Public:** {'yes' if f.is_public else 'no'}")
            if f.default_value:
                lines.append(f"- **Default:** `{f.default_value}`")
            lines.append("- **Locations:**")
            for ref in f.files:
                suffix = f" ({ref.context})" if ref.context else ""
                lines.append(f"  - `{self.location(ref)}`{suffix}")
            lines.append("")

        return "\n".join(lines)


WRITERS_BY_FORMAT: dict[str, type[BaseWriter]] = {
    "env": EnvExampleWriter,
    "json": JsonSchemaWriter,
    "md": MarkdownWriter,
}


def writers_for_formats(
    formats: Iterable[str],
    root: Optional[Union[str, Path]] = None,
) -> list[BaseWriter]:
    """
    按格式名创建写入器（"all" 展开为全部格式），重复项只保留一次

    Raises:
        ConfigurationError: 未知格式
    """
    names: list[str] = []
    for fmt in formats:
        if fmt == "all":
            names.extend(WRITERS_BY_FORMAT)
        elif fmt in WRITERS_BY_FORMAT:
            names.append(fmt)
        else:
            raise ConfigurationError(f"Unknown output format: {fmt}", "format")
    return [WRITERS_BY_FORMAT[name](root) for name in dict.fromkeys(names)]


def write_outputs(
    result: ScanResult,
    output_dir: Union[str, Path],
    formats: Iterable[str],
    root: Optional[Union[str, Path]] = None,
) -> list[Path]:
    """把选定格式写入 output_dir，返回写入的文件路径"""
    output_dir = Path(output_dir)
    written = []
    for writer in writers_for_formats(formats, root):
        written.append(writer.write(result, os.path.join(output_dir, writer.filename)))
    return written
