"""
Reporters Layer - 报告层

包含 Rich 终端报告器、JSON 报告器和输出文件写入器。
"""

from envaudit.reporters.base import Reporter, Writer
from envaudit.reporters.json_reporter import JsonReporter
from envaudit.reporters.rich_reporter import RichReporter
from envaudit.reporters.writers import (
    EnvExampleWriter,
    JsonSchemaWriter,
    MarkdownWriter,
    writers_for_formats,
)

__all__ = [
    "Reporter",
    "Writer",
    "RichReporter",
    "JsonReporter",
    "EnvExampleWriter",
    "JsonSchemaWriter",
    "MarkdownWriter",
    "writers_for_formats",
]
