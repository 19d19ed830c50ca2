"""
Core Layer - 核心层

数据模型、错误类型和合并引擎。扫描编排见 envaudit.core.scanner。
"""

from envaudit.core.errors import (
    ConfigurationError,
    ContractError,
    EnvAuditError,
    FileSystemError,
    ParseError,
)
from envaudit.core.merge import merge_and_deduplicate, merge_findings
from envaudit.core.models import (
    EnvVarNode,
    FileRef,
    Finding,
    ScanOptions,
    ScanResult,
    ScanStats,
    Source,
)

__all__ = [
    "EnvAuditError",
    "ParseError",
    "FileSystemError",
    "ConfigurationError",
    "ContractError",
    "Source",
    "FileRef",
    "Finding",
    "EnvVarNode",
    "ScanOptions",
    "ScanStats",
    "ScanResult",
    "merge_findings",
    "merge_and_deduplicate",
]
