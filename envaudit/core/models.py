"""
数据模型定义

包含扫描器使用的所有不可变数据类。Finding/FileRef 创建后不再修改，
任何“更新”都通过构造新对象完成。
"""

import json
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from envaudit.core.errors import ContractError


ENV_VAR_NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

# 默认公开前缀（会暴露到浏览器端的变量）
DEFAULT_PUBLIC_PREFIXES: tuple[str, ...] = (
    "NEXT_PUBLIC_",
    "VITE_",
    "REACT_APP_",
    "VUE_APP_",
    "NUXT_PUBLIC_",
    "PUBLIC_",
)

# 单文件大小上限 (1MB)
DEFAULT_MAX_FILE_SIZE = 1024 * 1024

# 默认包含模式 (gitwildmatch 语法)
DEFAULT_INCLUDE_PATTERNS: tuple[str, ...] = (
    "*.js",
    "*.jsx",
    "*.ts",
    "*.tsx",
    "*.mjs",
    "*.cjs",
    "*.vue",
    "*.svelte",
    "*.astro",
    "*.yml",
    "*.yaml",
    "*.sh",
    "*.bash",
    "*.zsh",
    "*.fish",
    # shell 启动文件
    "bashrc",
    ".bashrc",
    "bash_profile",
    ".bash_profile",
    "zshrc",
    ".zshrc",
    "zprofile",
    ".zprofile",
    "profile",
    ".profile",
    "bashrc.local",
    "zshrc.local",
    ".env",
    ".env.*",
    "*.env",
    "env",
    "environment",
    "package.json",
)

# 默认排除模式
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "node_modules/",
    ".git/",
    "dist/",
    "build/",
    ".next/",
    ".nuxt/",
    ".svelte-kit/",
    "coverage/",
    "*.d.ts",
)


class Source(str, Enum):
    """观测方式标签：变量是“如何”被发现的"""
    AST = "ast"
    PROCESS = "process"
    IMPORTMETA = "importmeta"
    DOTENV = "dotenv"
    DOCKER = "docker"
    GHA = "gha"
    SHELL = "shell"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class FileRef:
    """
    文件引用

    Attributes:
        file_path: 绝对路径
        line: 行号 (1-based)
        column: 列号 (1-based)
        context: 上下文说明
        hint: 附加提示
    """
    file_path: str
    line: int
    column: int
    context: Optional[str] = None
    hint: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "file_path", os.path.abspath(self.file_path))
        if self.line < 1 or self.column < 1:
            raise ValueError(
                f"FileRef position must be 1-based, got {self.line}:{self.column}"
            )

    @property
    def key(self) -> tuple[str, int, int]:
        """去重标识 (file_path, line, column)"""
        return (self.file_path, self.line, self.column)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "filePath": self.file_path,
            "line": self.line,
            "column": self.column,
        }
        if self.context is not None:
            data["context"] = self.context
        if self.hint is not None:
            data["hint"] = self.hint
        return data


@dataclass(frozen=True)
class Finding:
    """
    环境变量发现记录

    Attributes:
        name: 变量名
        source: 代表性来源标签
        files: 出现位置（非空，按位置去重）
        required: 是否必需
        default_value: 默认值
        is_public: 是否为公开变量
        notes: 备注
    """
    name: str
    source: Source
    files: tuple[FileRef, ...]
    required: bool = True
    default_value: Optional[str] = None
    is_public: bool = False
    notes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", tuple(self.files))
        object.__setattr__(self, "notes", tuple(self.notes))
        if not isinstance(self.source, Source):
            raise ContractError(f"Unknown source {self.source!r} for {self.name!r}")
        if not self.files:
            raise ContractError(f"Finding {self.name!r} has no file references")
        if not isinstance(self.name, str) or not ENV_VAR_NAME_PATTERN.match(self.name):
            raise ContractError(f"Invalid environment variable name: {self.name!r}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "source": self.source.value,
            "files": [ref.to_dict() for ref in self.files],
            "required": self.required,
            "isPublic": self.is_public,
        }
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        if self.notes:
            data["notes"] = list(self.notes)
        return data


@dataclass(frozen=True)
class EnvVarNode:
    """
    AST 中的一次原始观测

    Attributes:
        name: 变量名
        source: process 或 importmeta
        start: 起始位置 (line, column)，均为 1-based
        end: 结束位置 (line, column)
        has_guards: 是否被回退/条件包裹
        default_value: 守卫中提取到的字符串默认值
        context: 上下文（所在函数名）
    """
    name: str
    source: Source
    start: tuple[int, int]
    end: tuple[int, int]
    has_guards: bool = False
    default_value: Optional[str] = None
    context: Optional[str] = None


@dataclass(frozen=True)
class ScanOptions:
    """单次扫描的只读配置"""
    public_prefixes: tuple[str, ...] = DEFAULT_PUBLIC_PREFIXES
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    include_providers: frozenset[str] = frozenset()
    exclude_providers: frozenset[str] = frozenset()
    include: tuple[str, ...] = DEFAULT_INCLUDE_PATTERNS
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    respect_gitignore: bool = True
    follow_symlinks: bool = False
    framework: Optional[str] = None
    workers: int = 4

    def __post_init__(self) -> None:
        object.__setattr__(self, "public_prefixes", tuple(self.public_prefixes))
        object.__setattr__(self, "include", tuple(self.include))
        object.__setattr__(self, "exclude", tuple(self.exclude))
        object.__setattr__(self, "include_providers", frozenset(self.include_providers))
        object.__setattr__(self, "exclude_providers", frozenset(self.exclude_providers))


def empty_source_counts() -> dict[str, int]:
    """每个 Source 计数为 0 的字典"""
    return {source.value: 0 for source in Source}


@dataclass(frozen=True)
class ScanStats:
    """扫描统计"""
    total_files: int = 0
    total_findings: int = 0
    parse_errors: int = 0
    scan_time_ms: int = 0
    counts_by_source: dict[str, int] = field(default_factory=empty_source_counts)
    files_by_provider: dict[str, int] = field(default_factory=dict)
    findings_by_provider: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "totalFindings": self.total_findings,
            "parseErrors": self.parse_errors,
            "scanTimeMs": self.scan_time_ms,
            "countsBySource": dict(self.counts_by_source),
            "filesByProvider": dict(self.files_by_provider),
            "findingsByProvider": dict(self.findings_by_provider),
        }


@dataclass(frozen=True)
class ScanResult:
    """
    扫描结果

    Attributes:
        findings: 按名称排序的合并结果
        stats: 统计信息
        scanned_at: ISO-8601 时间戳 (UTC)
        framework: 检测到的框架标签
    """
    findings: tuple[Finding, ...]
    stats: ScanStats
    scanned_at: str
    framework: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "findings": [finding.to_dict() for finding in self.findings],
            "stats": self.stats.to_dict(),
            "scannedAt": self.scanned_at,
        }
        if self.framework is not None:
            data["framework"] = self.framework
        return data

    def to_json(self) -> str:
        """序列化为 JSON 字符串"""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)
