"""
错误类型定义

- ParseError: 单个文件无法被 Provider 解析（可恢复，跳过该文件）
- FileSystemError: 文件系统错误（扫描根目录不存在等）
- ConfigurationError: 配置文件或选项错误
- ContractError: 编程约定被违反（空合并、未知 Source 等），必须直接抛出
"""

from typing import Any, Optional


class EnvAuditError(Exception):
    """envaudit 错误基类"""

    def __init__(self, message: str, code: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ParseError(EnvAuditError):
    """文件内容无法被解析"""

    def __init__(
        self,
        message: str,
        file_path: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        super().__init__(
            message,
            "PARSE_ERROR",
            {"file_path": file_path, "line": line, "column": column},
        )
        self.file_path = file_path
        self.line = line
        self.column = column


class FileSystemError(EnvAuditError):
    """文件系统操作失败"""

    def __init__(self, message: str, operation: str, path: str):
        super().__init__(message, "FILESYSTEM_ERROR", {"operation": operation, "path": path})
        self.operation = operation
        self.path = path


class ConfigurationError(EnvAuditError):
    """配置错误"""

    def __init__(self, message: str, option: Optional[str] = None):
        super().__init__(message, "CONFIGURATION_ERROR", {"option": option})
        self.option = option


class ContractError(EnvAuditError):
    """编程约定违反，不应被吞掉"""

    def __init__(self, message: str):
        super().__init__(message, "CONTRACT_VIOLATION")
