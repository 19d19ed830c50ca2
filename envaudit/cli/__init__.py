"""
CLI Layer - 命令行接口层
"""

from envaudit.cli.app import app, check, print_findings, scan, version

__all__ = [
    "app",
    "scan",
    "check",
    "print_findings",
    "version",
]
