"""
报告器基类 - 定义报告器和输出文件写入器接口
"""

from pathlib import Path
from typing import Protocol, Union

from envaudit.core.models import ScanResult


class Reporter(Protocol):
    """报告器协议"""

    def report(self, result: ScanResult, target: str) -> None:
        """生成报告"""
        ...


class Writer(Protocol):
    """输出文件写入器协议"""

    filename: str

    def generate(self, result: ScanResult) -> str:
        """生成文件内容"""
        ...

    def write(self, result: ScanResult, path: Union[str, Path]) -> Path:
        """写入文件，返回写入路径"""
        ...
