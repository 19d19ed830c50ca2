"""
Providers - 各种文件格式的环境变量提取器
"""

from envaudit.providers.base import (
    Provider,
    ProviderOutput,
    ProviderRegistry,
    default_registry,
)

__all__ = [
    "Provider",
    "ProviderOutput",
    "ProviderRegistry",
    "default_registry",
]
