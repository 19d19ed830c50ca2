"""
通用工具函数
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from envaudit.core.models import ENV_VAR_NAME_PATTERN

logger = logging.getLogger(__name__)

# 二进制检测时读取的字节数
BINARY_SNIFF_SIZE = 8192


def is_valid_env_var_name(name: Optional[str]) -> bool:
    """变量名是否符合 ^[A-Za-z_][A-Za-z0-9_]*$"""
    if not name or not isinstance(name, str):
        return False
    return ENV_VAR_NAME_PATTERN.match(name) is not None


def is_public_variable(name: str, prefixes: Iterable[str]) -> bool:
    """按前缀判断是否为公开变量（区分大小写）"""
    if not name:
        return False
    return any(name.startswith(prefix) for prefix in prefixes if prefix)


def strip_matching_quotes(value: str) -> str:
    """去掉一层成对的单引号或双引号"""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def read_file_safe(path: Union[str, Path], max_size: int) -> Optional[str]:
    """
    读取文本文件

    超过大小上限、不可读或二进制文件返回 None，不抛出异常。
    """
    file_path = Path(path)
    try:
        if file_path.stat().st_size > max_size:
            logger.debug(f"Skipping {file_path}: larger than {max_size} bytes")
            return None
        data = file_path.read_bytes()
    except OSError as e:
        logger.debug(f"Failed to read {file_path}: {e}")
        return None
    if b"\x00" in data[:BINARY_SNIFF_SIZE]:
        logger.debug(f"Skipping binary file {file_path}")
        return None
    return data.decode("utf-8", errors="replace")
