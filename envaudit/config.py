"""
项目配置文件

从 .env-audit.yaml / .env-audit.yml / .env-audit.json 读取扫描配置。
优先级：命令行参数 > 配置文件 > 默认值。
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from envaudit.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = (".env-audit.yaml", ".env-audit.yml", ".env-audit.json")

OUTPUT_FORMATS = ("env", "json", "md")


@dataclass
class ProjectConfig:
    """配置文件中的设置，未设置的字段为 None"""
    include: Optional[list[str]] = None
    exclude: Optional[list[str]] = None
    max_file_size: Optional[int] = None
    framework: Optional[str] = None
    include_providers: Optional[list[str]] = None
    exclude_providers: Optional[list[str]] = None
    public_prefixes: Optional[list[str]] = None
    output_formats: Optional[list[str]] = None
    output_dir: Optional[str] = None
    path: Optional[str] = field(default=None, compare=False)


def find_config_file(root: Union[str, Path]) -> Optional[Path]:
    """在项目根目录查找配置文件"""
    root = Path(root)
    for name in CONFIG_FILE_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def _string_list(value: Any, option: str) -> Optional[list[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigurationError(f"'{option}' must be a string or a list of strings", option)


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{key}' must be a mapping", key)
    return value


def parse_config(data: Any, path: Optional[str] = None) -> ProjectConfig:
    """
    校验并转换已解析的配置数据

    未知键被忽略；类型错误抛出 ConfigurationError。
    """
    if data is None:
        return ProjectConfig(path=path)
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration root must be a mapping")

    scan = _section(data, "scan")
    output = _section(data, "output")

    max_file_size = scan.get("maxFileSize")
    if max_file_size is not None and (
        isinstance(max_file_size, bool) or not isinstance(max_file_size, int) or max_file_size <= 0
    ):
        raise ConfigurationError("'scan.maxFileSize' must be a positive integer", "scan.maxFileSize")

    framework = scan.get("framework")
    if framework is not None and not isinstance(framework, str):
        raise ConfigurationError("'scan.framework' must be a string", "scan.framework")

    output_formats = _string_list(output.get("formats"), "output.formats")
    if output_formats:
        unknown = [fmt for fmt in output_formats if fmt not in OUTPUT_FORMATS and fmt != "all"]
        if unknown:
            raise ConfigurationError(
                f"Unknown output format(s): {', '.join(unknown)}", "output.formats"
            )

    output_dir = output.get("dir")
    if output_dir is not None and not isinstance(output_dir, str):
        raise ConfigurationError("'output.dir' must be a string", "output.dir")

    return ProjectConfig(
        include=_string_list(scan.get("include"), "scan.include"),
        exclude=_string_list(scan.get("exclude"), "scan.exclude"),
        max_file_size=max_file_size,
        framework=framework,
        include_providers=_string_list(scan.get("includeProviders"), "scan.includeProviders"),
        exclude_providers=_string_list(scan.get("excludeProviders"), "scan.excludeProviders"),
        public_prefixes=_string_list(data.get("publicPrefixes"), "publicPrefixes"),
        output_formats=output_formats,
        output_dir=output_dir,
        path=path,
    )


def load_config(root: Union[str, Path], config_path: Optional[Union[str, Path]] = None) -> ProjectConfig:
    """
    加载项目配置

    Args:
        root: 项目根目录（未指定 config_path 时在此查找）
        config_path: 显式指定的配置文件

    Returns:
        ProjectConfig；没有配置文件时所有字段为 None

    Raises:
        ConfigurationError: 文件不存在（显式指定时）、无法解析或类型错误
    """
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}", "config")
    else:
        path = find_config_file(root)
        if path is None:
            return ProjectConfig()

    try:
        # JSON 是 YAML 的子集，统一用 PyYAML 读取
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config file {path}: {e}", "config") from e

    logger.debug(f"Loaded configuration from {path}")
    return parse_config(data, str(path))
