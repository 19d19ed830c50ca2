"""Tests for project configuration files."""

from __future__ import annotations

import json

import pytest

from envaudit.config import ProjectConfig, find_config_file, load_config, parse_config
from envaudit.core.errors import ConfigurationError


def test_no_config_file(tmp_path) -> None:
    assert find_config_file(tmp_path) is None
    assert load_config(tmp_path) == ProjectConfig()


def test_yaml_config(write_file, tmp_path) -> None:
    write_file(
        ".env-audit.yaml",
        "scan:\n"
        "  include: ['src/**']\n"
        "  exclude: legacy/\n"
        "  maxFileSize: 2048\n"
        "  framework: vite\n"
        "  excludeProviders: [shell]\n"
        "publicPrefixes: [APP_]\n"
        "output:\n"
        "  formats: [env, md]\n"
        "  dir: docs/env\n",
    )

    config = load_config(tmp_path)

    assert config.include == ["src/**"]
    assert config.exclude == ["legacy/"]
    assert config.max_file_size == 2048
    assert config.framework == "vite"
    assert config.include_providers is None
    assert config.exclude_providers == ["shell"]
    assert config.public_prefixes == ["APP_"]
    assert config.output_formats == ["env", "md"]
    assert config.output_dir == "docs/env"
    assert config.path == str(tmp_path / ".env-audit.yaml")


def test_json_config(write_file, tmp_path) -> None:
    write_file(".env-audit.json", json.dumps({"scan": {"framework": "nextjs"}}))
    assert load_config(tmp_path).framework == "nextjs"


def test_explicit_path(write_file, tmp_path) -> None:
    path = write_file("configs/audit.yml", "publicPrefixes: EXPO_PUBLIC_\n")
    assert load_config(tmp_path, path).public_prefixes == ["EXPO_PUBLIC_"]

    with pytest.raises(ConfigurationError):
        load_config(tmp_path, tmp_path / "missing.yml")


def test_empty_file(write_file, tmp_path) -> None:
    write_file(".env-audit.yml", "")
    assert load_config(tmp_path).framework is None


def test_invalid_yaml(write_file, tmp_path) -> None:
    write_file(".env-audit.yml", "scan: [\n")
    with pytest.raises(ConfigurationError):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "data",
    [
        ["not", "a", "mapping"],
        {"scan": "nope"},
        {"scan": {"maxFileSize": 0}},
        {"scan": {"maxFileSize": True}},
        {"scan": {"include": [1, 2]}},
        {"scan": {"framework": 3}},
        {"output": {"formats": ["html"]}},
        {"output": {"dir": 1}},
    ],
)
def test_invalid_values(data) -> None:
    with pytest.raises(ConfigurationError):
        parse_config(data)
