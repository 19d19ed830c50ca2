"""Tests for framework detection."""

from __future__ import annotations

import json

import pytest

from envaudit.core.frameworks import FRAMEWORK_CONFIGS, detect_framework, get_framework_config


@pytest.mark.parametrize(
    ("dependency", "expected"),
    [
        ("next", "nextjs"),
        ("vite", "vite"),
        ("astro", "astro"),
        ("@sveltejs/kit", "sveltekit"),
        ("nuxt", "nuxt"),
        ("@remix-run/react", "remix"),
    ],
)
def test_detect_from_dependencies(write_file, tmp_path, dependency: str, expected: str) -> None:
    write_file("package.json", json.dumps({"dependencies": {dependency: "*"}}))
    assert detect_framework(tmp_path) == expected


def test_dependency_order_prefers_next_over_vite(write_file, tmp_path) -> None:
    write_file("package.json", json.dumps({"dependencies": {"vite": "*"}, "devDependencies": {"next": "*"}}))
    assert detect_framework(tmp_path) == "nextjs"


def test_detect_from_config_file(write_file, tmp_path) -> None:
    write_file("package.json", json.dumps({"name": "app"}))
    write_file("svelte.config.js", "export default {}")
    assert detect_framework(tmp_path) == "sveltekit"


def test_malformed_package_json(write_file, tmp_path) -> None:
    write_file("package.json", "{not json")
    write_file("next.config.js", "")
    assert detect_framework(tmp_path) is None


def test_no_markers(tmp_path) -> None:
    assert detect_framework(tmp_path) is None


def test_framework_configs() -> None:
    assert FRAMEWORK_CONFIGS["nextjs"].public_prefixes == ("NEXT_PUBLIC_",)
    assert FRAMEWORK_CONFIGS["remix"].public_prefixes == ()
    assert get_framework_config("nuxt").name == "Nuxt"
    assert get_framework_config("unknown") is None
    assert get_framework_config(None) is None
