"""Tests for value types and their invariants."""

from __future__ import annotations

import json
import os

import pytest

from envaudit.core.errors import ContractError
from envaudit.core.models import (
    DEFAULT_PUBLIC_PREFIXES,
    FileRef,
    Finding,
    ScanOptions,
    ScanResult,
    ScanStats,
    Source,
)
from envaudit.core.utils import (
    is_public_variable,
    is_valid_env_var_name,
    read_file_safe,
    strip_matching_quotes,
)


def test_source_is_closed_set() -> None:
    """Unknown source tags are rejected."""
    assert Source("importmeta") is Source.IMPORTMETA
    assert str(Source.GHA) == "gha"
    with pytest.raises(ValueError):
        Source("bogus")


def test_file_ref_absolute_and_one_based() -> None:
    ref = FileRef("relative/app.ts", 3, 7)
    assert os.path.isabs(ref.file_path)
    assert ref.key == (ref.file_path, 3, 7)

    with pytest.raises(ValueError):
        FileRef("/x.ts", 0, 1)
    with pytest.raises(ValueError):
        FileRef("/x.ts", 1, 0)


def test_file_ref_to_dict_omits_empty_fields() -> None:
    assert FileRef("/x.sh", 2, 5).to_dict() == {"filePath": "/x.sh", "line": 2, "column": 5}
    data = FileRef("/x.sh", 2, 5, context="Shell script", hint="echo $A").to_dict()
    assert data["context"] == "Shell script"
    assert data["hint"] == "echo $A"


def test_finding_requires_files() -> None:
    with pytest.raises(ContractError):
        Finding(name="API_KEY", source=Source.DOTENV, files=())


@pytest.mark.parametrize("name", ["", "1ABC", "API-KEY", "A B"])
def test_finding_rejects_invalid_names(name: str) -> None:
    with pytest.raises(ContractError):
        Finding(name=name, source=Source.DOTENV, files=(FileRef("/a", 1, 1),))


def test_finding_rejects_raw_string_source() -> None:
    with pytest.raises(ContractError):
        Finding(name="A", source="dotenv", files=(FileRef("/a", 1, 1),))  # type: ignore[arg-type]


def test_finding_coerces_lists_and_serializes() -> None:
    finding = Finding(
        name="API_KEY",
        source=Source.PROCESS,
        files=[FileRef("/a.ts", 1, 1)],
        required=False,
        default_value="x",
        notes=["comment"],
    )
    assert isinstance(finding.files, tuple)
    assert isinstance(finding.notes, tuple)

    data = finding.to_dict()
    assert data["source"] == "process"
    assert data["defaultValue"] == "x"
    assert data["isPublic"] is False
    assert data["notes"] == ["comment"]


def test_scan_options_defaults_and_coercion() -> None:
    opts = ScanOptions(public_prefixes=["APP_"], include_providers=["ast"])
    assert opts.public_prefixes == ("APP_",)
    assert opts.include_providers == frozenset({"ast"})
    assert ScanOptions().public_prefixes == DEFAULT_PUBLIC_PREFIXES


def test_scan_result_json_shape() -> None:
    result = ScanResult(findings=(), stats=ScanStats(), scanned_at="2024-01-01T00:00:00+00:00")
    data = json.loads(result.to_json())
    assert data["findings"] == []
    assert data["stats"]["countsBySource"] == {s.value: 0 for s in Source}
    assert "framework" not in data


def test_name_and_prefix_helpers() -> None:
    assert is_valid_env_var_name("_PRIVATE")
    assert not is_valid_env_var_name("9LIVES")
    assert is_public_variable("VITE_API", ["VITE_"])
    assert not is_public_variable("vite_api", ["VITE_"])
    assert not is_public_variable("ANYTHING", [""])


def test_strip_matching_quotes() -> None:
    assert strip_matching_quotes('"abc"') == "abc"
    assert strip_matching_quotes("'abc'") == "abc"
    assert strip_matching_quotes("'abc\"") == "'abc\""
    assert strip_matching_quotes('"') == '"'


def test_read_file_safe_limits(tmp_path) -> None:
    text = tmp_path / "a.txt"
    text.write_text("hello", encoding="utf-8")
    binary = tmp_path / "b.bin"
    binary.write_bytes(b"abc\x00def")

    assert read_file_safe(text, 100) == "hello"
    assert read_file_safe(text, 2) is None
    assert read_file_safe(binary, 100) is None
    assert read_file_safe(tmp_path / "missing", 100) is None
