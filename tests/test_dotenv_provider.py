"""Tests for the .env declaration-file provider."""

from __future__ import annotations

from envaudit.core.models import ScanOptions, Source
from envaudit.providers.dotenv import (
    DotenvProvider,
    is_dotenv_file,
    parse_dotenv_content,
    parse_dotenv_line,
    split_inline_comment,
)

SAMPLE = """\
# Database settings
DATABASE_URL=postgresql://localhost:5432/app
export API_URL=https://api.example.com # production endpoint
EMPTY=
TOKEN=change_me
QUOTED='single quoted'
HASH_IN_QUOTES="a#b"
NEXT_PUBLIC_SITE=https://example.com
1BAD=ignored
not a declaration
"""


def test_quoted_value_with_comment() -> None:
    """A quoted value keeps its spaces; the trailing comment becomes a note."""
    findings = DotenvProvider().scan_content('NAME="hello world" # comment\n', "/p/.env", ScanOptions())
    assert len(findings) == 1
    finding = findings[0]
    assert finding.name == "NAME"
    assert finding.default_value == "hello world"
    assert finding.required is False
    assert finding.notes == ("comment",)
    assert finding.source is Source.DOTENV


def test_sample_file() -> None:
    findings = {f.name: f for f in DotenvProvider().scan_content(SAMPLE, "/p/.env", ScanOptions())}

    assert set(findings) == {
        "DATABASE_URL", "API_URL", "EMPTY", "TOKEN", "QUOTED", "HASH_IN_QUOTES", "NEXT_PUBLIC_SITE",
    }
    assert findings["DATABASE_URL"].default_value == "postgresql://localhost:5432/app"
    assert findings["DATABASE_URL"].files[0].line == 2
    assert findings["DATABASE_URL"].files[0].column == 1

    assert findings["API_URL"].default_value == "https://api.example.com"
    assert findings["API_URL"].notes == ("production endpoint",)
    assert findings["API_URL"].files[0].context == "production endpoint"

    assert findings["EMPTY"].required is True
    assert findings["EMPTY"].default_value is None
    assert findings["TOKEN"].required is True
    assert findings["QUOTED"].default_value == "single quoted"
    assert findings["HASH_IN_QUOTES"].default_value == "a#b"
    assert findings["NEXT_PUBLIC_SITE"].is_public is True
    assert findings["DATABASE_URL"].is_public is False


def test_placeholders_are_case_insensitive() -> None:
    for value in ("YOUR_VALUE_HERE", "todo", "Tbd", "...", "xxx", "replace_me"):
        entry = parse_dotenv_line(f"KEY={value}")
        assert entry is not None
        assert entry.has_value is False


def test_split_inline_comment() -> None:
    assert split_inline_comment("A=b # c") == ("A=b", "c")
    assert split_inline_comment("A='b # c'") == ("A='b # c'", None)
    assert split_inline_comment("A='b # c' # d") == ("A='b # c'", "d")


def test_parse_content_keeps_line_numbers() -> None:
    entries = parse_dotenv_content("\n\nA=1\n#B=2\nC=3\n")
    assert [(e.name, e.line_number) for e in entries] == [("A", 3), ("C", 5)]


def test_dotenv_file_names() -> None:
    assert is_dotenv_file("/p/.env")
    assert is_dotenv_file("/p/.env.local")
    assert is_dotenv_file("/p/.env.example")
    assert is_dotenv_file("/p/production.env")
    assert not is_dotenv_file("/p/.envrc")
    assert not is_dotenv_file("/p/env.js")


def test_collect_reads_only_dotenv_files(write_file) -> None:
    env = write_file(".env.local", "SECRET=abc\n")
    other = write_file("app.js", "SECRET=abc\n")

    output = DotenvProvider().collect([str(env), str(other)], ScanOptions())
    assert output.files_scanned == 1
    assert [f.name for f in output.findings] == ["SECRET"]
    assert output.parse_errors == 0
