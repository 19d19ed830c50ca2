"""End-to-end tests for the scan orchestrator."""

from __future__ import annotations

import json

import pytest

from envaudit.core.errors import FileSystemError
from envaudit.core.models import Finding, ScanOptions, Source
from envaudit.core.scanner import Scanner, scan
from envaudit.providers.base import Provider, ProviderOutput, ProviderRegistry
from envaudit.providers.dotenv import DotenvProvider


class ExplodingProvider(Provider):
    name = "exploding"
    source = Source.SHELL
    extensions = (".sh",)

    def scan_content(self, content, file_path, options) -> list[Finding]:
        return []

    def collect(self, files, options) -> ProviderOutput:
        raise RuntimeError("provider crashed")


def test_end_to_end_merge(write_file, tmp_path) -> None:
    """A code reference and a .env declaration merge into one finding."""
    write_file("src/app.ts", "const db = process.env.DATABASE_URL;\n")
    write_file(".env", "DATABASE_URL=postgresql://localhost:5432/app\n")

    result = scan(tmp_path)

    assert [f.name for f in result.findings] == ["DATABASE_URL"]
    finding = result.findings[0]
    assert len(finding.files) == 2
    assert {ref.file_path for ref in finding.files} == {
        str(tmp_path / "src" / "app.ts"),
        str(tmp_path / ".env"),
    }
    assert finding.required is True
    assert finding.default_value == "postgresql://localhost:5432/app"
    assert finding.source is Source.PROCESS

    stats = result.stats
    assert stats.total_files == 2
    assert stats.total_findings == 1
    assert stats.parse_errors == 0
    assert set(stats.counts_by_source) == {s.value for s in Source}
    assert stats.counts_by_source["process"] == 1
    assert stats.files_by_provider == {"ast": 1, "dotenv": 1, "yaml": 0, "shell": 0}


def test_all_sources_end_to_end(write_file, tmp_path) -> None:
    write_file("src/index.js", "const key = process.env.API_KEY || 'dev-key';\n")
    write_file("docker-compose.yml", "services:\n  api:\n    environment:\n      - API_KEY\n      - REDIS_URL=redis://cache\n")
    write_file(".github/workflows/ci.yml", "jobs:\n  build:\n    env:\n      CI_FLAG: '1'\n")
    write_file("scripts/start.sh", "echo ${LOG_LEVEL:-info}\n")
    write_file("src/broken.js", "const = ;\n")

    result = scan(tmp_path)
    findings = {f.name: f for f in result.findings}

    assert list(findings) == sorted(findings)
    assert set(findings) == {"API_KEY", "REDIS_URL", "CI_FLAG", "LOG_LEVEL"}
    # the compose entry has no value, so the union stays required
    assert findings["API_KEY"].required is True
    assert findings["API_KEY"].default_value == "dev-key"
    assert findings["API_KEY"].source is Source.PROCESS
    assert findings["REDIS_URL"].source is Source.DOCKER
    assert findings["CI_FLAG"].source is Source.GHA
    assert findings["LOG_LEVEL"].source is Source.SHELL
    assert result.stats.parse_errors == 1


def test_provider_failure_is_isolated(write_file, tmp_path) -> None:
    write_file(".env", "TOKEN=abc\n")
    write_file("run.sh", "echo $OTHER\n")
    registry = ProviderRegistry([DotenvProvider(), ExplodingProvider()])

    result = Scanner(registry).scan(tmp_path)

    assert [f.name for f in result.findings] == ["TOKEN"]
    assert result.stats.findings_by_provider == {"dotenv": 1, "exploding": 0}


def test_every_provider_failing_returns_empty_result(write_file, tmp_path) -> None:
    write_file("run.sh", "echo $OTHER\n")
    result = Scanner(ProviderRegistry([ExplodingProvider()])).scan(tmp_path)
    assert result.findings == ()
    assert result.stats.total_findings == 0
    json.loads(result.to_json())


def test_empty_directory(tmp_path) -> None:
    result = scan(tmp_path)
    assert result.findings == ()
    assert result.stats.total_files == 0


def test_explicit_file_list(write_file, tmp_path) -> None:
    env = write_file(".env", "A=1\n")
    script = write_file("x.sh", "echo $B\n")

    result = scan([str(script), str(env), str(env)])
    assert result.stats.total_files == 2
    assert [f.name for f in result.findings] == ["A", "B"]


def test_provider_filters(write_file, tmp_path) -> None:
    write_file(".env", "A=1\n")
    write_file("x.sh", "echo $B\n")

    only_shell = scan(tmp_path, ScanOptions(include_providers={"shell"}))
    assert [f.name for f in only_shell.findings] == ["B"]

    no_shell = scan(tmp_path, ScanOptions(exclude_providers={"shell"}))
    assert [f.name for f in no_shell.findings] == ["A"]


def test_scan_is_deterministic(write_file, tmp_path) -> None:
    write_file(".env", "SHARED=from-dotenv # dotenv note\n")
    write_file("compose.yaml", "services:\n  app:\n    environment:\n      SHARED: from-compose\n")
    write_file("run.sh", "echo ${SHARED:-from-shell}\n")

    first = scan(tmp_path)
    second = scan(tmp_path)

    assert first.findings == second.findings
    assert first.findings[0].default_value == "from-dotenv"
    assert first.findings[0].notes == ("dotenv note",)


def test_framework_detection_seeds_public_prefixes(write_file, tmp_path) -> None:
    write_file("package.json", json.dumps({"devDependencies": {"vite": "^5.0.0"}}))
    write_file("src/main.js", "const url = import.meta.env.VITE_API_URL;\n")

    result = scan(tmp_path, ScanOptions(public_prefixes=()))
    assert result.framework == "vite"
    assert result.findings[0].is_public is True


def test_missing_root_raises(tmp_path) -> None:
    with pytest.raises(FileSystemError):
        scan(tmp_path / "does-not-exist")
