"""Tests for the shell-script heuristics provider."""

from __future__ import annotations

from envaudit.core.models import ScanOptions, Source
from envaudit.providers.shell import ShellProvider, describe_context, extract_references

SCRIPT = """\
#!/bin/bash
# $COMMENTED should be ignored
set -e
LOCAL_DIR=/tmp
echo "Deploying to $DEPLOY_HOST"
cd $LOCAL_DIR
PORT=${PORT:-8080}
for i in 1 2 3; do echo $i; done
if [ -z "$API_TOKEN" ]; then exit 1; fi
echo "cost: \\$HOME_PRICE"
deploy() {
  curl "$WEBHOOK_URL"
}
"""


def _scan(content: str, path: str = "/p/deploy.sh") -> dict:
    return {f.name: f for f in ShellProvider().scan_content(content, path, ScanOptions())}


def test_default_with_quotes() -> None:
    findings = _scan('DATABASE_URL=${DATABASE_URL:-"postgresql://localhost:5432/app"}\n')
    finding = findings["DATABASE_URL"]
    assert finding.required is False
    assert finding.default_value == "postgresql://localhost:5432/app"
    assert finding.source is Source.SHELL


def test_loop_variable_is_ignored() -> None:
    assert _scan("for i in 1 2 3; do\n  echo $i\ndone\n") == {}


def test_script_heuristics() -> None:
    findings = _scan(SCRIPT)
    assert set(findings) == {"DEPLOY_HOST", "PORT", "API_TOKEN", "WEBHOOK_URL"}

    deploy_host = findings["DEPLOY_HOST"]
    assert deploy_host.required is True
    assert deploy_host.files[0].line == 5
    assert deploy_host.files[0].column == 20
    assert deploy_host.files[0].context == "Output command"
    assert deploy_host.files[0].hint == 'echo "Deploying to $DEPLOY_HOST"'

    assert findings["PORT"].required is False
    assert findings["PORT"].default_value == "8080"
    assert findings["PORT"].files[0].context == "Variable assignment"

    assert findings["API_TOKEN"].files[0].context == "Conditional statement"
    assert findings["WEBHOOK_URL"].files[0].context == "Function: deploy"


def test_assigned_variable_without_default_is_dropped() -> None:
    assert _scan("export BUILD_DIR=out\nls $BUILD_DIR\n") == {}


def test_declared_variable_without_default_is_dropped() -> None:
    assert _scan("local RESULT\necho $RESULT\n") == {}


def test_repeated_references_merge_per_file() -> None:
    findings = _scan("echo $REGION\necho ${REGION:=us-east-1}\n")
    region = findings["REGION"]
    assert len(region.files) == 2
    assert region.required is False
    assert region.default_value == "us-east-1"


def test_extract_references_forms() -> None:
    refs = extract_references("$A ${B} ${C:-x} ${D:='y'} \\$E")
    assert [(name, has_default, default) for name, has_default, default, _ in refs] == [
        ("A", False, None),
        ("B", False, None),
        ("C", True, "x"),
        ("D", True, "y"),
    ]


def test_describe_context_defaults_to_shell_script() -> None:
    assert describe_context(["ls $DIR"], 0) == "Shell script"
    assert describe_context(["export PATH_EXTRA=$EXTRA"], 0) == "Environment export"


def test_handles_rc_files_and_extensions() -> None:
    provider = ShellProvider()
    assert provider.handles("/home/u/.bashrc")
    assert provider.handles("/p/setup.zsh")
    assert provider.handles("/p/config.fish")
    assert not provider.handles("/p/app.py")
