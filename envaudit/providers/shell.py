"""Shell script provider.

Line-oriented heuristics, not a shell parser:

1. first pass collects names assigned or declared in the file;
2. second pass collects ``$NAME`` / ``${NAME}`` / ``${NAME:-default}`` /
   ``${NAME:=default}`` references.

A locally assigned name referenced without a fallback is treated as
internal bookkeeping and dropped.
"""

import logging
import re
from pathlib import Path

from envaudit.core.models import FileRef, Finding, ScanOptions, Source
from envaudit.core.utils import is_public_variable, is_valid_env_var_name, strip_matching_quotes
from envaudit.providers.base import Provider

logger = logging.getLogger(__name__)

SHELL_EXTENSIONS = (".sh", ".bash", ".zsh", ".fish")

SHELL_FILE_NAMES = frozenset({
    "bashrc", ".bashrc", "bash_profile", ".bash_profile",
    "zshrc", ".zshrc", "zprofile", ".zprofile",
    "profile", ".profile", "bashrc.local", "zshrc.local",
})

# $VAR, ${VAR}, ${VAR:-default}, ${VAR:=default}
VAR_REF_PATTERN = re.compile(
    r'(?<!\\)\$(?:'
    r'\{([A-Za-z_][A-Za-z0-9_]*)(?:(:[-=])([^}]*))?\}'
    r'|([A-Za-z_][A-Za-z0-9_]*)'
    r')'
)
VAR_ASSIGN_PATTERN = re.compile(r'^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=')
VAR_DECLARE_PATTERN = re.compile(
    r'^(?:declare|local|readonly|typeset)\s+(?:-[a-zA-Z]+\s+)*([A-Za-z_][A-Za-z0-9_]*)'
)
FUNCTION_PATTERN = re.compile(r'^(?:function\s+)?([A-Za-z_][\w-]*)\s*(?:\(\s*\)|\{)')

# Shell builtins, special parameters and common loop variables
BUILTIN_VARIABLES = frozenset({
    "0", "1", "2", "3", "4", "5", "6", "7", "8", "9",
    "@", "*", "#", "?", "-", "$", "!", "_",
    "IFS", "PATH", "PS1", "PS2", "PS3", "PS4",
    "HOME", "USER", "SHELL", "PWD", "OLDPWD",
    "RANDOM", "SECONDS", "LINENO", "BASH_VERSION",
    "BASH_SOURCE", "BASH_LINENO", "FUNCNAME",
    "PIPESTATUS", "HOSTNAME", "HOSTTYPE", "OSTYPE",
    "MACHTYPE", "SHLVL", "PPID", "EUID", "UID", "GID",
    "i", "j", "k", "x", "y", "z", "item", "line", "file",
})

HINT_MAX_LENGTH = 100


def _is_code_line(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith('#')


def collect_assigned_names(lines: list[str]) -> set[str]:
    """Names assigned (``NAME=``) or declared (``local NAME``) in the file."""
    assigned: set[str] = set()
    for line in lines:
        if not _is_code_line(line):
            continue
        stripped = line.strip()
        for pattern in (VAR_ASSIGN_PATTERN, VAR_DECLARE_PATTERN):
            match = pattern.match(stripped)
            if match and is_valid_env_var_name(match.group(1)):
                assigned.add(match.group(1))
    return assigned


def extract_references(line: str) -> list[tuple[str, bool, str | None, int]]:
    """Return ``(name, has_default, default, column)`` for each reference."""
    references = []
    for match in VAR_REF_PATTERN.finditer(line):
        if match.group(1):
            name = match.group(1)
            has_default = match.group(2) is not None
            default = strip_matching_quotes(match.group(3)) if has_default else None
        else:
            name = match.group(4)
            has_default = False
            default = None
        references.append((name, has_default, default, match.start() + 1))
    return references


def describe_context(lines: list[str], index: int) -> str:
    """Best-effort label for where a reference sits."""
    line = lines[index].strip()

    if line.startswith(("if ", "elif ", "[[ ", "[ ")) or " if " in line:
        return "Conditional statement"
    if line.startswith("export "):
        return "Environment export"
    if line.startswith(("echo ", "printf ")):
        return "Output command"
    if "=" in line:
        return "Variable assignment"

    for i in range(index, max(-1, index - 6), -1):
        match = FUNCTION_PATTERN.match(lines[i].strip())
        if match and match.group(1) not in ("if", "for", "while", "case"):
            return f"Function: {match.group(1)}"

    return "Shell script"


class ShellProvider(Provider):
    """Provider for shell scripts."""

    name = "shell"
    source = Source.SHELL
    extensions = SHELL_EXTENSIONS

    def handles(self, file_path: str) -> bool:
        path = Path(file_path)
        return path.suffix.lower() in self.extensions or path.name.lower() in SHELL_FILE_NAMES

    def scan_content(self, content: str, file_path: str, options: ScanOptions) -> list[Finding]:
        lines = content.splitlines()
        assigned = collect_assigned_names(lines)
        found: dict[str, Finding] = {}

        for index, line in enumerate(lines):
            if not _is_code_line(line):
                continue

            for name, has_default, default, column in extract_references(line):
                if not is_valid_env_var_name(name) or name in BUILTIN_VARIABLES:
                    continue
                if name in assigned and not has_default:
                    continue

                ref = FileRef(
                    file_path,
                    index + 1,
                    column,
                    context=describe_context(lines, index),
                    hint=line.strip()[:HINT_MAX_LENGTH],
                )
                existing = found.get(name)
                if existing:
                    found[name] = Finding(
                        name=name,
                        source=self.source,
                        files=existing.files + (ref,),
                        required=existing.required and not has_default,
                        default_value=existing.default_value or default or None,
                        is_public=existing.is_public,
                    )
                else:
                    found[name] = Finding(
                        name=name,
                        source=self.source,
                        files=(ref,),
                        required=not has_default,
                        default_value=default or None,
                        is_public=is_public_variable(name, options.public_prefixes),
                    )

        return list(found.values())
