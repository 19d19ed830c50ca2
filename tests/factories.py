"""Small builders for test data."""

from __future__ import annotations

from envaudit.core.models import FileRef, Finding, Source


def make_finding(
    name: str = "API_KEY",
    source: Source = Source.DOTENV,
    file_path: str = "/project/.env",
    line: int = 1,
    column: int = 1,
    **kwargs,
) -> Finding:
    return Finding(
        name=name,
        source=source,
        files=(FileRef(file_path, line, column),),
        **kwargs,
    )
