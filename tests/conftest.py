"""Shared fixtures for envaudit tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from envaudit.core.models import ScanOptions


@pytest.fixture
def options() -> ScanOptions:
    return ScanOptions()


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write ``content`` to ``tmp_path / relative`` and return the path."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
