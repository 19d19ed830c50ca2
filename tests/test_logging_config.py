"""Tests for logging setup."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from envaudit.logging_config import configure_logging


def test_configure_logging_is_idempotent() -> None:
    logger = configure_logging(verbose=True, logger_name="envaudit.test_logging")
    assert logger.level == logging.DEBUG

    logger = configure_logging(verbose=False, logger_name="envaudit.test_logging")
    assert logger.level == logging.WARNING
    assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
    assert logger.propagate is False
