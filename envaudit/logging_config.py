"""Logging setup for the command line."""

import logging

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOGGER_NAME = "envaudit"


def configure_logging(verbose: bool = False, logger_name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Configure and return the package logger.

    Log records go to stderr through rich so they never mix with JSON or
    env output written to stdout. Calling this twice only updates the level.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=verbose,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
