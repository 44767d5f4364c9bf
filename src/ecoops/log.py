"""Logging setup for the CLI and library code."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "ecoops"

logger = logging.getLogger(LOGGER_NAME)


def setup_logging(level: int = logging.INFO, console: Console | None = None) -> logging.Logger:
    """Attach a rich handler to the package logger.

    Safe to call more than once; an existing RichHandler is reused.
    """
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)

    return root


def log_mock(endpoint: str) -> None:
    """Note that mock data is being served instead of live data."""
    logger.info("[MOCK MODE] Serving dummy data for endpoint: %s", endpoint)
