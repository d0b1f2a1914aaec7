"""Logging setup for polyaccess."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from polyaccess.config import get_settings


def configure_logging(level: str | None = None) -> None:
    """Route log records through a rich handler on stderr.

    Args:
        level: Logging level name. Defaults to the configured ``log_level``.
    """
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )
