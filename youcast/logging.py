"""
youcast.logging - Centralized logging configuration.

Provides a simple logging setup with optional verbose mode for debugging.
The LOG_LEVEL environment variable overrides the default level.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger("youcast")

LOG_LEVELS = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def resolve_level(verbose: bool = False, level: str | None = None) -> int:
    """Pick the log level from an explicit name, LOG_LEVEL, or the verbose flag."""
    name = level or os.environ.get("LOG_LEVEL")
    if name and name.upper() in LOG_LEVELS:
        return LOG_LEVELS[name.upper()]
    return logging.DEBUG if verbose else logging.WARNING


def configure_logging(verbose: bool = False, level: str | None = None) -> None:
    """Configure logging for the youcast package.

    Args:
        verbose: If True, enable DEBUG level logging; otherwise WARNING level
        level: Optional level name (ERROR, WARN, INFO, DEBUG), wins over verbose
    """
    logging.basicConfig(
        level=resolve_level(verbose, level),
        format="%(asctime)s %(levelname)-5s %(name)s: %(message)s",
    )
