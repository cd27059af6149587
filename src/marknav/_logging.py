"""Logging configuration for marknav.

Modules log through ``logging.getLogger(__name__)``; this module attaches a
single Rich handler writing to stderr to the ``marknav`` package logger.

``MARKNAV_LOG_LEVEL`` in the environment overrides the configured level.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "marknav"
LEVEL_ENV_VAR = "MARKNAV_LOG_LEVEL"


def resolve_level(configured: str | None = None) -> int:
    """Return the numeric level from the environment, the configuration, or WARNING."""
    name = os.environ.get(LEVEL_ENV_VAR) or configured or "WARNING"
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach the Rich handler to the package logger.

    Repeated calls only adjust the level.

    Args:
        level: Level name from configuration, e.g. ``"INFO"``.

    Returns:
        logging.Logger: The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    resolved = resolve_level(level)
    logger.setLevel(resolved)

    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
        # Avoid duplicate records through the root logger.
        logger.propagate = False

    for handler in logger.handlers:
        handler.setLevel(resolved)
    return logger


__all__ = ["configure_logging", "resolve_level", "LEVEL_ENV_VAR"]
