"""
Loguru sink configuration for the API and CLI entry points.
"""

from __future__ import annotations

import sys

from loguru import logger

from config import Settings, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Replace the default sink with stderr (and optionally a rotating file)."""
    settings = settings or get_settings()

    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {name}:{function} | {message}",
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            level=settings.log_level,
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
        )
