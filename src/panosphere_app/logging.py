"""Logging configuration helpers."""
from __future__ import annotations

import sys

from loguru import logger


def configure_logging(level: str = "INFO") -> None:
    """Route loguru to stdout with a compact timestamped format."""
    logger.remove()
    logger.add(
        sink=sys.stdout,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}: {message}",
    )
