"""Loguru sink configuration."""

from __future__ import annotations

import sys

from loguru import logger

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logger(level: str = "INFO") -> None:
    """Replace loguru's default sink with a formatted stderr sink."""

    logger.remove()
    logger.add(sys.stderr, format=_FORMAT, level=level.upper(), colorize=True)
    logger.debug("Logger initialized with level={}", level)
