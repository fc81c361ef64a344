"""Structured logging configuration for Editor Bridge."""

from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_from_env(default: int) -> int:
    name = os.getenv("LOG_LEVEL", "").upper()
    if not name:
        return default
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else default


def setup_logging(
    level: int = logging.INFO,
    module_name: str = "editor_bridge",
) -> logging.Logger:
    """Configure and return a logger with consistent formatting.

    LOG_LEVEL in the environment (e.g. "DEBUG") takes precedence over
    ``level``.

    Args:
        level: Logging level (default INFO).
        module_name: Name for the logger instance.

    Returns:
        Configured logger.
    """
    logger = logging.getLogger(module_name)

    if logger.handlers:
        return logger

    level = _level_from_env(level)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)

    return logger


def mask_secret(value: str, visible: int = 4) -> str:
    """Shorten a cookie or token value for log output."""
    if len(value) <= visible:
        return "*" * len(value)
    return value[:visible] + "..."
