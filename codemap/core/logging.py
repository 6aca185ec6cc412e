"""Centralized logging configuration for codemap."""

from __future__ import annotations

import logging
import sys

_ROOT = "codemap"

_configured = False


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """Configure the codemap logger with a console handler. Idempotent."""
    global _configured
    logger = logging.getLogger(_ROOT)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if _configured:
        return logger

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    logger.addHandler(console)

    _configured = True
    logger.debug("Logging initialised (level=%s)", level)
    return logger


def get_logger(name: str = _ROOT) -> logging.Logger:
    """Get a logger under the codemap namespace."""
    if name != _ROOT and not name.startswith(f"{_ROOT}."):
        name = f"{_ROOT}.{name}"
    return logging.getLogger(name)
