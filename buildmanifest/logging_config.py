"""Logging helpers for the buildmanifest package.

"""
from __future__ import annotations

import logging
from typing import Optional


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a package-aware logger. If name is None the package logger
    (``buildmanifest``) is returned; other names are nested under it.
    """
    package = __package__ or "buildmanifest"
    if name is None or name == package:
        return logging.getLogger(package)
    if not name.startswith(package + "."):
        name = f"{package}.{name}"
    return logging.getLogger(name)


def setup_logging(level: int = logging.INFO, fmt: Optional[str] = None) -> None:
    """
    Parameters
    - level: logging level (defaults to INFO)
    - fmt: optional format string. If omitted a concise default is used.
    """
    logger = get_logger()
    # Already configured with a real handler: only adjust the level
    if any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        logger.setLevel(level)
        return

    handler = logging.StreamHandler()
    if fmt is None:
        fmt = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
    formatter = logging.Formatter(fmt)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(level)
