# dataselect/core/log.py
"""Logging setup for the ``dataselect`` logger hierarchy."""

import logging
from typing import Optional

from dataselect.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Calling this more than once does not add duplicate handlers.

    Args:
        level: Log level name; defaults to ``DATASELECT_LOG_LEVEL``.

    Returns:
        The configured ``dataselect`` logger.
    """
    logger = logging.getLogger("dataselect")
    logger.setLevel((level or get_settings().log_level).upper())

    if not any(getattr(h, "_dataselect_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._dataselect_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
