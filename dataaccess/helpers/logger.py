"""
helpers/logger.py
-----------------
Centralized logging configuration.
All modules should use `get_logger(__name__)` to obtain a logger instance.
Nothing is configured on import; applications call `configure_logging()`.
"""

import logging
import sys
from typing import Optional, Union

from dataaccess.config.config import settings

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_handler: Optional[logging.Handler] = None


def configure_logging(level: Union[str, int, None] = None) -> logging.Logger:
    """
    Attach one stdout handler to the package logger and set its level.

    Args:
        level: Logging level name or number. Defaults to ``settings.LOG_LEVEL``.

    Returns:
        The ``dataaccess`` package logger.
    """
    global _handler
    root = logging.getLogger("dataaccess")
    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        _handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
        root.addHandler(_handler)
    root.setLevel(level if level is not None else settings.LOG_LEVEL.upper())
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger instance.

    Args:
        name: Usually ``__name__`` of the calling module.
    """
    return logging.getLogger(name)
