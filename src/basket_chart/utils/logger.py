"""Logging setup shared by every module of the application."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from basket_chart.core.config import LOG_FORMAT, LOG_LEVEL

_ROOT_LOGGER_NAME = "basket_chart"
_handler: Optional[logging.Handler] = None


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a single stream handler to the package root logger.

    Calling this more than once only updates the level.
    """
    global _handler

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel((level or LOG_LEVEL).upper())

    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under the package root."""
    if name == _ROOT_LOGGER_NAME or name.startswith(_ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
