"""Opt-in logging setup for applications embedding the client."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from openmeteo.config import get_log_level

LIBRARY_NAME = "openmeteo"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler: Optional[logging.Handler] = None


def configure_logging(level: Optional[str] = None, env: Mapping[str, str] | None = None) -> logging.Logger:
    """Attach a stream handler to the package logger and return it.

    ``level`` wins over ``OPEN_METEO_LOG_LEVEL``; unknown names fall back to
    WARNING. Calling this again replaces the handler added last time and
    leaves any other handler in place.
    """

    global _handler

    name = (level or get_log_level(env)).upper()
    log_level = getattr(logging, name, logging.WARNING)
    if not isinstance(log_level, int):
        log_level = logging.WARNING

    lib_logger = logging.getLogger(LIBRARY_NAME)
    if _handler is not None:
        lib_logger.removeHandler(_handler)
    lib_logger.setLevel(log_level)

    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    lib_logger.addHandler(_handler)
    return lib_logger


__all__ = ["LIBRARY_NAME", "LOG_FORMAT", "configure_logging"]
