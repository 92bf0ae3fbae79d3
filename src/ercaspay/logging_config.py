"""Opt-in log handler setup for the ``ercaspay`` logger."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

LOGGER_NAME = "ercaspay"
HANDLER_NAME = "ercaspay-client"
LOG_FORMAT = "[Ercaspay] %(asctime)s [%(levelname)s]: %(message)s"


def configure_logging(
    level: Union[int, str] = logging.DEBUG,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Attach a single formatted handler to the package logger and return it.

    Writes to ``log_file`` when given (e.g. ``ercaspay-client.log``), stderr
    otherwise. Calling it again swaps the handler instead of adding another.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            logger.removeHandler(existing)
            existing.close()

    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
