"""Logging setup for SymCalc.

Every module logs through a child of the ``symcalc`` logger, so a single
call to :func:`setup_logging` from the CLI configures the whole package.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime

ROOT_LOGGER = "symcalc"


class StructuredFormatter(logging.Formatter):
    """``<timestamp> [LEVEL] symcalc.module: message``, traceback appended when present."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        line = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _handler(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(StructuredFormatter())
    return handler


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> logging.Logger:
    """Route package logs to stderr, and to log_file when given.

    Unknown level names fall back to WARNING. Calling it again replaces the
    handlers installed by the previous call.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers.clear()
    logger.addHandler(_handler(logging.StreamHandler(sys.stderr)))
    if log_file:
        logger.addHandler(_handler(logging.FileHandler(log_file)))
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
