"""
Logging configuration for casperdriver.

Library modules only create module-level loggers; handlers are attached by the
application (or the bundled CLI) through configure_logging().

Usage:
    from casperdriver.logging_config import configure_logging

    # Human-readable console logging
    configure_logging(log_level="DEBUG")

    # JSON lines, e.g. when the output is shipped to a log collector
    configure_logging(structured=True)

Environment Variables:
    CASPERDRIVER_LOG_LEVEL - Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
        also read from a local .env file
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import get_settings

LOGGER_NAME = "casperdriver"

_STANDARD_ATTRS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "exc_info",
    "exc_text",
    "stack_info",
    "message",
    "taskName",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter emitting one object per log record.

    Each entry includes timestamp, level, logger name and message, plus any
    extra fields passed through ``extra=``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    structured: bool = False,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the ``casperdriver`` logger.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); falls back
            to the ``log_level`` setting (CASPERDRIVER_LOG_LEVEL or .env), then INFO
        log_file: Optional file to receive DEBUG-and-above records
        structured: Emit JSON records instead of plain text
        log_to_console: Whether to log to stderr

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    if log_level is None:
        log_level = get_settings().log_level
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")
    # File output always captures DEBUG; the console handler filters at `level`
    logger.setLevel(logging.DEBUG if log_file is not None else level)

    if structured:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    # stdout is reserved for page content / JSON results
    if log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.debug(f"Logging to: {log_file}")

    return logger
