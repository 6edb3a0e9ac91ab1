"""
Logging utilities for consistent logging setup across the application.
"""

from __future__ import annotations

import json
import logging
import re

from bucketd.common.config import Config

_IPV4_RE = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")
_IPV6_RE = re.compile(r"\b(?:[0-9a-fA-F]{1,4}:){2,7}[0-9a-fA-F]{1,4}\b")

ROOT_LOGGER_NAME = "bucketd"


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class AnonymizeFilter(logging.Filter):
    """Mask IP addresses in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _IPV6_RE.sub("<ip>", _IPV4_RE.sub("<ip>", message))
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logger(logger: logging.Logger, log_level: int) -> None:
    """
    Set up a logger with a StreamHandler and standard formatter.

    Args:
        logger: The logger instance to configure
        log_level: The logging level to set
    """
    logger.setLevel(log_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(log_level)
        formatter = logging.Formatter(Config.LOG_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def configure_console(
    *,
    json_output: bool = False,
    quiet: bool = False,
    anonymous: bool = False,
    debug: bool = False,
) -> logging.Logger:
    """
    Configure the package logger for the selected console modes.

    Args:
        json_output: Emit one JSON object per record
        quiet: Only show warnings and errors
        anonymous: Mask IP addresses in messages
        debug: Force debug level, overrides quiet

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    level = Config.LOG_LEVEL
    if quiet:
        level = logging.WARNING
    if debug:
        level = logging.DEBUG

    setup_logger(logger, level)
    for handler in logger.handlers:
        handler.setLevel(level)
        if json_output:
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter(Config.LOG_FORMAT))
        for existing in list(handler.filters):
            if isinstance(existing, AnonymizeFilter):
                handler.removeFilter(existing)
        if anonymous:
            handler.addFilter(AnonymizeFilter())
    return logger
