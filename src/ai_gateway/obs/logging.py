"""Structured logging configuration."""

from __future__ import annotations

import logging
import sys
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Formats records as `key=value` pairs on a single line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            log_data.update(extra_data)
        line = " ".join(f"{key}={value}" for key, value in log_data.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; the shared package handler is installed once."""
    _configure_root()
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    logger.log(level, msg, extra={"extra_data": kwargs})


def _configure_root() -> None:
    root = logging.getLogger("ai_gateway")
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.propagate = False

    try:
        from ai_gateway.config import get_settings

        level_name = get_settings().LOG_LEVEL.upper()
    except Exception:
        level_name = "INFO"
    root.setLevel(getattr(logging, level_name, logging.INFO))
