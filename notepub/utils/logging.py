"""Logging helpers."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

# Attributes present on every LogRecord; anything else arrived through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Render log records as compact JSON."""

    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.default_time_format),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                data[key] = value
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def _formatter(structured: bool) -> logging.Formatter:
    return JsonFormatter() if structured else logging.Formatter(_PLAIN_FORMAT)


def configure_logging(
    *,
    level: int | str = logging.INFO,
    structured: bool | None = None,
) -> None:
    """Configure root logging; JSON output unless ``structured`` is False.

    When the root logger already has handlers (pytest, an embedding host) only
    their formatter is swapped, and only if ``structured`` was given.
    """

    root = logging.getLogger()
    root.setLevel(level)

    if root.handlers:
        if structured is None:
            return
        for handler in root.handlers:
            handler.setFormatter(_formatter(structured))
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(structured is not False))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggingNotifier:
    """Notifier that turns user-facing notices into log records."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger("notepub.notice")
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)
        self._logger.info(message, extra={"event": "notice"})


__all__ = ["configure_logging", "get_logger", "JsonFormatter", "LoggingNotifier"]
