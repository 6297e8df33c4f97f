"""Utility exports."""

from .logging import LoggingNotifier, configure_logging, get_logger

__all__ = [
    "LoggingNotifier",
    "configure_logging",
    "get_logger",
]
