"""Severity-tagged diagnostics sink backed by the standard logging module."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol


class LogSeverity(str, Enum):
    """Severities a provider can attach to a diagnostic message."""
    DEBUG = "debug"
    INFORMATION = "information"
    MILD_WARNING = "mild_warning"
    MILD_ERROR = "mild_error"
    SEVERE_WARNING = "severe_warning"
    SEVERE_ERROR = "severe_error"
    FATAL_ERROR = "fatal_error"

    @property
    def level(self) -> int:
        return _LEVELS[self]


# mild errors are recovered by the caller, so they only warrant a warning
_LEVELS = {
    LogSeverity.DEBUG: logging.DEBUG,
    LogSeverity.INFORMATION: logging.INFO,
    LogSeverity.MILD_WARNING: logging.WARNING,
    LogSeverity.MILD_ERROR: logging.WARNING,
    LogSeverity.SEVERE_WARNING: logging.WARNING,
    LogSeverity.SEVERE_ERROR: logging.ERROR,
    LogSeverity.FATAL_ERROR: logging.CRITICAL,
}


class DiagnosticsSink(Protocol):
    """Where the provider sends its log messages."""
    def log_message(self, severity: LogSeverity, message: str) -> None: ...
    def debug_enabled(self) -> bool: ...
    def debug_info(self, message: str) -> None: ...


class LoggerDiagnostics:
    """DiagnosticsSink that forwards to a ``logging.Logger``."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("piblingmirror")

    def log_message(self, severity: LogSeverity, message: str) -> None:
        self.logger.log(LogSeverity(severity).level, message)

    def debug_enabled(self) -> bool:
        return self.logger.isEnabledFor(logging.DEBUG)

    def debug_info(self, message: str) -> None:
        self.logger.debug(message)


__all__ = ["DiagnosticsSink", "LogSeverity", "LoggerDiagnostics"]
