"""Exceptions and result codes shared by the piblingmirror packages."""

import logging
from enum import Enum

mylogger = logging.getLogger(__name__)


class ResultCode(str, Enum):
    """Directory result codes the provider and connectors report."""
    SUCCESS = "success"
    NO_SUCH_OBJECT = "no_such_object"
    TIMEOUT = "timeout"
    SIZE_LIMIT_EXCEEDED = "size_limit_exceeded"
    TIME_LIMIT_EXCEEDED = "time_limit_exceeded"
    PROTOCOL_ERROR = "protocol_error"
    FILTER_ERROR = "filter_error"
    INSUFFICIENT_ACCESS_RIGHTS = "insufficient_access_rights"
    SERVER_DOWN = "server_down"
    CONSTRAINT_VIOLATION = "constraint_violation"
    ENTRY_ALREADY_EXISTS = "entry_already_exists"
    OTHER = "other"


class PiblingMirrorError(Exception):
    """Base exception with a message. Logs it on creation if asked to."""
    def __init__(self, message="A piblingmirror error occurred", log=False):
        self.message = message
        super().__init__(self.message)
        if log:
            mylogger.error(message)


class ConfigurationError(PiblingMirrorError):
    """Invalid or missing provider configuration.

    ``reasons`` holds one human readable line per rejected value.
    """
    def __init__(self, message="Invalid provider configuration", reasons=None, log=False):
        self.reasons = list(reasons or [])
        super().__init__(message, log=log)


class NoParentError(PiblingMirrorError):
    """The entry sits at a hierarchy root, so it has no siblings to search."""
    def __init__(self, location, log=False):
        self.location = location
        super().__init__(f"Entry {location} has no parent entry", log=log)


class QueryError(PiblingMirrorError):
    """A directory search failed. Keeps the structured result code."""
    def __init__(self, result_code=ResultCode.OTHER, message="Directory search failed", log=False):
        self.result_code = ResultCode(result_code)
        super().__init__(message, log=log)

    def __str__(self):
        return f"{self.result_code.value}: {self.message}"


__all__ = [
    "ConfigurationError",
    "NoParentError",
    "PiblingMirrorError",
    "QueryError",
    "ResultCode",
]
