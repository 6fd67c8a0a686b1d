"""Log record model handed to the sink by the logging pipeline."""

import logging
import traceback
from datetime import datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class LogLevel(IntEnum):
    """Ordered severity levels. ``str()`` gives the display name."""

    VERBOSE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    FATAL = 5

    def __str__(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_logging_level(cls, levelno: int) -> "LogLevel":
        """Map a stdlib ``logging`` level number onto a LogLevel.

        Custom levels fall into the bucket of the nearest standard level below them.
        """
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFORMATION
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.VERBOSE

    def to_logging_level(self) -> int:
        """Return the lowest stdlib level number that maps back to this level."""
        return _TO_LOGGING[self]


_TO_LOGGING = {
    LogLevel.VERBOSE: 5,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFORMATION: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
}


class ExceptionInfo(BaseModel):
    """Error attached to a log record: message, type name and stack trace text."""

    model_config = ConfigDict(frozen=True)

    message: str
    type_name: str
    stack_trace: str = ""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExceptionInfo":
        """Capture a live exception, including its traceback frames."""
        frames = traceback.format_tb(exc.__traceback__) if exc.__traceback__ else []
        return cls(
            message=str(exc),
            type_name=type(exc).__name__,
            stack_trace="".join(frames).rstrip("\n"),
        )


class LogRecord(BaseModel):
    """A fully rendered log event. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    level: LogLevel
    message: str  # Already rendered by the logging pipeline
    timestamp: datetime
    properties: dict[str, Any] = {}
    exception: ExceptionInfo | None = None
