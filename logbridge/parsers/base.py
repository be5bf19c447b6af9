"""Base data structures for parsed log events.

Defines the severity enumeration, the normalized log record produced by
every parser, and the outcome type returned by the low-level parse step.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any

NOT_AVAILABLE = "NA"


class LogLevel(IntEnum):
    """Ordered severity levels."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5

    @classmethod
    def from_string(cls, value: str | None) -> "LogLevel":
        """Resolve a level spelling, case-insensitively.

        Unrecognized or missing spellings resolve to DEFAULT_LEVEL.
        """
        if not value:
            return DEFAULT_LEVEL
        return _LEVEL_ALIASES.get(value.strip().upper(), DEFAULT_LEVEL)


DEFAULT_LEVEL = LogLevel.DEBUG

# log4j / log4net / java.util.logging spellings
_LEVEL_ALIASES: dict[str, LogLevel] = {
    "TRACE": LogLevel.TRACE,
    "FINEST": LogLevel.TRACE,
    "FINER": LogLevel.TRACE,
    "VERBOSE": LogLevel.TRACE,
    "DEBUG": LogLevel.DEBUG,
    "FINE": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "NOTICE": LogLevel.INFO,
    "WARN": LogLevel.WARN,
    "WARNING": LogLevel.WARN,
    "ERROR": LogLevel.ERROR,
    "SEVERE": LogLevel.ERROR,
    "FATAL": LogLevel.FATAL,
    "CRITICAL": LogLevel.FATAL,
    "ALERT": LogLevel.FATAL,
    "EMERGENCY": LogLevel.FATAL,
}


def local_now() -> datetime:
    """Current time as an aware datetime in the local zone."""
    return datetime.now().astimezone()


@dataclass
class LogRecord:
    """A single normalized log entry."""

    logger_name: str
    level: LogLevel = DEFAULT_LEVEL
    thread_name: str = NOT_AVAILABLE
    timestamp: datetime = field(default_factory=local_now)
    message: str = ""
    exception_text: str | None = None
    properties: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(timespec="milliseconds"),
            "logger_name": self.logger_name,
            "level": self.level.name,
            "thread_name": self.thread_name,
            "message": self.message,
            "properties": dict(self.properties),
        }
        if self.exception_text is not None:
            result["exception_text"] = self.exception_text
        return result


@dataclass(frozen=True)
class ParseOutcome:
    """Result of a low-level parse step.

    Exactly one of ``record`` and ``error`` is set.
    """

    success: bool
    record: LogRecord | None = None
    error: str | None = None

    @classmethod
    def ok(cls, record: LogRecord) -> "ParseOutcome":
        return cls(success=True, record=record)

    @classmethod
    def failed(cls, error: str) -> "ParseOutcome":
        return cls(success=False, error=error)
