"""LogBridge log event parsing.

Normalizes log4j XML events into LogRecord objects.
"""

from logbridge.parsers.base import DEFAULT_LEVEL, LogLevel, LogRecord, ParseOutcome
from logbridge.parsers.log4j_xml import (
    LOG4J_NAMESPACE,
    parse_from_stream,
    parse_from_string,
)

__all__ = [
    "DEFAULT_LEVEL",
    "LOG4J_NAMESPACE",
    "LogLevel",
    "LogRecord",
    "ParseOutcome",
    "parse_from_stream",
    "parse_from_string",
]
