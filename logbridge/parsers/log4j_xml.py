"""log4j XML event parser.

Converts a single log4j XML event block into a LogRecord. Sample input:

    <log4j:event logger="Statyk7.Another.Name.DummyManager" timestamp="1184286222308"
                 level="ERROR" thread="1">
        <log4j:message>This is an Message</log4j:message>
        <log4j:properties>
            <log4j:data name="log4jmachinename" value="remserver" />
            <log4j:data name="log4japp" value="Test.exe" />
        </log4j:properties>
    </log4j:event>

Producers usually emit the ``log4j`` prefix without declaring it, so the
prefix (and the default namespace) are pre-bound to the log4j namespace
through a synthetic envelope element that is fed ahead of the input.
"""

import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from typing import IO, AnyStr
from xml.parsers.expat import ErrorString

from logbridge.exceptions import MalformedEventError, StreamClosedError
from logbridge.parsers.base import (
    NOT_AVAILABLE,
    LogLevel,
    LogRecord,
    ParseOutcome,
    local_now,
)

logger = logging.getLogger(__name__)

LOG4J_NAMESPACE = "http://jakarta.apache.org/log4j/"

_ENVELOPE = f'<log4j:envelope xmlns:log4j="{LOG4J_NAMESPACE}" xmlns="{LOG4J_NAMESPACE}">'


def _qualified(local_name: str) -> str:
    return f"{{{LOG4J_NAMESPACE}}}{local_name}"


EVENT_TAG = _qualified("event")
MESSAGE_TAG = _qualified("message")
THROWABLE_TAG = _qualified("throwable")
LOCATION_INFO_TAG = _qualified("locationInfo")
PROPERTIES_TAG = _qualified("properties")
DATA_TAG = _qualified("data")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLIS_PATTERN = re.compile(r"\s*[+-]?[0-9]+\s*")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class _EventScanner:
    """Feeds XML into a pull parser until the first event element is closed.

    The scanner stops consuming as soon as the event's end tag is seen, so
    callers feeding one character at a time never read past the event.
    """

    def __init__(self) -> None:
        self._parser = ET.XMLPullParser(events=("start", "end"))
        self._envelope: ET.Element | None = None
        self._depth = 0
        self._primed = False
        self.element: ET.Element | None = None
        self.error: str | None = None
        self.done = False

    @property
    def started(self) -> bool:
        """True once the opening tag of the event has been read."""
        return self.element is not None

    def feed(self, data: AnyStr) -> None:
        if not self._primed:
            self._parser.feed(_ENVELOPE.encode() if isinstance(data, bytes) else _ENVELOPE)
            self._primed = True

        # Syntax errors surface from feed(), flush() or read_events(),
        # depending on the expat version.
        try:
            self._parser.feed(data)
            self._flush()
            self._read_events()
        except ET.ParseError as error:
            self.error = f"Invalid XML: {ErrorString(error.code)}"
            self.done = True
        except UnicodeError as error:
            self.error = f"Invalid text: {error.reason}"
            self.done = True

    def _read_events(self) -> None:
        for event, element in self._parser.read_events():
            if event == "start":
                self._depth += 1
                if self._depth == 1:
                    self._envelope = element
                elif self._depth == 2 and self.element is None:
                    self._on_event_start(element)
                    if self.done:
                        return
            else:
                self._depth -= 1
                if self._depth == 1 and self.element is not None:
                    self.done = True
                    return

    def _flush(self) -> None:
        # expat 2.6+ defers reparsing of partial tokens until more data is fed
        flush = getattr(self._parser, "flush", None)
        if flush is not None:
            flush()

    def _on_event_start(self, element: ET.Element) -> None:
        leading = self._envelope.text if self._envelope is not None else None
        if leading and leading.strip():
            self.error = "Unexpected text before the log4j event"
            self.done = True
            return
        self.element = element

    def outcome(self, default_logger: str) -> ParseOutcome:
        if self.error:
            return ParseOutcome.failed(self.error)
        if self.element is None:
            return ParseOutcome.failed("No log4j event element found")
        if not self.done:
            return ParseOutcome.failed("Incomplete log4j event")
        return parse_event_element(self.element, default_logger)


def _parse_timestamp(value: str | None) -> datetime | None:
    """Convert epoch milliseconds to a local datetime, or None if unusable."""
    if value is None or not _MILLIS_PATTERN.fullmatch(value):
        return None

    millis = int(value)
    if not _INT64_MIN <= millis <= _INT64_MAX:
        return None

    try:
        return (_EPOCH + timedelta(milliseconds=millis)).astimezone()
    except (OverflowError, OSError, ValueError):
        return None


def _inner_text(element: ET.Element) -> str:
    return "".join(element.itertext())


def _read_properties(element: ET.Element, properties: dict[str, str]) -> None:
    for data in element:
        if data.tag != DATA_TAG:
            break
        name = data.get("name")
        if name is None:
            continue
        properties[name] = data.get("value", "")


def _read_children(parent: ET.Element, record: LogRecord) -> None:
    """Apply every element below the event, descending through unknown wrappers."""
    for child in parent:
        if child.tag == MESSAGE_TAG:
            record.message = _inner_text(child)
        elif child.tag == THROWABLE_TAG:
            throwable = _inner_text(child)
            record.message += "\n" + throwable
            if record.exception_text is None:
                record.exception_text = throwable
            else:
                record.exception_text += "\n" + throwable
        elif child.tag == LOCATION_INFO_TAG:
            continue
        elif child.tag == PROPERTIES_TAG:
            _read_properties(child, record.properties)
        else:
            _read_children(child, record)


def parse_event_element(element: ET.Element, default_logger: str) -> ParseOutcome:
    """Build a LogRecord from an already parsed event element.

    Args:
        element: The event element (namespace-qualified tags)
        default_logger: Logger name used when the event carries none

    Returns:
        ParseOutcome with the record, or the reason the element was rejected
    """
    if element.tag != EVENT_TAG:
        return ParseOutcome.failed(
            f"The log event is not a valid log4j XML block (root element {element.tag!r})"
        )

    record = LogRecord(
        logger_name=element.get("logger", default_logger),
        level=LogLevel.from_string(element.get("level")),
        thread_name=element.get("thread", NOT_AVAILABLE),
    )

    timestamp = _parse_timestamp(element.get("timestamp"))
    if timestamp is not None:
        record.timestamp = timestamp

    _read_children(element, record)
    return ParseOutcome.ok(record)


def parse_from_stream(stream: IO[AnyStr], default_logger: str) -> LogRecord:
    """Read exactly one log4j event from an open stream.

    The stream is read one unit at a time and is left positioned right
    after the event's closing tag. It is never closed here.

    Raises:
        StreamClosedError: The stream ended before a complete event
        MalformedEventError: The data is not a valid log4j event
        OSError: Propagated from the underlying stream
    """
    scanner = _EventScanner()
    while not scanner.done:
        data = stream.read(1)
        if not data:
            if scanner.started:
                raise StreamClosedError("Stream closed in the middle of a log4j event")
            raise StreamClosedError()
        scanner.feed(data)

    outcome = scanner.outcome(default_logger)
    if not outcome.success:
        raise MalformedEventError(outcome.error)
    return outcome.record


def fallback_record(text: str, default_logger: str, reason: str | None) -> LogRecord:
    """Record used when an event string cannot be parsed; keeps the raw text."""
    return LogRecord(
        logger_name=default_logger,
        level=LogLevel.INFO,
        thread_name=NOT_AVAILABLE,
        timestamp=local_now(),
        message=text,
        exception_text=reason,
    )


def parse_string(text: str, default_logger: str) -> ParseOutcome:
    """Parse a complete event string without substituting a fallback."""
    scanner = _EventScanner()
    scanner.feed(text)
    return scanner.outcome(default_logger)


def parse_from_string(text: str, default_logger: str) -> LogRecord:
    """Parse a complete event string. Never raises.

    Malformed input yields a fallback record carrying the raw text as the
    message and the failure reason as exception_text.
    """
    outcome = parse_string(text, default_logger)
    if outcome.success:
        return outcome.record

    logger.debug("Unparseable log4j event, keeping raw text: %s", outcome.error)
    return fallback_record(text, default_logger, outcome.error)
