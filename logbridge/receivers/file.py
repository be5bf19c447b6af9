"""File receiver for log4j XML events.

Polls a file written by a log4j / log4net XmlLayout file appender and
publishes every complete event appended since the last poll.
"""

import asyncio
import codecs
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path

from logbridge.config import Settings
from logbridge.parsers.base import LogRecord
from logbridge.parsers.log4j_xml import parse_from_string
from logbridge.receivers.base import BaseReceiver, ReceiverConfig

logger = logging.getLogger(__name__)

EVENT_END = "</log4j:event>"


@dataclass
class FileReceiverConfig(ReceiverConfig):
    """File receiver configuration."""

    name: str = "file"
    path: str = ""
    poll_interval: float = 1.0  # seconds
    read_from_start: bool = False
    encoding: str = "utf-8"

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileReceiverConfig":
        return cls(
            default_logger=settings.default_logger_name,
            queue_size=settings.queue_size,
            path=settings.file_path,
            poll_interval=settings.file_poll_interval,
            read_from_start=settings.file_read_from_start,
        )


class FileReceiver(BaseReceiver):
    """Tails a log4j XML file.

    Events are split on the closing ``</log4j:event>`` tag, so the file
    must be written with the prefixed element names XmlLayout produces.
    A file that shrinks is treated as rotated and re-read from the start.
    """

    identifier = "log4j.file"
    display_name = "File (log4j XML)"
    description = "Reads log4j XML events appended to a file"
    config_class = FileReceiverConfig

    def __init__(self, config: FileReceiverConfig | None = None):
        super().__init__(config if config is not None else FileReceiverConfig())
        self._poll_task: asyncio.Task | None = None
        self._reset()

    @property
    def file_config(self) -> FileReceiverConfig:
        return self.config

    @property
    def path(self) -> Path:
        return Path(self.file_config.path)

    async def connect(self) -> None:
        if not self.file_config.path:
            raise ValueError("No file path configured")

        self._reset()
        if not self.file_config.read_from_start and self.path.exists():
            self._position = self.path.stat().st_size

        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info("File receiver watching %s", self.path)

    async def disconnect(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None

    async def _poll_loop(self) -> None:
        while True:
            try:
                parsed = await asyncio.to_thread(self.read_events)
            except OSError as error:
                self.record_error(str(error))
                logger.warning("Failed to read %s: %s", self.path, error)
            else:
                self._publish_all(parsed)
            await asyncio.sleep(self.file_config.poll_interval)

    def poll(self) -> int:
        """Read newly appended text and publish each complete event.

        Returns:
            Number of events published
        """
        parsed = self.read_events()
        self._publish_all(parsed)
        return len(parsed)

    def read_events(self) -> list[tuple[LogRecord, int]]:
        """Parse every complete event appended since the last read.

        Does not touch the queue, so it can run in a worker thread.

        Returns:
            (record, size) pairs in file order
        """
        if not self.path.exists():
            return []

        size = self.path.stat().st_size
        if size < self._position:
            logger.info("File %s was truncated, reading from the start", self.path)
            self._reset()
        if size == self._position:
            return []

        with self.path.open("rb") as handle:
            handle.seek(self._position)
            chunk = handle.read()

        self._position += len(chunk)
        self._buffer += self._decoder.decode(chunk)
        return self._split_events()

    def _split_events(self) -> list[tuple[LogRecord, int]]:
        parsed = []
        while (end := self._buffer.find(EVENT_END)) >= 0:
            end += len(EVENT_END)
            block = self._buffer[:end].strip()
            self._buffer = self._buffer[end:]
            parsed.append((parse_from_string(block, self.default_logger), len(block)))
        return parsed

    def _publish_all(self, parsed: list[tuple[LogRecord, int]]) -> None:
        for record, size in parsed:
            self.publish(record, size=size)

    def _reset(self) -> None:
        self._position = 0
        self._buffer = ""
        # utf-8-sig drops the byte order mark file appenders may write first
        encoding = self.file_config.encoding
        if codecs.lookup(encoding).name == "utf-8":
            encoding = "utf-8-sig"
        decoder_class = codecs.getincrementaldecoder(encoding)
        self._decoder: codecs.IncrementalDecoder = decoder_class(errors="replace")
