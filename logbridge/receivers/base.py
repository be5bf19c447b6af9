"""Base receiver interface.

Receivers accept log4j events from a transport and hand them on as
LogRecord objects. Every concrete receiver must be constructible with no
arguments, so that the registry can build a default-configured instance.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from logbridge.config import Settings
from logbridge.parsers.base import LogRecord, local_now

logger = logging.getLogger(__name__)


class ReceiverState(str, Enum):
    """Receiver operational state."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


@dataclass
class ReceiverConfig:
    """Configuration shared by all receivers."""

    name: str = ""
    default_logger: str = "Unknown"
    queue_size: int = 10000

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReceiverConfig":
        return cls(
            default_logger=settings.default_logger_name,
            queue_size=settings.queue_size,
        )


@dataclass
class ReceiverMetrics:
    """Runtime metrics for a receiver."""

    events_received: int = 0
    events_dropped: int = 0
    events_failed: int = 0
    bytes_received: int = 0
    last_event_at: datetime | None = None
    last_error_at: datetime | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "events_received": self.events_received,
            "events_dropped": self.events_dropped,
            "events_failed": self.events_failed,
            "bytes_received": self.bytes_received,
            "last_event_at": self.last_event_at.isoformat() if self.last_event_at else None,
            "last_error_at": self.last_error_at.isoformat() if self.last_error_at else None,
            "last_error": self.last_error,
        }


class BaseReceiver(ABC):
    """Abstract base class for log receivers.

    Subclasses implement connect() and disconnect(); received records are
    passed to publish() and consumed through stream().
    """

    identifier: ClassVar[str] = ""
    display_name: ClassVar[str | None] = None
    description: ClassVar[str] = ""
    config_class: ClassVar[type[ReceiverConfig]] = ReceiverConfig

    def __init__(self, config: ReceiverConfig | None = None):
        self.config = config if config is not None else ReceiverConfig()
        self._state = ReceiverState.STOPPED
        self._metrics = ReceiverMetrics()
        self._queue: asyncio.Queue[LogRecord] | None = None

    @property
    def state(self) -> ReceiverState:
        return self._state

    @property
    def metrics(self) -> ReceiverMetrics:
        return self._metrics

    @property
    def default_logger(self) -> str:
        return self.config.default_logger

    def configure(self, config: ReceiverConfig) -> None:
        """Replace the configuration of a stopped receiver."""
        if self._state != ReceiverState.STOPPED:
            raise RuntimeError(
                f"Cannot reconfigure receiver {self.identifier} while {self._state.value}"
            )
        self.config = config

    def configure_from_settings(self, settings: Settings) -> None:
        self.configure(self.config_class.from_settings(settings))

    @abstractmethod
    async def connect(self) -> None:
        """Open the transport. Raise on failure."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the transport and release its resources."""
        ...

    async def start(self) -> bool:
        """Start the receiver.

        Returns:
            True if the receiver is running afterwards
        """
        if self._state != ReceiverState.STOPPED:
            return False

        self._state = ReceiverState.STARTING
        self._queue = asyncio.Queue(maxsize=self.config.queue_size)

        try:
            await self.connect()
        except Exception as error:
            self._state = ReceiverState.ERROR
            self._metrics.last_error = str(error)
            self._metrics.last_error_at = local_now()
            logger.error("Failed to start receiver %s: %s", self.identifier, error)
            return False

        self._state = ReceiverState.RUNNING
        logger.info("Receiver %s started", self.identifier)
        return True

    async def stop(self) -> None:
        """Stop the receiver."""
        if self._state not in (ReceiverState.RUNNING, ReceiverState.ERROR):
            return

        self._state = ReceiverState.STOPPING
        try:
            await self.disconnect()
        finally:
            self._state = ReceiverState.STOPPED
            logger.info("Receiver %s stopped", self.identifier)

    async def stream(self) -> AsyncIterator[LogRecord]:
        """Yield records as they arrive until the receiver stops."""
        while self._queue is not None and (
            self._state == ReceiverState.RUNNING or not self._queue.empty()
        ):
            try:
                yield await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except TimeoutError:
                continue

    def publish(self, record: LogRecord, size: int = 0) -> None:
        """Queue a received record, counting it as dropped if the queue is full."""
        self._metrics.events_received += 1
        self._metrics.bytes_received += size
        self._metrics.last_event_at = local_now()

        if self._queue is None:
            self._metrics.events_dropped += 1
            return
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:
            self._metrics.events_dropped += 1
            logger.warning("Receiver %s queue full, dropping event", self.identifier)

    def record_error(self, error: str) -> None:
        """Record a failed event or transport error."""
        self._metrics.events_failed += 1
        self._metrics.last_error = error
        self._metrics.last_error_at = local_now()
