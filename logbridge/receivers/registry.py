"""Receiver registry.

Maps stable receiver identifiers to a display name and a zero-argument
factory. The table is built once at import time from an explicit list of
receiver kinds and is read-only afterwards.

Identifiers are persisted in user configuration; never rename one.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from logbridge.exceptions import DuplicateReceiverError
from logbridge.receivers.base import BaseReceiver
from logbridge.receivers.file import FileReceiver
from logbridge.receivers.tcp import TcpReceiver
from logbridge.receivers.udp import UdpReceiver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiverDescriptor:
    """Registry entry for one receiver kind."""

    identifier: str
    display_name: str
    factory: Callable[[], BaseReceiver]
    description: str = ""

    def __str__(self) -> str:
        return self.display_name


def describe_receiver(
    receiver_class: type[BaseReceiver],
    identifier: str | None = None,
) -> ReceiverDescriptor:
    """Build a descriptor from a receiver class.

    The display name falls back to the identifier when the class declares
    none; the identifier falls back to the class's own identifier.
    """
    identifier = identifier or receiver_class.identifier
    if not identifier:
        raise ValueError(f"{receiver_class.__name__} declares no identifier")

    return ReceiverDescriptor(
        identifier=identifier,
        display_name=receiver_class.display_name or identifier,
        factory=receiver_class,
        description=receiver_class.description,
    )


class ReceiverRegistry:
    """Immutable lookup table of receiver kinds.

    Usage:
        registry = ReceiverRegistry([describe_receiver(TcpReceiver)])

        for descriptor in registry.list():
            print(descriptor.identifier, descriptor.display_name)

        receiver = registry.create("log4j.tcp")
        if receiver is not None:
            await receiver.start()
    """

    def __init__(self, descriptors: Iterable[ReceiverDescriptor]):
        """Build the table.

        Raises:
            DuplicateReceiverError: If two descriptors share an identifier
        """
        entries: dict[str, ReceiverDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.identifier in entries:
                raise DuplicateReceiverError(descriptor.identifier)
            entries[descriptor.identifier] = descriptor

        self._entries = MappingProxyType(entries)
        self._ordered = tuple(entries.values())

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries

    def list(self) -> tuple[ReceiverDescriptor, ...]:
        """All registered receiver kinds, in registration order."""
        return self._ordered

    def get(self, identifier: str) -> ReceiverDescriptor | None:
        """Get the descriptor for an identifier, or None if unknown."""
        return self._entries.get(identifier)

    def create(self, identifier: str) -> BaseReceiver | None:
        """Create a default-configured receiver.

        Args:
            identifier: Receiver identifier, usually read from saved configuration

        Returns:
            A new receiver instance, or None if the identifier is unknown
        """
        descriptor = self._entries.get(identifier)
        if descriptor is None:
            logger.debug("Unknown receiver identifier: %s", identifier)
            return None
        return descriptor.factory()


# Built-in receiver kinds; add new kinds here.
BUILTIN_RECEIVERS: tuple[type[BaseReceiver], ...] = (
    TcpReceiver,
    UdpReceiver,
    FileReceiver,
)

_registry = ReceiverRegistry(describe_receiver(cls) for cls in BUILTIN_RECEIVERS)


def get_registry() -> ReceiverRegistry:
    """Get the global receiver registry."""
    return _registry


def create_receiver(identifier: str) -> BaseReceiver | None:
    """Create a receiver from the global registry.

    Convenience function that uses the global registry.
    """
    return _registry.create(identifier)


def list_receivers() -> list[dict[str, Any]]:
    """List all registered receivers.

    Returns:
        List of receiver info dictionaries
    """
    return [
        {
            "identifier": descriptor.identifier,
            "display_name": descriptor.display_name,
            "description": descriptor.description,
        }
        for descriptor in _registry.list()
    ]
