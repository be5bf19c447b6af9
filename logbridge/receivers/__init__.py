"""Log receivers.

Receivers handle the transport layer for getting log4j events into
LogBridge. The registry hands out the built-in kinds by identifier.
"""

from logbridge.receivers.base import (
    BaseReceiver,
    ReceiverConfig,
    ReceiverMetrics,
    ReceiverState,
)
from logbridge.receivers.file import FileReceiver, FileReceiverConfig
from logbridge.receivers.registry import (
    ReceiverDescriptor,
    ReceiverRegistry,
    create_receiver,
    describe_receiver,
    get_registry,
    list_receivers,
)
from logbridge.receivers.tcp import TcpReceiver, TcpReceiverConfig
from logbridge.receivers.udp import UdpReceiver, UdpReceiverConfig

__all__ = [
    # Base classes
    "BaseReceiver",
    "ReceiverConfig",
    "ReceiverMetrics",
    "ReceiverState",
    # Registry
    "ReceiverDescriptor",
    "ReceiverRegistry",
    "create_receiver",
    "describe_receiver",
    "get_registry",
    "list_receivers",
    # Implementations
    "FileReceiver",
    "FileReceiverConfig",
    "TcpReceiver",
    "TcpReceiverConfig",
    "UdpReceiver",
    "UdpReceiverConfig",
]
