"""UDP receiver for log4j XML events.

Each datagram is expected to hold one complete event block. Datagrams that
do not parse are still forwarded, as fallback records carrying the raw text.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from logbridge.config import Settings
from logbridge.parsers.log4j_xml import parse_from_string
from logbridge.receivers.base import BaseReceiver, ReceiverConfig

logger = logging.getLogger(__name__)


@dataclass
class UdpReceiverConfig(ReceiverConfig):
    """UDP receiver configuration."""

    name: str = "udp"
    host: str = "0.0.0.0"
    port: int = 7071
    encoding: str = "utf-8"

    @classmethod
    def from_settings(cls, settings: Settings) -> "UdpReceiverConfig":
        return cls(
            default_logger=settings.default_logger_name,
            queue_size=settings.queue_size,
            host=settings.udp_host,
            port=settings.udp_port,
        )


class _DatagramHandler(asyncio.DatagramProtocol):
    def __init__(self, receiver: "UdpReceiver"):
        self._receiver = receiver

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self._receiver.handle_datagram(data)

    def error_received(self, exc: Exception) -> None:
        self._receiver.record_error(str(exc))
        logger.warning("UDP receiver socket error: %s", exc)


class UdpReceiver(BaseReceiver):
    """Accepts log4j XML events sent as UDP datagrams (log4net UdpAppender)."""

    identifier = "log4j.udp"
    display_name = "UDP (log4j XML)"
    description = "Receives log4j XML events as UDP datagrams"
    config_class = UdpReceiverConfig

    def __init__(self, config: UdpReceiverConfig | None = None):
        super().__init__(config if config is not None else UdpReceiverConfig())
        self._transport: asyncio.DatagramTransport | None = None

    @property
    def udp_config(self) -> UdpReceiverConfig:
        return self.config

    @property
    def address(self) -> tuple[str, int] | None:
        """Bound (host, port) while listening."""
        if self._transport is None:
            return None
        host, port = self._transport.get_extra_info("sockname")[:2]
        return host, port

    async def connect(self) -> None:
        loop = asyncio.get_running_loop()
        self._transport, _ = await loop.create_datagram_endpoint(
            lambda: _DatagramHandler(self),
            local_addr=(self.udp_config.host, self.udp_config.port),
        )

        host, port = self.address
        logger.info("UDP receiver listening on %s:%d", host, port)

    async def disconnect(self) -> None:
        if self._transport is not None:
            self._transport.close()
            self._transport = None

    def handle_datagram(self, data: bytes) -> None:
        """Parse one datagram and publish the resulting record."""
        text = data.decode(self.udp_config.encoding, errors="replace")
        self.publish(parse_from_string(text, self.default_logger), size=len(data))
