"""TCP receiver for log4j XML events.

Listens for connections from log4j / log4net XmlLayout appenders. Each
connection carries a sequence of event blocks; every block is read with
parse_from_stream in a worker thread, so the blocking read happens off the
event loop and a broken connection surfaces as an exception on that read.
"""

import asyncio
import contextlib
import logging
import socket
from dataclasses import dataclass
from typing import Any

from logbridge.config import Settings
from logbridge.exceptions import MalformedEventError, StreamClosedError
from logbridge.parsers.log4j_xml import parse_from_stream
from logbridge.receivers.base import BaseReceiver, ReceiverConfig, ReceiverState

logger = logging.getLogger(__name__)


@dataclass
class TcpReceiverConfig(ReceiverConfig):
    """TCP receiver configuration."""

    name: str = "tcp"
    host: str = "0.0.0.0"
    port: int = 4505
    backlog: int = 100

    @classmethod
    def from_settings(cls, settings: Settings) -> "TcpReceiverConfig":
        return cls(
            default_logger=settings.default_logger_name,
            queue_size=settings.queue_size,
            host=settings.tcp_host,
            port=settings.tcp_port,
        )


class TcpReceiver(BaseReceiver):
    """Accepts log4j XML event streams over TCP.

    Configuration:
        host: Listener bind address
        port: Listener port (0 picks a free port)
        backlog: Pending connection backlog
    """

    identifier = "log4j.tcp"
    display_name = "TCP (log4j XML)"
    description = "Receives log4j XML events over TCP connections"
    config_class = TcpReceiverConfig

    def __init__(self, config: TcpReceiverConfig | None = None):
        super().__init__(config if config is not None else TcpReceiverConfig())
        self._server_socket: socket.socket | None = None
        self._accept_task: asyncio.Task | None = None
        self._connections: dict[socket.socket, asyncio.Task] = {}

    @property
    def tcp_config(self) -> TcpReceiverConfig:
        return self.config

    @property
    def address(self) -> tuple[str, int] | None:
        """Bound (host, port) while listening."""
        if self._server_socket is None:
            return None
        host, port = self._server_socket.getsockname()[:2]
        return host, port

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self) -> None:
        """Bind the listening socket and start accepting connections."""
        server_socket = socket.create_server(
            (self.tcp_config.host, self.tcp_config.port),
            backlog=self.tcp_config.backlog,
        )
        server_socket.setblocking(False)
        self._server_socket = server_socket
        self._accept_task = asyncio.create_task(self._accept_loop(server_socket))

        host, port = self.address
        logger.info("TCP receiver listening on %s:%d", host, port)

    async def disconnect(self) -> None:
        """Stop accepting and shut down open connections."""
        if self._accept_task is not None:
            self._accept_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._accept_task
            self._accept_task = None

        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None

        # Shutting the socket down wakes the worker thread blocked in recv()
        for conn in list(self._connections):
            with contextlib.suppress(OSError):
                conn.shutdown(socket.SHUT_RDWR)

        if self._connections:
            await asyncio.gather(*self._connections.values(), return_exceptions=True)
        self._connections.clear()

    async def _accept_loop(self, server_socket: socket.socket) -> None:
        loop = asyncio.get_running_loop()

        while True:
            try:
                conn, addr = await loop.sock_accept(server_socket)
            except OSError as error:
                if self.state == ReceiverState.RUNNING:
                    self.record_error(str(error))
                    logger.error("TCP receiver stopped accepting: %s", error)
                return

            conn.setblocking(True)
            task = asyncio.create_task(self._serve_connection(conn, addr))
            self._connections[conn] = task
            task.add_done_callback(lambda _task, conn=conn: self._connections.pop(conn, None))

    async def _serve_connection(self, conn: socket.socket, addr: Any) -> None:
        peer = f"{addr[0]}:{addr[1]}"
        logger.info("TCP connection from %s", peer)

        stream = conn.makefile("rb")
        try:
            while True:
                record = await asyncio.to_thread(parse_from_stream, stream, self.default_logger)
                self.publish(record)
        except StreamClosedError:
            logger.info("TCP connection from %s closed", peer)
        except MalformedEventError as error:
            self.record_error(error.message)
            logger.warning("Dropping TCP connection from %s: %s", peer, error.message)
        except OSError as error:
            self.record_error(str(error))
            logger.warning("TCP connection from %s failed: %s", peer, error)
        finally:
            stream.close()
            conn.close()
