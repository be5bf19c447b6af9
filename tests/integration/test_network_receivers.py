"""Network receiver tests over loopback sockets."""

import asyncio
import socket

import pytest
import pytest_asyncio

from logbridge.parsers.base import LogLevel, LogRecord
from logbridge.receivers import (
    BaseReceiver,
    ReceiverState,
    TcpReceiver,
    TcpReceiverConfig,
    UdpReceiver,
    UdpReceiverConfig,
)
from tests.factories import SAMPLE_EVENT, make_event

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def collect(receiver: BaseReceiver, count: int, timeout: float = 5.0) -> list[LogRecord]:
    """Read ``count`` records from a running receiver."""
    records = []

    async def read():
        async for record in receiver.stream():
            records.append(record)
            if len(records) == count:
                return

    await asyncio.wait_for(read(), timeout)
    return records


async def wait_until(predicate, timeout: float = 5.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise TimeoutError("condition not reached")
        await asyncio.sleep(0.01)


@pytest_asyncio.fixture
async def tcp_receiver():
    receiver = TcpReceiver(
        TcpReceiverConfig(host="127.0.0.1", port=0, default_logger="Tcp.Default")
    )
    assert await receiver.start()
    yield receiver
    await receiver.stop()


@pytest_asyncio.fixture
async def udp_receiver():
    receiver = UdpReceiver(
        UdpReceiverConfig(host="127.0.0.1", port=0, default_logger="Udp.Default")
    )
    assert await receiver.start()
    yield receiver
    await receiver.stop()


class TestTcpReceiver:
    """Tests for event streams over TCP."""

    async def test_receives_consecutive_events(self, tcp_receiver):
        """Test several events sent on one connection arrive in order."""
        reader, writer = await asyncio.open_connection(*tcp_receiver.address)
        writer.write((make_event(message="one") + "\r\n" + make_event(message="two")).encode())
        await writer.drain()

        records = await collect(tcp_receiver, 2)

        assert [r.message for r in records] == ["one", "two"]
        assert records[0].logger_name == "Test.Logger"
        writer.close()
        await writer.wait_closed()

    async def test_event_split_across_writes(self, tcp_receiver):
        reader, writer = await asyncio.open_connection(*tcp_receiver.address)
        data = SAMPLE_EVENT.encode()

        writer.write(data[:25])
        await writer.drain()
        await asyncio.sleep(0.05)
        writer.write(data[25:])
        await writer.drain()

        [record] = await collect(tcp_receiver, 1)
        assert record.level == LogLevel.ERROR
        assert record.properties == {"host": "srv1"}
        writer.close()
        await writer.wait_closed()

    async def test_closed_connection_is_released(self, tcp_receiver):
        """Test a client disconnect ends its connection without an error."""
        reader, writer = await asyncio.open_connection(*tcp_receiver.address)
        writer.write(SAMPLE_EVENT.encode())
        await writer.drain()
        await collect(tcp_receiver, 1)

        writer.close()
        await writer.wait_closed()
        await wait_until(lambda: tcp_receiver.connection_count == 0)

        assert tcp_receiver.metrics.events_failed == 0
        assert tcp_receiver.state == ReceiverState.RUNNING

    async def test_malformed_event_drops_connection(self, tcp_receiver):
        reader, writer = await asyncio.open_connection(*tcp_receiver.address)
        writer.write(b"<log4j:event><oops></log4j:event>")
        await writer.drain()

        await wait_until(lambda: tcp_receiver.metrics.events_failed == 1)
        assert tcp_receiver.metrics.last_error.startswith("Invalid XML")
        writer.close()

    async def test_stop_with_open_connection(self):
        """Test stopping wakes connections blocked waiting for data."""
        receiver = TcpReceiver(TcpReceiverConfig(host="127.0.0.1", port=0))
        assert await receiver.start()

        reader, writer = await asyncio.open_connection(*receiver.address)
        await wait_until(lambda: receiver.connection_count == 1)

        await asyncio.wait_for(receiver.stop(), 5.0)

        assert receiver.state == ReceiverState.STOPPED
        assert receiver.address is None
        assert receiver.connection_count == 0
        writer.close()

    async def test_port_in_use_fails_start(self, tcp_receiver):
        host, port = tcp_receiver.address
        receiver = TcpReceiver(TcpReceiverConfig(host=host, port=port))

        assert await receiver.start() is False
        assert receiver.state == ReceiverState.ERROR


class TestUdpReceiver:
    """Tests for events sent as datagrams."""

    async def test_receives_datagram(self, udp_receiver):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.sendto(SAMPLE_EVENT.encode(), udp_receiver.address)

            [record] = await collect(udp_receiver, 1)

        assert record.logger_name == "App.Worker"
        assert record.message == "Boom"

    async def test_malformed_datagram_kept_as_fallback(self, udp_receiver):
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.sendto(b"plain text line", udp_receiver.address)

            [record] = await collect(udp_receiver, 1)

        assert record.message == "plain text line"
        assert record.logger_name == "Udp.Default"
        assert record.level == LogLevel.INFO
