"""Tests for TransportSession."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from slide_remote_core.errors import (
    ConnectRefusedError,
    ConnectSupersededError,
    ConnectTimeoutError,
    LinkLostError,
    NotConnectedError,
    SendFailedError,
)
from slide_remote_core.protocol import Frame, TargetAddress
from slide_remote_core.transport.session import TransportClosed, TransportSession

from .conftest import FakeReceiver, drain

ADDRESS = TargetAddress("192.168.1.5", 8080)


def _frame(command: str = "next") -> Frame:
    return Frame(command=command, params={}, timestamp=1)


def _session(receiver: FakeReceiver, **kwargs) -> tuple[TransportSession, MagicMock]:
    on_closed = MagicMock()
    session = TransportSession(
        on_closed=on_closed, client_factory=receiver, connect_timeout=1.0, **kwargs
    )
    return session, on_closed


class TestOpen:
    """Tests for TransportSession.open()."""

    @pytest.mark.asyncio
    async def test_open_success(self, receiver):
        """Test a successful open."""
        session, _ = _session(receiver, path="/remote")

        generation = await session.open(ADDRESS)

        assert generation == session.generation == 1
        assert session.is_open
        assert receiver.last.connected_to == ("192.168.1.5", 8080)
        assert receiver.last.connect_kwargs["path"] == "/remote"
        await session.close()

    @pytest.mark.asyncio
    async def test_open_failure_propagates(self, receiver):
        """Test connect errors propagate from open()."""
        receiver.connect_errors.append(ConnectRefusedError("refused"))
        session, on_closed = _session(receiver)

        with pytest.raises(ConnectRefusedError):
            await session.open(ADDRESS)

        assert not session.is_open
        on_closed.assert_not_called()

    @pytest.mark.asyncio
    async def test_newer_open_supersedes_pending_one(self, receiver):
        """Test a newer open supersedes a pending one."""
        receiver.gate = asyncio.Event()
        session, _ = _session(receiver)

        first = asyncio.create_task(session.open(ADDRESS))
        await drain()
        receiver.gate.set()
        second = await session.open(TargetAddress("192.168.1.6", 8080))

        with pytest.raises(ConnectSupersededError):
            await first
        assert second == session.generation
        assert session.address == TargetAddress("192.168.1.6", 8080)
        assert receiver.clients[0].connected_to is None
        await session.close()

    @pytest.mark.asyncio
    async def test_close_cancels_pending_open(self, receiver):
        """Test close() cancels a pending open."""
        receiver.gate = asyncio.Event()
        session, on_closed = _session(receiver)

        pending = asyncio.create_task(session.open(ADDRESS))
        await drain()
        await session.close()

        with pytest.raises(ConnectSupersededError):
            await pending
        assert not session.is_open
        on_closed.assert_not_called()

    @pytest.mark.asyncio
    async def test_open_times_out_when_connect_stalls(self, receiver):
        """Test a stalled connect fails with ConnectTimeoutError."""
        receiver.gate = asyncio.Event()
        on_closed = MagicMock()
        session = TransportSession(
            on_closed=on_closed, client_factory=receiver, connect_timeout=0.05
        )

        with pytest.raises(ConnectTimeoutError):
            await asyncio.wait_for(session.open(ADDRESS), 1.0)

        assert not session.is_open
        assert receiver.last.connected_to is None
        on_closed.assert_not_called()

    @pytest.mark.asyncio
    async def test_open_replaces_live_connection(self, receiver):
        """Test open() replaces the live connection."""
        session, on_closed = _session(receiver)
        first_generation = await session.open(ADDRESS)

        await session.open(ADDRESS)

        assert receiver.clients[0].closed
        on_closed.assert_called_once()
        closed: TransportClosed = on_closed.call_args.args[0]
        assert closed.generation == first_generation
        assert closed.error is None
        await session.close()


class TestSend:
    """Tests for TransportSession.send()."""

    def test_send_before_open(self, receiver):
        """Test sending before open raises."""
        session, _ = _session(receiver)
        with pytest.raises(NotConnectedError):
            session.send(_frame())

    @pytest.mark.asyncio
    async def test_send_after_close(self, receiver):
        """Test sending after close raises."""
        session, _ = _session(receiver)
        await session.open(ADDRESS)
        await session.close()

        with pytest.raises(NotConnectedError):
            session.send(_frame())

    @pytest.mark.asyncio
    async def test_send_preserves_order(self, receiver):
        """Test frames are sent in order."""
        session, _ = _session(receiver)
        await session.open(ADDRESS)

        for command in ("next", "previous", "black_screen"):
            session.send(_frame(command))
        await drain()

        assert [f["command"] for f in receiver.last.sent] == [
            "next",
            "previous",
            "black_screen",
        ]
        await session.close()

    @pytest.mark.asyncio
    async def test_send_failure_is_reported_and_closes(self, receiver):
        """Test a send failure is reported and closes the link."""
        on_send_failed = MagicMock()
        session, on_closed = _session(receiver, on_send_failed=on_send_failed)
        generation = await session.open(ADDRESS)
        receiver.last.send_error = SendFailedError("broken pipe")

        session.send(_frame())
        await drain()

        on_send_failed.assert_called_once()
        failed_generation, frame, error = on_send_failed.call_args.args
        assert failed_generation == generation
        assert frame.command == "next"
        assert isinstance(error, SendFailedError)
        on_closed.assert_called_once()
        assert isinstance(on_closed.call_args.args[0].error, SendFailedError)
        assert not session.is_open


class TestClosed:
    """Tests for closure notification."""

    @pytest.mark.asyncio
    async def test_remote_close_notifies_link_lost(self, receiver):
        """Test a remote close reports link loss."""
        session, on_closed = _session(receiver)
        generation = await session.open(ADDRESS)

        receiver.last.remote_close()
        await drain()

        on_closed.assert_called_once()
        closed: TransportClosed = on_closed.call_args.args[0]
        assert closed.generation == generation
        assert isinstance(closed.error, LinkLostError)
        assert not session.is_open

    @pytest.mark.asyncio
    async def test_remote_error_notifies_link_lost(self, receiver):
        """Test a connection error reports link loss."""
        session, on_closed = _session(receiver)
        await session.open(ADDRESS)

        receiver.last.remote_error()
        await drain()

        assert isinstance(on_closed.call_args.args[0].error, LinkLostError)

    @pytest.mark.asyncio
    async def test_receiver_text_is_ignored(self, receiver):
        """Test inbound text keeps the connection open."""
        session, on_closed = _session(receiver)
        await session.open(ADDRESS)

        receiver.last.receive('{"status": "ok"}')
        await drain()

        on_closed.assert_not_called()
        assert session.is_open
        await session.close()

    @pytest.mark.asyncio
    async def test_closed_notified_exactly_once(self, receiver):
        """Test closure is reported exactly once."""
        session, on_closed = _session(receiver)
        await session.open(ADDRESS)

        receiver.last.remote_close()
        await drain()
        await session.close()
        await session.close()

        on_closed.assert_called_once()

    @pytest.mark.asyncio
    async def test_local_close(self, receiver):
        """Test a local close reports no error."""
        session, on_closed = _session(receiver)
        generation = await session.open(ADDRESS)

        await session.close()

        assert receiver.last.closed
        closed: TransportClosed = on_closed.call_args.args[0]
        assert closed.generation == generation
        assert closed.error is None
        assert session.generation > generation

    @pytest.mark.asyncio
    async def test_close_is_idempotent_without_connection(self, receiver):
        """Test close() without a connection is a no-op."""
        session, on_closed = _session(receiver)
        await session.close()
        await session.close()
        on_closed.assert_not_called()
