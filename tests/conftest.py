"""Pytest configuration and fixtures for slide_remote_core tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from slide_remote_core.config import EngineConfig
from slide_remote_core.engine import SlideRemoteEngine
from slide_remote_core.settings import InMemorySettingsProvider
from slide_remote_core.transport.ws_client import (
    ReceiverWsMessage,
    ReceiverWsMessageType,
)


class FakeWsClient:
    """Scripted stand-in for ReceiverWsClient.

    Args:
        connect_error: Exception raised by connect().
        gate: Event connect() waits on before finishing.
    """

    def __init__(
        self,
        *,
        connect_error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.connect_error = connect_error
        self.gate = gate
        self.send_error: Exception | None = None
        self.sent: list[dict[str, Any]] = []
        self.connected_to: tuple[str, int] | None = None
        self.connect_kwargs: dict[str, Any] = {}
        self.closed = False
        self._incoming: asyncio.Queue[ReceiverWsMessage] = asyncio.Queue()

    async def connect(self, host: str, port: int, **kwargs: Any) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.connect_error is not None:
            raise self.connect_error
        self.connected_to = (host, port)
        self.connect_kwargs = kwargs

    async def close(self) -> None:
        self.closed = True
        self._incoming.put_nowait(ReceiverWsMessage(ReceiverWsMessageType.CLOSED))

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(payload)

    def receive(self, text: str) -> None:
        self._incoming.put_nowait(ReceiverWsMessage(ReceiverWsMessageType.TEXT, text))

    def remote_close(self) -> None:
        self._incoming.put_nowait(ReceiverWsMessage(ReceiverWsMessageType.CLOSED))

    def remote_error(self) -> None:
        self._incoming.put_nowait(ReceiverWsMessage(ReceiverWsMessageType.ERROR))

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        while True:
            msg = await self._incoming.get()
            yield msg
            if msg.type is not ReceiverWsMessageType.TEXT:
                return


class FakeReceiver:
    """Client factory that records every client it hands out."""

    def __init__(self) -> None:
        self.clients: list[FakeWsClient] = []
        self.connect_errors: list[Exception | None] = []
        self.gate: asyncio.Event | None = None

    def __call__(self) -> FakeWsClient:
        error = self.connect_errors.pop(0) if self.connect_errors else None
        client = FakeWsClient(connect_error=error, gate=self.gate)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeWsClient:
        return self.clients[-1]

    @property
    def frames(self) -> list[dict[str, Any]]:
        return [frame for client in self.clients for frame in client.sent]


async def drain(times: int = 20) -> None:
    """Let pending tasks run."""
    for _ in range(times):
        await asyncio.sleep(0)


@pytest.fixture
def receiver() -> FakeReceiver:
    return FakeReceiver()


@pytest.fixture
def settings() -> InMemorySettingsProvider:
    return InMemorySettingsProvider(auto_reconnect=True)


@pytest.fixture
def fast_config() -> EngineConfig:
    """Config with short delays so timer-driven paths finish quickly."""
    return EngineConfig(
        connect_timeout=1.0,
        retry_base_delay=0.01,
        retry_max_delay=0.05,
        pointer_interval=0.05,
    )


@pytest.fixture
def engine(
    settings: InMemorySettingsProvider,
    fast_config: EngineConfig,
    receiver: FakeReceiver,
) -> SlideRemoteEngine:
    return SlideRemoteEngine(settings, config=fast_config, client_factory=receiver)
