"""Transport session owning one logical connection to a receiver.

The session knows nothing about commands. It opens a WebSocket, sends frames
in order from a single writer task, watches the connection with a listener
task and reports closure exactly once per opened connection.

Every ``open()`` and ``close()`` bumps a generation counter. A connection
attempt whose generation is no longer current is cancelled, and if it still
completes its connection is closed and discarded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..errors import (
    ConnectSupersededError,
    ConnectTimeoutError,
    LinkLostError,
    NotConnectedError,
    SendFailedError,
    SlideRemoteError,
)
from ..protocol import Frame, TargetAddress
from .ws_client import ReceiverWsClient, ReceiverWsMessageType

_LOGGER = logging.getLogger(__name__)

CLOSE_TIMEOUT = 2.0


@dataclass(frozen=True)
class TransportClosed:
    """Notification that an opened connection has ended.

    Attributes:
        generation: Generation of the connection that closed.
        reason: Human-readable reason.
        error: Failure that ended the connection, None for a local close.
    """

    generation: int
    reason: str
    error: SlideRemoteError | None = None


ClosedCallback = Callable[[TransportClosed], None]
SendFailedCallback = Callable[[int, Frame, SlideRemoteError], None]


class TransportSession:
    """One logical connection to a presentation receiver.

    Usage:
        transport = TransportSession(on_closed=handle_closed)
        await transport.open(TargetAddress("192.168.1.5", 8080))
        transport.send(frame)
        await transport.close()
    """

    def __init__(
        self,
        *,
        on_closed: ClosedCallback | None = None,
        on_send_failed: SendFailedCallback | None = None,
        client_factory: Callable[[], ReceiverWsClient] = ReceiverWsClient,
        path: str = "/",
        connect_timeout: float = 10.0,
        ping_interval: int | None = 20,
    ) -> None:
        self._on_closed = on_closed
        self._on_send_failed = on_send_failed
        self._client_factory = client_factory
        self._path = path
        self._connect_timeout = connect_timeout
        self._ping_interval = ping_interval

        self._generation = 0
        self._open_task: asyncio.Task[ReceiverWsClient] | None = None

        # Live connection
        self._client: ReceiverWsClient | None = None
        self._address: TargetAddress | None = None
        self._live_generation: int | None = None
        self._outbox: asyncio.Queue[Frame] | None = None
        self._listen_task: asyncio.Task[None] | None = None
        self._send_task: asyncio.Task[None] | None = None

    @property
    def generation(self) -> int:
        """Generation of the most recent open() or close() request."""
        return self._generation

    @property
    def is_open(self) -> bool:
        return self._client is not None

    @property
    def address(self) -> TargetAddress | None:
        return self._address

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def open(self, address: TargetAddress) -> int:
        """Open a connection, replacing any current or pending one.

        Returns:
            Generation number identifying the new connection.

        Raises:
            ConnectSupersededError: A newer open() or close() replaced this one.
            ConnectTimeoutError: The receiver did not answer in time.
            ConnectRefusedError: The connection failed.
            AddressInvalidError: The address cannot form a receiver URL.
        """
        self._generation += 1
        generation = self._generation
        self._cancel_open()
        await self._teardown("superseded by a new connection")

        if generation != self._generation:
            raise ConnectSupersededError(f"Connection to {address} superseded")

        _LOGGER.info("[%s] Connecting (generation %d)", address, generation)
        task = asyncio.create_task(self._connect(address))
        self._open_task = task
        try:
            done, _ = await asyncio.wait({task}, timeout=self._connect_timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._open_task is task:
                self._open_task = None

        if not done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            if generation != self._generation:
                raise ConnectSupersededError(f"Connection to {address} superseded")
            await self._discard(task, address)
            raise ConnectTimeoutError(
                f"Connection to {address} timed out after {self._connect_timeout}s"
            )

        if task.cancelled() or generation != self._generation:
            await self._discard(task, address)
            raise ConnectSupersededError(f"Connection to {address} superseded")

        client = task.result()
        self._attach(client, address, generation)
        _LOGGER.info("[%s] Connected (generation %d)", address, generation)
        return generation

    def send(self, frame: Frame) -> None:
        """Queue a frame for sending without waiting for the network.

        Failures are reported through ``on_send_failed`` and end the
        connection.

        Raises:
            NotConnectedError: If no connection is open.
        """
        if self._client is None or self._outbox is None:
            raise NotConnectedError("Not connected to a receiver")
        self._outbox.put_nowait(frame)

    async def close(self) -> None:
        """Close the connection and cancel any pending open. Idempotent."""
        self._generation += 1
        self._cancel_open()
        await self._teardown("closed by client")

    # -------------------------------------------------------------------------
    # Internal: Connection lifecycle
    # -------------------------------------------------------------------------

    async def _connect(self, address: TargetAddress) -> ReceiverWsClient:
        client = self._client_factory()
        await client.connect(
            address.host,
            address.port,
            path=self._path,
            ping_interval=self._ping_interval,
            timeout=self._connect_timeout,
        )
        return client

    def _cancel_open(self) -> None:
        if self._open_task is not None and not self._open_task.done():
            self._open_task.cancel()

    async def _discard(
        self, task: asyncio.Task[ReceiverWsClient], address: TargetAddress
    ) -> None:
        """Drop the outcome of a stale connection attempt."""
        if task.cancelled():
            return
        if task.exception() is not None:
            _LOGGER.debug(
                "[%s] Ignoring stale connect failure: %s", address, task.exception()
            )
            return
        _LOGGER.debug("[%s] Closing stale connection", address)
        await self._close_client(task.result(), address)

    def _attach(
        self, client: ReceiverWsClient, address: TargetAddress, generation: int
    ) -> None:
        self._client = client
        self._address = address
        self._live_generation = generation
        self._outbox = asyncio.Queue()
        self._listen_task = asyncio.create_task(self._listen(client, generation))
        self._send_task = asyncio.create_task(
            self._send_loop(client, self._outbox, generation)
        )

    async def _teardown(self, reason: str) -> None:
        if self._live_generation is not None:
            await self._shutdown(self._live_generation, reason)

    async def _shutdown(
        self,
        generation: int,
        reason: str,
        error: SlideRemoteError | None = None,
    ) -> None:
        """End the live connection once and notify ``on_closed``."""
        if self._live_generation != generation:
            return
        self._live_generation = None

        client = self._client
        address = self._address
        self._client = None
        self._outbox = None

        current = asyncio.current_task()
        tasks = [
            task
            for task in (self._listen_task, self._send_task)
            if task is not None and task is not current
        ]
        self._listen_task = None
        self._send_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if client is not None:
            await self._close_client(client, address)

        _LOGGER.info("[%s] Connection closed: %s", address, reason)
        if self._on_closed:
            self._on_closed(TransportClosed(generation, reason, error))

    async def _close_client(
        self, client: ReceiverWsClient, address: TargetAddress | None
    ) -> None:
        try:
            await asyncio.wait_for(client.close(), timeout=CLOSE_TIMEOUT)
        except TimeoutError:
            _LOGGER.warning("[%s] WebSocket close timed out", address)
        except (OSError, SlideRemoteError) as err:
            _LOGGER.debug("[%s] Error while closing WebSocket: %s", address, err)

    # -------------------------------------------------------------------------
    # Internal: Listener and writer
    # -------------------------------------------------------------------------

    async def _listen(self, client: ReceiverWsClient, generation: int) -> None:
        """Watch the connection until the receiver closes it or it fails."""
        error: SlideRemoteError
        try:
            async for msg in client:
                if msg.type is ReceiverWsMessageType.TEXT:
                    _LOGGER.debug("[%s] Receiver message: %s", self._address, msg.data)
                    continue
                if msg.type is ReceiverWsMessageType.CLOSED:
                    error = LinkLostError("Connection closed by receiver")
                else:
                    error = LinkLostError("Connection error")
                break
            else:
                error = LinkLostError("Connection closed by receiver")
        except asyncio.CancelledError:
            raise
        except SlideRemoteError as err:
            error = LinkLostError(str(err))

        _LOGGER.warning("[%s] %s", self._address, error)
        await self._shutdown(generation, str(error), error)

    async def _send_loop(
        self,
        client: ReceiverWsClient,
        outbox: asyncio.Queue[Frame],
        generation: int,
    ) -> None:
        """Send queued frames in order until the connection ends."""
        while True:
            frame = await outbox.get()
            try:
                await client.send_json(frame.to_dict())
            except SlideRemoteError as err:
                error = err
            except OSError as err:
                error = SendFailedError(f"Send failed: {err}")
            else:
                _LOGGER.debug("[%s] Sent %s", self._address, frame.command)
                continue

            _LOGGER.warning(
                "[%s] Failed to send %s: %s", self._address, frame.command, error
            )
            if self._on_send_failed:
                self._on_send_failed(generation, frame, error)
            await self._shutdown(generation, str(error), error)
            return
