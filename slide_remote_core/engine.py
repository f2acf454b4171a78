"""Remote control engine for driving a presentation over the network.

This module is the public surface used by the UI. It handles:
- Connecting, disconnecting and manual retry
- Automatic reconnection with backoff
- Sending commands and streaming pointer movement
- Publishing session state snapshots to subscribers
- Recording connection history through the settings provider
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from .commands import TOGGLE_POINTER, Command, PointerMove
from .config import EngineConfig
from .errors import (
    ConnectSupersededError,
    LinkLostError,
    SlideRemoteError,
)
from .protocol import Frame, TargetAddress, parse_address
from .sequencer import CommandSequencer
from .settings import ConnectionHistoryEntry, SettingsProvider
from .state import (
    ConnectionStatus,
    Connected,
    ConnectRequested,
    Disconnected,
    DisconnectRequested,
    RetryScheduled,
    SendFailed,
    SessionState,
    SessionStateStore,
    SettingsChanged,
    StateListener,
)
from .supervisor import ReconnectionSupervisor
from .transport.session import TransportClosed, TransportSession
from .transport.ws_client import ReceiverWsClient

_LOGGER = logging.getLogger(__name__)


class SlideRemoteEngine:
    """Connection and command engine for a presentation remote.

    Usage:
        engine = SlideRemoteEngine(settings)
        engine.subscribe(render)
        await engine.connect("192.168.1.5:8080")
        engine.send_command(NEXT)
        engine.set_pointer_mode(True)
        engine.move_pointer(45.5, 60.0)
        await engine.disconnect()
    """

    def __init__(
        self,
        settings: SettingsProvider,
        *,
        config: EngineConfig | None = None,
        client_factory: Callable[[], ReceiverWsClient] = ReceiverWsClient,
    ) -> None:
        self._settings = settings
        self._config = config if config is not None else EngineConfig()

        self._store = SessionStateStore(
            SessionState(auto_reconnect=settings.auto_reconnect)
        )
        self._transport = TransportSession(
            on_closed=self._handle_transport_closed,
            on_send_failed=self._handle_send_failed,
            client_factory=client_factory,
            path=self._config.path,
            connect_timeout=self._config.connect_timeout,
            ping_interval=self._config.ping_interval,
        )
        self._sequencer = CommandSequencer(
            self._store,
            self._transport,
            pointer_interval=self._config.pointer_interval,
        )
        self._supervisor = ReconnectionSupervisor(
            self._retry_connect,
            self._config.backoff_policy(),
            name="slide-remote",
        )
        self._target: TargetAddress | None = None

    # -------------------------------------------------------------------------
    # Public API: State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Current session state snapshot."""
        return self._store.current()

    @property
    def retry_pending(self) -> bool:
        return self._supervisor.pending

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for state snapshots; returns an unsubscriber."""
        return self._store.subscribe(listener)

    def history(self) -> list[ConnectionHistoryEntry]:
        """Receivers connected to before, most recent first."""
        return self._settings.load()

    # -------------------------------------------------------------------------
    # Public API: Connection Management
    # -------------------------------------------------------------------------

    async def connect(self, address: str) -> bool:
        """Connect to a receiver, replacing any current connection.

        Cancels a pending automatic retry and resets the retry counter.

        Returns:
            True if connected, False if the attempt failed or was superseded.
        """
        self._supervisor.cancel()
        self._sequencer.reset()
        self._store.transition(ConnectRequested(str(address).strip()))

        try:
            target = parse_address(address)
        except SlideRemoteError as err:
            _LOGGER.warning("[%s] %s", address, err)
            self._target = None
            await self._transport.close()
            self._handle_failure(err)
            return False

        self._target = target
        return await self._open(target)

    async def retry(self) -> bool:
        """Reconnect to the last target right away."""
        target = self.state.target_address
        if target is None:
            _LOGGER.debug("Retry requested without a previous target")
            return False
        return await self.connect(target)

    async def disconnect(self) -> None:
        """Close the connection and stop any automatic retry."""
        _LOGGER.info("[%s] Disconnecting", self._target)
        self._supervisor.cancel()
        self._sequencer.reset()
        self._store.transition(DisconnectRequested())
        await self._transport.close()

    def set_auto_reconnect(self, enabled: bool) -> None:
        """Change the auto-reconnect setting and apply it to the session."""
        self._settings.auto_reconnect = enabled
        self._store.transition(SettingsChanged(enabled))
        if not enabled:
            self._supervisor.cancel()

    # -------------------------------------------------------------------------
    # Public API: Commands
    # -------------------------------------------------------------------------

    def send_command(self, command: Command) -> None:
        """Send a command to the receiver.

        Raises:
            NotConnectedError: If not connected; nothing is sent.
        """
        self._sequencer.submit(command)

    def set_pointer_mode(self, enabled: bool) -> None:
        """Turn pointer mode on or off on both ends."""
        if self.state.is_pointer_mode != enabled:
            self._sequencer.submit(TOGGLE_POINTER)

    def move_pointer(self, x: float, y: float) -> None:
        """Move the pointer to a position given in screen percent."""
        self._sequencer.submit(PointerMove(x, y))

    # -------------------------------------------------------------------------
    # Internal: Connection State Machine
    # -------------------------------------------------------------------------

    async def _open(self, target: TargetAddress) -> bool:
        try:
            await self._transport.open(target)
        except ConnectSupersededError:
            _LOGGER.debug("[%s] Stale connection attempt discarded", target)
            return False
        except SlideRemoteError as err:
            _LOGGER.warning("[%s] Connection failed: %s", target, err)
            self._handle_failure(err)
            return False

        self._supervisor.cancel()
        self._store.transition(Connected())
        _LOGGER.info("[%s] Connected", target)
        self._remember(target)
        return True

    async def _retry_connect(self, attempt: int) -> None:
        if self.state.status is not ConnectionStatus.ERROR or self._target is None:
            _LOGGER.debug("Retry %d skipped in status %s", attempt, self.state.status)
            return
        self._store.transition(RetryScheduled(attempt))
        await self._open(self._target)

    def _handle_failure(self, err: SlideRemoteError) -> None:
        """Record a failure in the session state and retry if allowed."""
        self._sequencer.reset()
        if isinstance(err, LinkLostError):
            state = self._store.transition(Disconnected(str(err), err.kind))
        else:
            state = self._store.transition(SendFailed(str(err), err.kind))

        if (
            state.status is ConnectionStatus.ERROR
            and state.auto_reconnect
            and err.retryable
            and self._target is not None
        ):
            self._supervisor.schedule(state.retry_attempt + 1)

    def _handle_transport_closed(self, closed: TransportClosed) -> None:
        if closed.generation != self._transport.generation:
            _LOGGER.debug(
                "Ignoring close of stale connection %d: %s",
                closed.generation,
                closed.reason,
            )
            return
        if closed.error is None:
            return
        self._handle_failure(closed.error)

    def _handle_send_failed(
        self, generation: int, frame: Frame, error: SlideRemoteError
    ) -> None:
        _LOGGER.warning(
            "[%s] Frame %s not delivered (connection %d): %s",
            self._target,
            frame.command,
            generation,
            error,
        )

    def _remember(self, target: TargetAddress) -> None:
        entry = ConnectionHistoryEntry(
            address=str(target), last_connected_at=datetime.now(tz=UTC)
        )
        try:
            self._settings.save(entry)
        except OSError as err:
            _LOGGER.warning("Could not save connection history: %s", err)
