"""Session state for a remote control connection.

The engine keeps exactly one live ``SessionState``. Every change goes through
``reduce`` which returns a new frozen record; the store swaps it in and
notifies subscribers. Readers only ever see complete snapshots.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .commands import clamp_percent
from .errors import ErrorKind

_LOGGER = logging.getLogger(__name__)


class ConnectionStatus(Enum):
    """Observed connection status."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the remote session.

    Attributes:
        status: Current connection status.
        last_error: Human-readable description of the last failure.
        last_error_kind: Category of the last failure.
        target_address: ``host:port`` of the receiver, once requested.
        is_pointer_mode: Whether finger movement streams pointer coordinates.
        pointer_x: Pointer position in percent of screen width.
        pointer_y: Pointer position in percent of screen height.
        retry_attempt: Number of the current automatic retry (0 when none).
        auto_reconnect: Whether lost connections are retried automatically.
    """

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    last_error: str | None = None
    last_error_kind: ErrorKind | None = None
    target_address: str | None = None
    is_pointer_mode: bool = False
    pointer_x: float = 50.0
    pointer_y: float = 50.0
    retry_attempt: int = 0
    auto_reconnect: bool = True

    @property
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def error_message(self) -> str | None:
        """Error text to show while the status is ``error``."""
        if self.status is ConnectionStatus.ERROR:
            return self.last_error
        return None

    def as_dict(self) -> dict[str, Any]:
        """Return a plain, JSON-serializable view of the state."""
        return {
            "connection_status": self.status.value,
            "last_error": self.last_error,
            "last_error_kind": (
                self.last_error_kind.value if self.last_error_kind else None
            ),
            "target_address": self.target_address,
            "is_pointer_mode": self.is_pointer_mode,
            "pointer_x": self.pointer_x,
            "pointer_y": self.pointer_y,
            "retry_attempt": self.retry_attempt,
            "auto_reconnect": self.auto_reconnect,
        }


# --------------------------------------------------------------------------
# Events
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class ConnectRequested:
    address: str


@dataclass(frozen=True)
class Connected:
    pass


@dataclass(frozen=True)
class Disconnected:
    reason: str
    kind: ErrorKind = ErrorKind.LINK_LOST


@dataclass(frozen=True)
class SendFailed:
    reason: str
    kind: ErrorKind = ErrorKind.SEND_FAILED


@dataclass(frozen=True)
class DisconnectRequested:
    pass


@dataclass(frozen=True)
class PointerModeToggled:
    pass


@dataclass(frozen=True)
class PointerMoved:
    x: float
    y: float


@dataclass(frozen=True)
class RetryScheduled:
    attempt: int


@dataclass(frozen=True)
class SettingsChanged:
    auto_reconnect: bool


Event = (
    ConnectRequested
    | Connected
    | Disconnected
    | SendFailed
    | DisconnectRequested
    | PointerModeToggled
    | PointerMoved
    | RetryScheduled
    | SettingsChanged
)


# --------------------------------------------------------------------------
# Transition function
# --------------------------------------------------------------------------


def _fail(
    state: SessionState, status: ConnectionStatus, reason: str, kind: ErrorKind
) -> SessionState:
    return replace(state, status=status, last_error=reason, last_error_kind=kind)


def reduce(state: SessionState, event: Event) -> SessionState:
    """Apply one event to a state, returning the resulting state.

    Events that do not apply in the current status return ``state`` itself.
    """
    status = state.status

    if isinstance(event, ConnectRequested):
        return replace(
            state,
            status=ConnectionStatus.CONNECTING,
            target_address=event.address,
            retry_attempt=0,
            last_error=None,
            last_error_kind=None,
        )

    if isinstance(event, Connected):
        if status is not ConnectionStatus.CONNECTING:
            return state
        return replace(
            state,
            status=ConnectionStatus.CONNECTED,
            retry_attempt=0,
            last_error=None,
            last_error_kind=None,
        )

    if isinstance(event, Disconnected):
        if status is ConnectionStatus.CONNECTING:
            return _fail(state, ConnectionStatus.ERROR, event.reason, event.kind)
        if status is ConnectionStatus.CONNECTED:
            target = (
                ConnectionStatus.ERROR
                if state.auto_reconnect
                else ConnectionStatus.DISCONNECTED
            )
            return _fail(state, target, event.reason, event.kind)
        return state

    if isinstance(event, SendFailed):
        if status in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED):
            return _fail(state, ConnectionStatus.ERROR, event.reason, event.kind)
        return state

    if isinstance(event, DisconnectRequested):
        return replace(
            state,
            status=ConnectionStatus.DISCONNECTED,
            last_error=None,
            last_error_kind=None,
            retry_attempt=0,
            is_pointer_mode=False,
        )

    if isinstance(event, RetryScheduled):
        if status is not ConnectionStatus.ERROR:
            return state
        return replace(
            state,
            status=ConnectionStatus.CONNECTING,
            retry_attempt=event.attempt,
        )

    if isinstance(event, PointerModeToggled):
        return replace(state, is_pointer_mode=not state.is_pointer_mode)

    if isinstance(event, PointerMoved):
        return replace(
            state,
            pointer_x=clamp_percent(event.x),
            pointer_y=clamp_percent(event.y),
        )

    if isinstance(event, SettingsChanged):
        if state.auto_reconnect == event.auto_reconnect:
            return state
        return replace(state, auto_reconnect=event.auto_reconnect)

    raise TypeError(f"Unknown session event: {event!r}")


# --------------------------------------------------------------------------
# Store
# --------------------------------------------------------------------------

StateListener = Callable[[SessionState, "str | None"], None]


class SessionStateStore:
    """Single owner of the live session state.

    Usage:
        store = SessionStateStore()
        unsubscribe = store.subscribe(render)
        store.transition(ConnectRequested("192.168.1.5:8080"))
        snapshot = store.current()
    """

    def __init__(self, initial: SessionState | None = None) -> None:
        self._state = initial if initial is not None else SessionState()
        self._listeners: list[StateListener] = []

    def current(self) -> SessionState:
        """Return the current immutable snapshot."""
        return self._state

    def transition(self, event: Event) -> SessionState:
        """Apply an event, swap in the new state and notify subscribers."""
        previous = self._state
        new_state = reduce(previous, event)
        if new_state is previous:
            _LOGGER.debug(
                "Ignored %s in status %s", type(event).__name__, previous.status.value
            )
            return previous

        self._state = new_state
        if new_state.status is not previous.status:
            _LOGGER.debug(
                "[%s] State: %s → %s (%s)",
                new_state.target_address,
                previous.status.value,
                new_state.status.value,
                type(event).__name__,
            )
        self._notify(new_state)
        return new_state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with every new snapshot.

        The listener receives the state and the error message when the
        status is ``error`` (otherwise None).

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, state: SessionState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state, state.error_message)
            except Exception as err:
                _LOGGER.exception("State listener error: %s", err)
