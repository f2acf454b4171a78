"""Command sequencing and pointer throttling.

Discrete commands are encoded and handed to the transport immediately.
Pointer movement in pointer mode is rate limited: at most one frame per
``pointer_interval``, with intents inside the window coalesced to the most
recent one and flushed by a single timer, so the last position of a burst is
always transmitted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Protocol

from .commands import Command, CommandKind, PointerMove
from .errors import NotConnectedError
from .protocol import Frame, encode
from .state import (
    ConnectionStatus,
    PointerModeToggled,
    PointerMoved,
    SessionStateStore,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_POINTER_INTERVAL = 0.033


class FrameSink(Protocol):
    """Anything that accepts outgoing frames (the transport session)."""

    def send(self, frame: Frame) -> None: ...


class CommandSequencer:
    """Validate commands against session state and forward their frames."""

    def __init__(
        self,
        store: SessionStateStore,
        sink: FrameSink,
        *,
        pointer_interval: float = DEFAULT_POINTER_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._sink = sink
        self._pointer_interval = pointer_interval
        self._clock = clock

        self._pending_pointer: PointerMove | None = None
        self._flush_handle: asyncio.TimerHandle | None = None
        self._last_pointer_sent: float | None = None

    @property
    def pointer_interval(self) -> float:
        return self._pointer_interval

    @property
    def has_pending_pointer(self) -> bool:
        return self._pending_pointer is not None

    def submit(self, command: Command) -> None:
        """Send a command, or coalesce it if it is throttled pointer movement.

        Raises:
            NotConnectedError: If the session is not connected. No frame is
                produced in that case.
            EncodeError: If ``command`` is not a command value.
        """
        state = self._store.current()
        if state.status is not ConnectionStatus.CONNECTED:
            raise NotConnectedError(
                f"Cannot send {getattr(command, 'kind', command)}: not connected"
            )

        if isinstance(command, PointerMove):
            self._store.transition(PointerMoved(command.x_percent, command.y_percent))
            if state.is_pointer_mode:
                self._throttle(command)
            else:
                self._emit(command)
            return

        # Keep wire order equal to intent order.
        self.flush()
        self._emit(command)
        if command.kind is CommandKind.TOGGLE_POINTER:
            self._store.transition(PointerModeToggled())

    def flush(self) -> None:
        """Send any coalesced pointer movement now."""
        self._cancel_timer()
        pending = self._pending_pointer
        self._pending_pointer = None
        if pending is None:
            return
        if not self._store.current().is_connected:
            _LOGGER.debug("Dropping pointer update: not connected")
            return
        try:
            self._emit(pending)
        except NotConnectedError:
            _LOGGER.debug("Dropping pointer update: transport closed")

    def reset(self) -> None:
        """Forget pending pointer state, e.g. after the link went away."""
        self._cancel_timer()
        self._pending_pointer = None
        self._last_pointer_sent = None

    def _throttle(self, command: PointerMove) -> None:
        now = self._clock()
        last_sent = self._last_pointer_sent
        if self._flush_handle is None and (
            last_sent is None or now - last_sent >= self._pointer_interval
        ):
            self._emit(command)
            return

        self._pending_pointer = command
        if self._flush_handle is None and last_sent is not None:
            delay = max(0.0, last_sent + self._pointer_interval - now)
            loop = asyncio.get_running_loop()
            self._flush_handle = loop.call_later(delay, self.flush)

    def _emit(self, command: Command) -> None:
        frame = encode(command)
        self._sink.send(frame)
        if isinstance(command, PointerMove):
            self._last_pointer_sent = self._clock()
        _LOGGER.debug("Queued %s", frame.command)

    def _cancel_timer(self) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
