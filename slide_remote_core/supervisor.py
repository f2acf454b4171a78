"""Reconnection scheduling with capped exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackoffPolicy:
    """Delay curve for automatic reconnection.

    Attributes:
        base_delay: Delay before the first retry (seconds).
        max_delay: Upper bound for any delay (seconds).
        factor: Growth factor per attempt.
        max_attempts: Give up after this many retries, None retries forever.
    """

    base_delay: float = 1.0
    max_delay: float = 30.0
    factor: float = 2.0
    max_attempts: int | None = None

    def delay_for(self, attempt: int) -> float:
        """Return the delay before retry number ``attempt`` (1-based)."""
        exponent = max(attempt, 1) - 1
        return min(self.base_delay * (self.factor**exponent), self.max_delay)

    def allows(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt <= self.max_attempts


class ReconnectionSupervisor:
    """Single-flight retry timer.

    At most one retry is pending at any time; scheduling again replaces the
    pending one. When the delay elapses, ``reconnect(attempt)`` is awaited.
    """

    def __init__(
        self,
        reconnect: Callable[[int], Awaitable[None]],
        policy: BackoffPolicy | None = None,
        *,
        name: str = "",
    ) -> None:
        self._reconnect = reconnect
        self.policy = policy if policy is not None else BackoffPolicy()
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._pending_attempt: int | None = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        """Whether a retry timer is outstanding."""
        return self._task is not None and not self._task.done()

    @property
    def pending_attempt(self) -> int | None:
        return self._pending_attempt if self.pending else None

    def schedule(self, attempt: int) -> float | None:
        """Schedule retry number ``attempt``, replacing any pending retry.

        Returns:
            The delay in seconds, or None when the policy gives up.
        """
        self.cancel()
        if not self.policy.allows(attempt):
            _LOGGER.warning(
                "[%s] Giving up after %d reconnect attempts",
                self._name,
                attempt - 1,
            )
            return None

        delay = self.policy.delay_for(attempt)
        _LOGGER.info(
            "[%s] Reconnecting in %.1fs (attempt %d)", self._name, delay, attempt
        )
        self._pending_attempt = attempt
        task = asyncio.create_task(self._reconnect_after_delay(attempt, delay))
        self._running.add(task)
        task.add_done_callback(self._task_done)
        self._task = task
        return delay

    def cancel(self) -> None:
        """Cancel the pending retry, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            _LOGGER.debug("[%s] Pending reconnect cancelled", self._name)
        self._task = None
        self._pending_attempt = None

    async def _reconnect_after_delay(self, attempt: int, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return
        # Detach before reconnecting so a failure may schedule the next retry.
        self._task = None
        self._pending_attempt = None
        await self._reconnect(attempt)

    def _task_done(self, task: asyncio.Task[None]) -> None:
        self._running.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            _LOGGER.error(
                "[%s] Reconnect attempt failed unexpectedly", self._name, exc_info=err
            )
