"""Tests for reconnection backoff and scheduling."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from slide_remote_core.supervisor import BackoffPolicy, ReconnectionSupervisor


class TestBackoffPolicy:
    """Tests for the delay curve."""

    def test_grows_and_caps(self):
        """Test delays grow and are capped."""
        policy = BackoffPolicy(base_delay=1.0, max_delay=10.0, factor=2.0)
        delays = [policy.delay_for(attempt) for attempt in range(1, 7)]
        assert delays == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

    def test_attempt_zero_uses_base(self):
        """Test attempt zero uses the base delay."""
        assert BackoffPolicy(base_delay=0.5).delay_for(0) == 0.5

    def test_unlimited_attempts(self):
        """Test retries are unlimited by default."""
        assert BackoffPolicy().allows(1000)

    def test_max_attempts(self):
        """Test max_attempts bounds retries."""
        policy = BackoffPolicy(max_attempts=3)
        assert policy.allows(3)
        assert not policy.allows(4)


class TestReconnectionSupervisor:
    """Tests for single-flight retry scheduling."""

    @pytest.mark.asyncio
    async def test_runs_reconnect_after_delay(self):
        """Test reconnect runs after the delay."""
        reconnect = AsyncMock()
        supervisor = ReconnectionSupervisor(reconnect, BackoffPolicy(base_delay=0.01))

        delay = supervisor.schedule(1)

        assert delay == 0.01
        assert supervisor.pending
        assert supervisor.pending_attempt == 1
        await asyncio.sleep(0.05)
        reconnect.assert_awaited_once_with(1)
        assert not supervisor.pending

    @pytest.mark.asyncio
    async def test_schedule_replaces_pending(self):
        """Test scheduling again replaces the pending retry."""
        reconnect = AsyncMock()
        supervisor = ReconnectionSupervisor(reconnect, BackoffPolicy(base_delay=0.01))

        supervisor.schedule(1)
        supervisor.schedule(2)

        assert supervisor.pending_attempt == 2
        await asyncio.sleep(0.1)
        reconnect.assert_awaited_once_with(2)

    @pytest.mark.asyncio
    async def test_cancel(self):
        """Test cancelling a pending retry."""
        reconnect = AsyncMock()
        supervisor = ReconnectionSupervisor(reconnect, BackoffPolicy(base_delay=0.01))

        supervisor.schedule(1)
        supervisor.cancel()

        assert not supervisor.pending
        assert supervisor.pending_attempt is None
        await asyncio.sleep(0.05)
        reconnect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        """Test scheduling gives up past max_attempts."""
        reconnect = AsyncMock()
        supervisor = ReconnectionSupervisor(
            reconnect, BackoffPolicy(base_delay=0.01, max_attempts=2)
        )

        assert supervisor.schedule(3) is None
        assert not supervisor.pending

    @pytest.mark.asyncio
    async def test_running_reconnect_stays_referenced(self):
        """Test a running reconnect is held until it finishes."""
        started = asyncio.Event()
        release = asyncio.Event()

        async def reconnect(attempt: int) -> None:
            started.set()
            await release.wait()

        supervisor = ReconnectionSupervisor(reconnect, BackoffPolicy(base_delay=0.01))
        supervisor.schedule(1)
        await asyncio.wait_for(started.wait(), 1.0)

        assert not supervisor.pending
        assert len(supervisor._running) == 1

        release.set()
        await asyncio.sleep(0.01)
        assert supervisor._running == set()

    @pytest.mark.asyncio
    async def test_unexpected_reconnect_failure_is_logged(self, caplog):
        """Test an exception escaping reconnect is logged."""
        reconnect = AsyncMock(side_effect=RuntimeError("boom"))
        supervisor = ReconnectionSupervisor(
            reconnect, BackoffPolicy(base_delay=0.01), name="test"
        )

        with caplog.at_level(logging.ERROR, logger="slide_remote_core.supervisor"):
            supervisor.schedule(1)
            await asyncio.sleep(0.05)

        assert "Reconnect attempt failed unexpectedly" in caplog.text
        assert not supervisor.pending
        assert supervisor._running == set()

    @pytest.mark.asyncio
    async def test_reconnect_may_schedule_next_retry(self):
        """Test reconnect can schedule the following retry."""
        attempts: list[int] = []
        supervisor: ReconnectionSupervisor

        async def reconnect(attempt: int) -> None:
            attempts.append(attempt)
            if attempt < 3:
                supervisor.schedule(attempt + 1)

        supervisor = ReconnectionSupervisor(
            reconnect, BackoffPolicy(base_delay=0.005, max_delay=0.01)
        )
        supervisor.schedule(1)
        await asyncio.sleep(0.2)

        assert attempts == [1, 2, 3]
        assert not supervisor.pending
