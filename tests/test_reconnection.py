"""Tests for automatic reconnection and backoff."""

from __future__ import annotations

import asyncio

import pytest
from fakes import FakeScheduler, FakeTransportFactory, drain

from zhook.connection import (
    ConnectionState,
    build_realtime_url,
    compute_backoff_delay,
    is_auth_failure,
)
from zhook.exceptions import (
    AuthenticationFailedError,
    MaxReconnectAttemptsReachedError,
    ReconnectionExhaustedError,
)


class TestComputeBackoffDelay:
    """Tests for the backoff formula."""

    def test_doubles_each_attempt_without_jitter(self) -> None:
        """A neutral random source should give the exact exponential delay."""
        delays = [compute_backoff_delay(n, 1000, lambda: 0.5) for n in range(1, 5)]
        assert delays == [1000, 2000, 4000, 8000]

    def test_jitter_bounds(self) -> None:
        """Jitter should stay within 25% of the exponential delay."""
        assert compute_backoff_delay(3, 1000, lambda: 0.0) == pytest.approx(3000)
        upper = compute_backoff_delay(3, 1000, lambda: 0.999999)
        assert 4000 < upper < 5000

    def test_minimum_delay_applied_after_jitter(self) -> None:
        """The 100ms floor should hold even when jitter pulls below it."""
        assert compute_backoff_delay(1, 100, lambda: 0.0) == 100

    def test_random_delays_stay_in_range(self) -> None:
        """Default random source should stay inside the jitter window."""
        for _ in range(50):
            delay = compute_backoff_delay(2, 1000)
            assert 1500 <= delay <= 2500


class TestIsAuthFailure:
    """Tests for authentication close classification."""

    @pytest.mark.parametrize("code", [1008, 4001])
    def test_auth_close_codes(self, code: int) -> None:
        assert is_auth_failure(code, "")

    @pytest.mark.parametrize("reason", ["Authentication required", "INVALID client key"])
    def test_auth_reasons(self, reason: str) -> None:
        assert is_auth_failure(1000, reason)

    def test_ordinary_close(self) -> None:
        assert not is_auth_failure(1006, "server restart")


class TestBuildRealtimeUrl:
    """Tests for credential placement in the realtime URL."""

    def test_appends_client_key(self) -> None:
        url = build_realtime_url("wss://relay.test/events", "key-1234567")
        assert url == "wss://relay.test/events?clientKey=key-1234567"

    def test_preserves_existing_query(self) -> None:
        url = build_realtime_url("wss://relay.test/events?region=eu", "key-1234567")
        assert url == "wss://relay.test/events?region=eu&clientKey=key-1234567"


class TestReconnection:
    """Tests for the reconnection cycle of the state machine."""

    @pytest.mark.asyncio
    async def test_abnormal_close_reconnects(
        self, make_machine, transports: FakeTransportFactory, scheduler: FakeScheduler
    ) -> None:
        """An abnormal close should schedule a reconnect that restores the connection."""
        machine = make_machine()
        await machine.connect()

        transports.last.fire_close(1006, "going away")

        assert machine.state is ConnectionState.RECONNECTING
        assert machine.reconnect_attempts == 1
        assert [t.delay for t in scheduler.pending] == [1.0]

        scheduler.advance(1.0)
        await drain()

        assert len(transports.created) == 2
        assert machine.state is ConnectionState.CONNECTED
        assert machine.reconnect_attempts == 0

    @pytest.mark.asyncio
    async def test_backoff_doubles_until_exhausted(
        self,
        make_machine,
        transports: FakeTransportFactory,
        scheduler: FakeScheduler,
        errors: list,
    ) -> None:
        """Failed attempts should back off exponentially, then report exhaustion."""
        transports.behaviors = ["open"]
        transports.default = "error"
        machine = make_machine(max_reconnect_attempts=4, reconnect_delay=100)
        await machine.connect()

        transports.last.fire_close(1006, "")
        delays = []
        while scheduler.pending:
            timer = scheduler.pending[0]
            delays.append(timer.delay)
            scheduler.advance(timer.delay)
            await drain()

        assert delays == pytest.approx([0.1, 0.2, 0.4, 0.8])
        assert len(transports.created) == 5
        assert machine.state is ConnectionState.DISCONNECTED
        assert len(errors) == 1
        assert isinstance(errors[0], ReconnectionExhaustedError)
        assert str(errors[0]) == (
            "All reconnection attempts failed. Last error: "
            "WebSocket connection failed: connection refused"
        )

    @pytest.mark.asyncio
    async def test_zero_attempts_reports_max_reached(
        self,
        make_machine,
        transports: FakeTransportFactory,
        scheduler: FakeScheduler,
        errors: list,
    ) -> None:
        """With reconnection disabled a drop should be reported immediately."""
        machine = make_machine(max_reconnect_attempts=0)
        await machine.connect()

        transports.last.fire_close(1006, "")

        assert machine.state is ConnectionState.DISCONNECTED
        assert scheduler.pending == []
        assert len(errors) == 1
        assert type(errors[0]) is MaxReconnectAttemptsReachedError
        assert str(errors[0]) == "Maximum reconnection attempts (0) reached"

    @pytest.mark.asyncio
    async def test_auth_close_code_stops_reconnection(
        self,
        make_machine,
        transports: FakeTransportFactory,
        scheduler: FakeScheduler,
        errors: list,
    ) -> None:
        """An authentication close should not reconnect."""
        machine = make_machine()
        await machine.connect()

        transports.last.fire_close(4001, "")

        assert machine.state is ConnectionState.DISCONNECTED
        assert scheduler.pending == []
        assert len(errors) == 1
        assert isinstance(errors[0], AuthenticationFailedError)
        assert errors[0].close_code == 4001

    @pytest.mark.asyncio
    async def test_auth_close_reason_stops_reconnection(
        self,
        make_machine,
        transports: FakeTransportFactory,
        scheduler: FakeScheduler,
        errors: list,
    ) -> None:
        """A close reason mentioning invalid credentials should not reconnect."""
        machine = make_machine()
        await machine.connect()

        transports.last.fire_close(1000, "Invalid client key")

        assert scheduler.pending == []
        assert isinstance(errors[0], AuthenticationFailedError)
        assert "Invalid client key" in str(errors[0])

    @pytest.mark.asyncio
    async def test_connect_after_auth_failure(
        self, make_machine, transports: FakeTransportFactory, errors: list
    ) -> None:
        """An auth failure ends the cycle but the client can connect again."""
        machine = make_machine()
        await machine.connect()
        transports.last.fire_close(1008, "")

        await machine.connect()

        assert machine.state is ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_close_cancels_scheduled_reconnect(
        self, make_machine, transports: FakeTransportFactory, scheduler: FakeScheduler
    ) -> None:
        """close should cancel a pending reconnect timer."""
        machine = make_machine()
        await machine.connect()
        transports.last.fire_close(1006, "")

        machine.close()
        scheduler.advance(60.0)
        await drain()

        assert scheduler.pending == []
        assert len(transports.created) == 1
        assert machine.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_close_during_reconnect_attempt(
        self,
        make_machine,
        transports: FakeTransportFactory,
        scheduler: FakeScheduler,
        errors: list,
    ) -> None:
        """close during an in-flight reconnect attempt should stop the cycle."""
        transports.behaviors = ["open", "hang"]
        machine = make_machine()
        await machine.connect()
        transports.last.fire_close(1006, "")
        scheduler.advance(1.0)
        attempt = transports.last

        machine.close()
        await drain()
        scheduler.advance(60.0)

        assert attempt.closed_with == (1000, "Client closed")
        assert len(transports.created) == 2
        assert errors == []

    @pytest.mark.asyncio
    async def test_manual_connect_while_reconnecting(
        self, make_machine, transports: FakeTransportFactory, scheduler: FakeScheduler
    ) -> None:
        """connect during the backoff wait should attempt immediately."""
        machine = make_machine()
        await machine.connect()
        transports.last.fire_close(1006, "")

        await machine.connect()

        assert machine.state is ConnectionState.CONNECTED
        assert machine.reconnect_attempts == 0
        assert scheduler.pending == []
        assert len(transports.created) == 2

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failed_attempt(
        self, make_machine, transports: FakeTransportFactory, scheduler: FakeScheduler
    ) -> None:
        """A reconnect attempt that times out should schedule the next one."""
        transports.behaviors = ["open", "hang"]
        machine = make_machine(connect_timeout=5.0)
        await machine.connect()
        transports.last.fire_close(1006, "")

        scheduler.advance(1.0)
        assert machine.state is ConnectionState.CONNECTING
        scheduler.advance(5.0)
        await drain()

        assert machine.state is ConnectionState.RECONNECTING
        assert machine.reconnect_attempts == 2
        assert [t.delay for t in scheduler.pending] == [2.0]

    @pytest.mark.asyncio
    async def test_drop_after_reconnect_starts_fresh_count(
        self, make_machine, transports: FakeTransportFactory, scheduler: FakeScheduler
    ) -> None:
        """A successful reconnect should reset the backoff for the next drop."""
        machine = make_machine()
        await machine.connect()
        transports.last.fire_close(1006, "")
        scheduler.advance(1.0)
        await drain()

        transports.last.fire_close(1006, "")

        assert machine.reconnect_attempts == 1
        assert [t.delay for t in scheduler.pending] == [1.0]

    @pytest.mark.asyncio
    async def test_joining_reconnect_attempt(
        self, make_machine, transports: FakeTransportFactory, scheduler: FakeScheduler
    ) -> None:
        """connect during an in-flight reconnect attempt should wait for it."""
        transports.behaviors = ["open", "hang"]
        machine = make_machine()
        await machine.connect()
        transports.last.fire_close(1006, "")
        scheduler.advance(1.0)

        task = asyncio.create_task(machine.connect())
        await drain()
        transports.last.fire_open()
        await task

        assert machine.state is ConnectionState.CONNECTED
        assert len(transports.created) == 2
