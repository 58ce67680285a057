"""Connection state machine for the realtime channel.

Owns the transport, the connection state, the reconnect counter and
timers, and the client identity. Every transport callback is tagged with
the transport it came from; callbacks from a transport that is no longer
current (timed out, failed, or replaced) are ignored.

Transitions:

    DISCONNECTED --connect()--> CONNECTING --open--> CONNECTED
    CONNECTING --timeout/error/close--> DISCONNECTED (attempt fails)
    CONNECTED --close(auth)--> DISCONNECTED (no reconnect)
    CONNECTED --close(other)--> RECONNECTING --timer--> CONNECTING
    any --close()--> CLOSED (terminal)
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Callable

from ..config import ClientConfig
from ..constants import CLIENT_CLOSE_REASON, NORMAL_CLOSE_CODE, authentication_failed
from ..dispatch import EventDispatcher
from ..exceptions import (
    AuthenticationFailedError,
    ClientClosedError,
    ConnectionTimeoutError,
    MaxReconnectAttemptsReachedError,
    ReconnectionExhaustedError,
    TransportError,
)
from ..logging import ClientLogger
from .state import (
    ConnectionState,
    PendingConnect,
    ReconnectState,
    build_realtime_url,
    compute_backoff_delay,
    is_auth_failure,
)
from .timers import AsyncioScheduler, Scheduler
from .transport import Transport, TransportFactory, WebSocketTransport


class _AttemptListener:
    """Forwards one transport's callbacks to the machine, tagged with that transport."""

    def __init__(self, machine: ConnectionStateMachine, transport: Transport) -> None:
        self._machine = machine
        self._transport = transport

    def on_open(self) -> None:
        self._machine._handle_open(self._transport)

    def on_message(self, data: str | bytes) -> None:
        self._machine._handle_message(self._transport, data)

    def on_close(self, code: int, reason: str) -> None:
        self._machine._handle_close(self._transport, code, reason)

    def on_error(self, error: Exception) -> None:
        self._machine._handle_error(self._transport, error)


class ConnectionStateMachine:
    """Connects, reconnects with backoff, and closes the realtime channel.

    Args:
        client_key: Credential appended to the realtime URL.
        config: Validated client configuration.
        dispatcher: Receives inbound frames and emitted errors.
        logger: Level-gated client logger.
        scheduler: Timer source; defaults to the running event loop.
        transport_factory: Builds one transport per attempt; defaults to
            ``WebSocketTransport``.
        random_source: Jitter source returning floats in [0, 1).
    """

    def __init__(
        self,
        client_key: str,
        config: ClientConfig,
        dispatcher: EventDispatcher,
        logger: ClientLogger,
        *,
        scheduler: Scheduler | None = None,
        transport_factory: TransportFactory | None = None,
        random_source: Callable[[], float] = random.random,
    ) -> None:
        self._client_key = client_key
        self._config = config
        self._dispatcher = dispatcher
        self._log = logger
        self._scheduler = scheduler or AsyncioScheduler()
        self._transport_factory = transport_factory or WebSocketTransport
        self._random = random_source

        self._state = ConnectionState.DISCONNECTED
        self._client_id: str | None = None
        self._reconnect = ReconnectState()
        self._pending: PendingConnect | None = None
        self._transport: Transport | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def client_id(self) -> str | None:
        return self._client_id

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect.attempts

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    async def connect(self) -> None:
        """Open the realtime connection.

        Joins an attempt already in flight. While a reconnect is
        scheduled, cancels the timer and attempts immediately.

        Raises:
            ClientClosedError: If the machine has been closed.
            ConnectionTimeoutError: If the transport did not open in time.
            TransportError: If the transport failed before opening.
        """
        if self._state is ConnectionState.CLOSED:
            raise ClientClosedError()
        if self._state is ConnectionState.CONNECTED:
            self._log.warn("Already connected to zhook service")
            return
        if self._pending is not None:
            await asyncio.shield(self._pending.future)
            return

        self._reconnect.cancel_timer()
        self._log.info("Connecting to zhook service", url=self._config.ws_url)
        await asyncio.shield(self._start_attempt())

    def close(self) -> None:
        """Close the connection permanently. Safe to call repeatedly."""
        if self._state is ConnectionState.CLOSED:
            self._log.debug("Close called on already closed client")
            return

        self._log.info("Closing zhook client")
        self._state = ConnectionState.CLOSED
        self._reconnect.reset()

        pending, self._pending = self._pending, None
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.detach()
            try:
                transport.close(NORMAL_CLOSE_CODE, CLIENT_CLOSE_REASON)
            except Exception as exc:
                self._log.debug("Transport already closed during cleanup", error=str(exc))
        if pending is not None:
            pending.reject(ClientClosedError("Connection attempt aborted: client has been closed"))

        self._client_id = None
        self._log.info("Client closed")

    def _is_current(self, transport: Transport) -> bool:
        return transport is self._transport

    def _start_attempt(self) -> asyncio.Future[None]:
        transport = self._transport_factory()
        pending = PendingConnect(asyncio.get_running_loop().create_future())
        self._state = ConnectionState.CONNECTING
        self._transport = transport
        self._pending = pending
        pending.timeout = self._scheduler.call_later(
            self._config.connect_timeout, lambda: self._handle_timeout(transport)
        )

        self._log.debug("Creating WebSocket connection", url=self._config.ws_url)
        try:
            transport.open(
                build_realtime_url(self._config.ws_url, self._client_key),
                _AttemptListener(self, transport),
            )
        except Exception as exc:
            self._fail_attempt(
                transport, TransportError(f"Failed to create WebSocket connection: {exc}")
            )
        return pending.future

    def _fail_attempt(self, transport: Transport, error: Exception) -> None:
        pending, self._pending = self._pending, None
        self._transport = None
        self._state = ConnectionState.DISCONNECTED
        transport.detach()
        transport.close()
        self._log.error("Connection attempt failed", error=str(error))
        if pending is not None:
            pending.reject(error)

    def _handle_timeout(self, transport: Transport) -> None:
        if not self._is_current(transport) or self._state is not ConnectionState.CONNECTING:
            return
        self._log.error("Connection timeout", timeout=self._config.connect_timeout)
        self._fail_attempt(transport, ConnectionTimeoutError(self._config.connect_timeout))

    def _handle_open(self, transport: Transport) -> None:
        if not self._is_current(transport) or self._state is not ConnectionState.CONNECTING:
            return
        self._state = ConnectionState.CONNECTED
        self._reconnect.reset()
        pending, self._pending = self._pending, None
        self._log.info("WebSocket connection established")
        if pending is not None:
            pending.resolve()

    def _handle_message(self, transport: Transport, data: str | bytes) -> None:
        if not self._is_current(transport) or self._state is ConnectionState.CLOSED:
            return
        self._dispatcher.dispatch(data, on_identity=self._assign_client_id)

    def _handle_error(self, transport: Transport, error: Exception) -> None:
        if not self._is_current(transport):
            return
        self._log.error("WebSocket error occurred", error=str(error))
        if self._state is ConnectionState.CONNECTING:
            self._fail_attempt(transport, TransportError(f"WebSocket connection failed: {error}"))
        else:
            self._dispatcher.emit_error(TransportError(f"WebSocket error: {error}"))

    def _handle_close(self, transport: Transport, code: int, reason: str) -> None:
        if self._state is ConnectionState.CLOSED:
            self._log.debug("Connection closed after client close", code=code)
            return
        if not self._is_current(transport):
            return

        self._log.warn("WebSocket connection closed", code=code, reason=reason)
        if self._state is ConnectionState.CONNECTING:
            detail = f"Connection closed before opening (code {code})"
            message = f"{detail}: {reason}" if reason else detail
            self._fail_attempt(transport, TransportError(message))
            return

        self._transport = None
        self._state = ConnectionState.DISCONNECTED
        self._client_id = None

        if is_auth_failure(code, reason):
            self._log.error("Authentication error - will not reconnect", code=code, reason=reason)
            self._dispatcher.emit_error(
                AuthenticationFailedError(
                    authentication_failed(reason or None), close_code=code, reason=reason
                )
            )
            return

        self._log.warn("Connection lost, attempting reconnection", code=code)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        max_attempts = self._config.max_reconnect_attempts
        if self._reconnect.attempts >= max_attempts:
            self._state = ConnectionState.DISCONNECTED
            self._log.error("Maximum reconnection attempts reached", max_attempts=max_attempts)
            self._dispatcher.emit_error(MaxReconnectAttemptsReachedError(max_attempts))
            return

        self._reconnect.attempts += 1
        self._state = ConnectionState.RECONNECTING
        delay = compute_backoff_delay(
            self._reconnect.attempts, self._config.reconnect_delay, self._random
        )
        self._log.info(
            f"Reconnecting in {round(delay)}ms",
            attempt=self._reconnect.attempts,
            max_attempts=max_attempts,
        )
        self._reconnect.cancel_timer()
        self._reconnect.timer = self._scheduler.call_later(delay / 1000, self._run_reconnect)

    def _run_reconnect(self) -> None:
        self._reconnect.timer = None
        if self._state is not ConnectionState.RECONNECTING:
            return
        self._log.info(
            f"Reconnection attempt {self._reconnect.attempts}/{self._config.max_reconnect_attempts}"
        )
        self._start_attempt().add_done_callback(self._on_reconnect_settled)

    def _on_reconnect_settled(self, future: asyncio.Future[None]) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is None:
            self._log.info("Reconnected to zhook service")
            return
        # Closed, or a manual connect() already started another attempt.
        if self._state is not ConnectionState.DISCONNECTED or self._pending is not None:
            return

        max_attempts = self._config.max_reconnect_attempts
        self._log.warn(
            "Reconnection attempt failed",
            attempt=self._reconnect.attempts,
            error=str(error),
        )
        if self._reconnect.attempts < max_attempts:
            self._schedule_reconnect()
        else:
            self._state = ConnectionState.DISCONNECTED
            self._log.error("All reconnection attempts exhausted", max_attempts=max_attempts)
            self._dispatcher.emit_error(ReconnectionExhaustedError(max_attempts, str(error)))

    def _assign_client_id(self, client_id: str) -> None:
        self._client_id = client_id


__all__ = ["ConnectionStateMachine"]
