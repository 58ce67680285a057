"""High-level zhook client.

``ZhookClient`` ties together the validated configuration, the realtime
connection, handler dispatch, and the hook management API.

Example:
    ```python
    import asyncio

    from zhook import ZhookClient

    async with ZhookClient("your-client-key") as client:
        client.on_hook_called(lambda event: print(event.payload))
        hook = await client.create_hook({"name": "orders", "url": "https://example.com/orders"})
        await asyncio.Event().wait()
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

import httpx

from .api import HookApi
from .config import ClientConfig, LogLevel
from .connection import ConnectionState, ConnectionStateMachine, Scheduler, TransportFactory
from .dispatch import (
    ConnectionHandler,
    ErrorHandler,
    EventDispatcher,
    EventHandler,
    Handler,
    HandlerKind,
)
from .logging import ClientLogger
from .models import Hook, HookConfig, HookUpdate
from .validation import validate_client_key, validate_options


class ZhookClient:
    """Client for receiving webhook events and managing hooks.

    Options left as None fall back to ``zhook.config.settings`` (which
    reads ``ZHOOK_*`` environment variables).

    Args:
        client_key: Credential issued by the zhook service.
        ws_url: Realtime endpoint (ws:// or wss://).
        api_url: REST endpoint (http:// or https://).
        max_reconnect_attempts: Reconnect attempts after a dropped connection.
        reconnect_delay: Base reconnect delay in milliseconds (>= 100).
        log_level: silent, error, warn, info, or debug.
        connect_timeout: Seconds to wait for the connection to open.
        request_timeout: Seconds to wait for a REST response.
        logger: Client logger to use instead of one built from ``log_level``.
        scheduler: Timer source for timeouts and reconnects.
        transport_factory: Builds the realtime transport for each attempt.
        http_client: Preconfigured ``httpx.AsyncClient`` for REST calls.

    Raises:
        InvalidCredentialError: If the client key is unusable.
        InvalidConfigurationError: If any option is malformed.
    """

    def __init__(
        self,
        client_key: str,
        *,
        ws_url: str | None = None,
        api_url: str | None = None,
        max_reconnect_attempts: int | None = None,
        reconnect_delay: int | None = None,
        log_level: LogLevel | str | None = None,
        connect_timeout: float | None = None,
        request_timeout: float | None = None,
        logger: ClientLogger | None = None,
        scheduler: Scheduler | None = None,
        transport_factory: TransportFactory | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        validate_client_key(client_key)
        self._config = validate_options(
            ws_url=ws_url,
            api_url=api_url,
            max_reconnect_attempts=max_reconnect_attempts,
            reconnect_delay=reconnect_delay,
            log_level=log_level,
            connect_timeout=connect_timeout,
            request_timeout=request_timeout,
        )

        self._log = logger or ClientLogger(self._config.log_level)
        self._dispatcher = EventDispatcher(self._log)
        self._connection = ConnectionStateMachine(
            client_key,
            self._config,
            self._dispatcher,
            self._log,
            scheduler=scheduler,
            transport_factory=transport_factory,
        )
        self._api = HookApi(client_key, self._config, self._log, http_client=http_client)

        self._log.debug(
            "ZhookClient initialized",
            ws_url=self._config.ws_url,
            api_url=self._config.api_url,
            max_reconnect_attempts=self._config.max_reconnect_attempts,
            reconnect_delay=self._config.reconnect_delay,
        )

    # Connection

    async def connect(self) -> None:
        """Open the realtime connection.

        Raises:
            ClientClosedError: If the client has been closed.
            ConnectionTimeoutError: If the connection did not open in time.
            TransportError: If the transport failed before opening.
        """
        await self._connection.connect()

    def close(self) -> None:
        """Close the realtime connection permanently."""
        self._connection.close()

    async def aclose(self) -> None:
        """Close the realtime connection and the HTTP client."""
        self._connection.close()
        await self._api.aclose()

    async def __aenter__(self) -> ZhookClient:
        try:
            await self.connect()
        except BaseException:
            await self.aclose()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def is_connected(self) -> bool:
        return self._connection.is_connected

    def get_connection_state(self) -> ConnectionState:
        return self._connection.state

    def get_client_id(self) -> str | None:
        """Identity assigned by the service, or None when not connected."""
        return self._connection.client_id

    def get_config(self) -> ClientConfig:
        """Copy of the effective configuration."""
        return self._config.model_copy()

    # Handlers

    def on_hook_called(self, handler: EventHandler) -> EventHandler:
        """Register a handler for webhook events. Returns the handler."""
        self._dispatcher.add_handler(HandlerKind.EVENT, handler)
        return handler

    def on_connected(self, handler: ConnectionHandler) -> ConnectionHandler:
        """Register a handler for connection confirmations. Returns the handler."""
        self._dispatcher.add_handler(HandlerKind.CONNECTION, handler)
        return handler

    def on_error(self, handler: ErrorHandler) -> ErrorHandler:
        """Register a handler for asynchronous errors. Returns the handler."""
        self._dispatcher.add_handler(HandlerKind.ERROR, handler)
        return handler

    def remove_handler(self, handler: Handler | Callable[..., Any]) -> None:
        """Unregister a handler from every channel it was registered on."""
        self._dispatcher.remove_handler(handler)

    # Hooks

    async def create_hook(self, config: HookConfig | Mapping[str, Any]) -> Hook:
        return await self._api.create_hook(config)

    async def get_hooks(self) -> list[Hook]:
        return await self._api.get_hooks()

    async def get_hook(self, hook_id: str) -> Hook:
        return await self._api.get_hook(hook_id)

    async def update_hook(self, hook_id: str, update: HookUpdate | Mapping[str, Any]) -> Hook:
        return await self._api.update_hook(hook_id, update)

    async def delete_hook(self, hook_id: str) -> None:
        await self._api.delete_hook(hook_id)


__all__ = ["ZhookClient"]
