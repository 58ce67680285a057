"""Realtime transport over WebSockets.

A transport opens one connection, reports what happens to it through a
``TransportListener``, and can be detached (callbacks stop) and closed.
The state machine creates a fresh transport for every connection attempt
and is the only component that opens, closes, or listens to one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from ..constants import ABNORMAL_CLOSE_CODE, NORMAL_CLOSE_CODE

logger = logging.getLogger(__name__)


class TransportListener(Protocol):
    """Receives the lifecycle callbacks of one transport."""

    def on_open(self) -> None: ...

    def on_message(self, data: str | bytes) -> None: ...

    def on_close(self, code: int, reason: str) -> None: ...

    def on_error(self, error: Exception) -> None: ...


class Transport(Protocol):
    """One realtime connection."""

    def open(self, url: str, listener: TransportListener) -> None:
        """Start connecting; progress is reported to ``listener``."""
        ...

    def detach(self) -> None:
        """Stop delivering callbacks to the listener."""
        ...

    def close(self, code: int = NORMAL_CLOSE_CODE, reason: str = "") -> None:
        """Close the connection, or abandon it if it is still opening."""
        ...


TransportFactory = Callable[[], Transport]


class WebSocketTransport:
    """Transport backed by a ``websockets`` client connection.

    ``open`` starts a task on the running loop that connects, then reads
    frames until the connection ends. The caller owns the connection
    timeout, so the library's own opening timeout is disabled.

    Args:
        **connect_options: Extra keyword arguments for
            ``websockets.asyncio.client.connect`` (e.g. ``ping_interval``).
    """

    def __init__(self, **connect_options: Any) -> None:
        self._connect_options = {"open_timeout": None, **connect_options}
        self._listener: TransportListener | None = None
        self._connection: ClientConnection | None = None
        self._task: asyncio.Task[None] | None = None
        self._close_task: asyncio.Task[None] | None = None
        self._closing = False

    def open(self, url: str, listener: TransportListener) -> None:
        if self._task is not None:
            raise RuntimeError("Transport has already been opened")
        self._listener = listener
        self._task = asyncio.get_running_loop().create_task(self._run(url))

    def detach(self) -> None:
        self._listener = None

    def close(self, code: int = NORMAL_CLOSE_CODE, reason: str = "") -> None:
        self._closing = True
        if self._task is None:
            return
        if self._connection is None:
            self._task.cancel()
        elif self._close_task is None:
            self._close_task = self._task.get_loop().create_task(
                self._connection.close(code, reason)
            )

    async def wait_closed(self) -> None:
        """Wait until the reader task and any pending close have finished."""
        for task in (self._task, self._close_task):
            if task is not None:
                await asyncio.gather(task, return_exceptions=True)

    async def _run(self, url: str) -> None:
        try:
            connection = await connect(url, **self._connect_options)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._notify_error(exc)
            return

        self._connection = connection
        if self._closing:
            await connection.close()
            return

        if self._listener is not None:
            self._listener.on_open()

        try:
            async for message in connection:
                if self._listener is not None:
                    self._listener.on_message(message)
        except ConnectionClosed:
            pass
        except Exception as exc:
            self._notify_error(exc)
            await connection.close(1011, "Internal error")

        await connection.wait_closed()
        code = connection.close_code if connection.close_code is not None else ABNORMAL_CLOSE_CODE
        reason = connection.close_reason or ""
        logger.debug("WebSocket closed with code %s: %s", code, reason)
        if self._listener is not None:
            self._listener.on_close(code, reason)

    def _notify_error(self, error: Exception) -> None:
        logger.debug("WebSocket transport error: %s", error)
        if self._listener is not None:
            self._listener.on_error(error)


__all__ = [
    "Transport",
    "TransportFactory",
    "TransportListener",
    "WebSocketTransport",
]
