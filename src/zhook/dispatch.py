"""Handler registry and inbound message dispatch.

Inbound frames are decoded, classified by their ``type`` field, and
fanned out to the registered handlers in registration order. Handlers are
isolated from each other: one that raises is logged and the rest still
run. Coroutine handlers are scheduled as tasks and their failures are
logged when they finish.

Failures the caller should know about (unparseable frames, connection
loss, authentication rejection) go out on the error channel through
``emit_error``.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import json
from collections.abc import Callable
from enum import Enum
from types import BuiltinMethodType, MethodType
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .constants import RAW_MESSAGE_EXCERPT_LENGTH
from .exceptions import MessageParseError
from .logging import ClientLogger
from .models import ConnectionEvent, WebhookEvent
from .validation import validate_handler

EventHandler = Callable[[WebhookEvent], Any]
ConnectionHandler = Callable[[ConnectionEvent], Any]
ErrorHandler = Callable[[Exception], Any]
Handler = EventHandler | ConnectionHandler | ErrorHandler


class HandlerKind(str, Enum):
    """The three handler channels."""

    EVENT = "event"
    CONNECTION = "connection"
    ERROR = "error"

    @property
    def label(self) -> str:
        """Name used in validation messages, e.g. ``EventHandler``."""
        return f"{self.value.capitalize()}Handler"


def _same_handler(registered: Handler, handler: Handler) -> bool:
    if registered is handler:
        return True
    return isinstance(registered, MethodType | BuiltinMethodType) and registered == handler


class HandlerRegistry:
    """Ordered handler lists, one per ``HandlerKind``.

    Duplicates are allowed and each registration is invoked. Removal
    matches by identity; bound methods compare by equality instead, so
    ``obj.on_event`` registered once can be removed with ``obj.on_event``.
    """

    def __init__(self) -> None:
        self._handlers: dict[HandlerKind, list[Handler]] = {kind: [] for kind in HandlerKind}

    def add(self, kind: HandlerKind, handler: Handler) -> None:
        self._handlers[kind].append(handler)

    def remove(self, handler: Handler) -> int:
        """Remove every registration of ``handler`` across all kinds.

        Returns:
            Number of registrations removed.
        """
        removed = 0
        for kind, handlers in self._handlers.items():
            kept = [h for h in handlers if not _same_handler(h, handler)]
            removed += len(handlers) - len(kept)
            self._handlers[kind] = kept
        return removed

    def handlers(self, kind: HandlerKind) -> list[Handler]:
        """Snapshot of the handlers for ``kind``, in registration order."""
        return list(self._handlers[kind])

    def count(self, kind: HandlerKind) -> int:
        return len(self._handlers[kind])


class EventDispatcher:
    """Routes inbound frames and errors to registered handlers."""

    def __init__(self, logger: ClientLogger) -> None:
        self._log = logger
        self.registry = HandlerRegistry()
        self._tasks: set[asyncio.Future[Any]] = set()

    def add_handler(self, kind: HandlerKind, handler: Handler) -> None:
        """Register a handler.

        Raises:
            InvalidHandlerError: If ``handler`` is not callable.
        """
        validate_handler(handler, kind.label)
        self.registry.add(kind, handler)
        self._log.debug(
            f"{kind.value.capitalize()} handler registered",
            total_handlers=self.registry.count(kind),
        )

    def remove_handler(self, handler: Handler) -> None:
        """Unregister a handler from every channel it was registered on."""
        if self.registry.remove(handler):
            self._log.debug("Handler removed")
        else:
            self._log.warn("Handler not found for removal")

    def dispatch(
        self,
        data: str | bytes,
        on_identity: Callable[[str], None] | None = None,
    ) -> None:
        """Decode one inbound frame and deliver it.

        Args:
            data: Raw frame as received.
            on_identity: Called with the client identity from a
                ``connected`` message before its handlers run.
        """
        try:
            message = json.loads(data)
        except ValueError as exc:
            excerpt = _excerpt(data)
            self._log.error("Failed to parse incoming message", error=str(exc), raw_data=excerpt)
            self.emit_error(
                MessageParseError(f"Message parsing failed: {exc}", raw_excerpt=excerpt)
            )
            return

        message_type = message.get("type") if isinstance(message, dict) else None
        self._log.debug("Received message", type=message_type)

        if message_type == "connected":
            self._deliver_connection(message, on_identity)
        elif message_type == "event":
            self._deliver_event(message)
        else:
            self._log.warn("Unknown message type received", type=message_type)

    def _deliver_connection(
        self, message: dict[str, Any], on_identity: Callable[[str], None] | None
    ) -> None:
        try:
            event = ConnectionEvent.model_validate(message)
        except PydanticValidationError as exc:
            self._log.warn("Malformed connection message ignored", error=str(exc))
            return

        self._log.info("Connection confirmed", message=event.message, client_id=event.client_id)
        if on_identity is not None:
            on_identity(event.client_id)
        self._invoke(HandlerKind.CONNECTION, event)

    def _deliver_event(self, message: dict[str, Any]) -> None:
        try:
            event = WebhookEvent.model_validate(message)
        except PydanticValidationError as exc:
            self._log.warn("Malformed event message ignored", error=str(exc))
            return

        self._log.debug("Webhook event received", event_id=event.event_id, hook_id=event.hook_id)
        self._invoke(HandlerKind.EVENT, event, event_id=event.event_id)

    def emit_error(self, error: Exception) -> None:
        """Deliver an error to every error handler.

        With no error handlers registered the error is logged and dropped.
        A failing error handler is logged and never re-emitted.
        """
        if not self.registry.count(HandlerKind.ERROR):
            self._log.warn("No error handlers registered for error", error=str(error))
            return
        self._invoke(HandlerKind.ERROR, error)

    def _invoke(self, kind: HandlerKind, payload: Any, **context: Any) -> None:
        for handler in self.registry.handlers(kind):
            try:
                result = handler(payload)
            except Exception as exc:
                self._log.error(
                    f"Error in {kind.value} handler", error=str(exc), exc_info=True, **context
                )
                continue
            if inspect.isawaitable(result):
                self._track(result, kind, context)

    def _track(self, awaitable: Any, kind: HandlerKind, context: dict[str, Any]) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._on_task_done, kind, context))

    def _on_task_done(
        self, kind: HandlerKind, context: dict[str, Any], task: asyncio.Future[Any]
    ) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log.error(f"Error in {kind.value} handler", error=str(exc), **context)

    @property
    def pending_tasks(self) -> int:
        """Coroutine handlers still running."""
        return len(self._tasks)


def _excerpt(data: str | bytes) -> str:
    if isinstance(data, bytes | bytearray):
        return bytes(data[:RAW_MESSAGE_EXCERPT_LENGTH]).decode("utf-8", errors="replace")
    return data[:RAW_MESSAGE_EXCERPT_LENGTH]


__all__ = [
    "ConnectionHandler",
    "ErrorHandler",
    "EventDispatcher",
    "EventHandler",
    "Handler",
    "HandlerKind",
    "HandlerRegistry",
]
