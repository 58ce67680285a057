"""Inbound realtime messages and their persisted form.

The service pushes two message shapes over the realtime connection:

    {"type": "connected", "message": "...", "clientId": "..."}
    {"type": "event", "eventId": "...", "hookId": "...", "receivedAt": "...", "payload": ...}
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .base import WIRE_MODEL_CONFIG, utc_timestamp


class ConnectionEvent(BaseModel):
    """Handshake confirmation carrying the identity the service assigned.

    Attributes:
        message: Free-text greeting from the service.
        client_id: Identity assigned to this connection.
    """

    model_config = WIRE_MODEL_CONFIG

    type: Literal["connected"] = "connected"
    message: str = Field(default="", description="Free-text greeting")
    client_id: str = Field(alias="clientId", description="Assigned client identity")


class WebhookEvent(BaseModel):
    """A webhook call relayed by the service.

    Attributes:
        event_id: Identifier of this delivery.
        hook_id: Hook that received the webhook call.
        received_at: When the service received the call (as sent).
        payload: The webhook body, untouched.
    """

    model_config = WIRE_MODEL_CONFIG

    type: Literal["event"] = "event"
    event_id: str = Field(alias="eventId", description="Event identifier")
    hook_id: str = Field(alias="hookId", description="Originating hook identifier")
    received_at: str = Field(alias="receivedAt", description="Receipt timestamp")
    payload: Any = Field(default=None, description="Original webhook body")


class LoggedEvent(BaseModel):
    """One line of a persisted event log.

    Attributes:
        timestamp: Local processing time (ISO 8601).
        event_id: Original event identifier.
        hook_id: Hook that received the event.
        received_at: Original receipt timestamp.
        payload: Original webhook body, verbatim.
    """

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str = Field(description="Local processing timestamp")
    event_id: str = Field(alias="eventId")
    hook_id: str = Field(alias="hookId")
    received_at: str = Field(alias="receivedAt")
    payload: Any = None

    @classmethod
    def from_event(cls, event: WebhookEvent, now: datetime | None = None) -> LoggedEvent:
        """Stamp a received event with the local processing time."""
        return cls(
            timestamp=utc_timestamp(now),
            event_id=event.event_id,
            hook_id=event.hook_id,
            received_at=event.received_at,
            payload=event.payload,
        )

    def to_json_line(self) -> str:
        """Single-line JSON with camelCase keys and a trailing newline."""
        return self.model_dump_json(by_alias=True) + "\n"


__all__ = [
    "ConnectionEvent",
    "LoggedEvent",
    "WebhookEvent",
]
