"""Hook models for the REST API.

A hook is a webhook subscription managed through the REST API: a target
URL, an optional event filter, optional extra headers, and an optional
retry policy. ``HookConfig`` and ``HookUpdate`` are what callers send;
``Hook`` is what the API returns.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import HTTP_SCHEMES, WIRE_MODEL_CONFIG, url_problem

HookStatus = Literal["active", "paused", "disabled"]


class RetryPolicy(BaseModel):
    """Delivery retry policy applied by the service.

    Attributes:
        max_attempts: Delivery attempts before the service gives up.
        backoff_multiplier: Factor applied to the delay between attempts.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    max_attempts: int = Field(alias="maxAttempts", description="Maximum delivery attempts")
    backoff_multiplier: float = Field(
        alias="backoffMultiplier", description="Delay multiplier between attempts"
    )

    @field_validator("max_attempts", mode="before")
    @classmethod
    def _check_max_attempts(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError("Retry policy maxAttempts must be a non-negative integer")
        return value

    @field_validator("backoff_multiplier", mode="before")
    @classmethod
    def _check_backoff_multiplier(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, int | float) or not value > 0:
            raise ValueError("Retry policy backoffMultiplier must be a positive number")
        return value


class HookUpdate(BaseModel):
    """Partial hook configuration for updates; every field is optional.

    Field rules are shared with ``HookConfig``. Fields left unset are not
    sent to the API.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str | None = Field(default=None, description="Display name")
    url: str | None = Field(default=None, description="Target URL (http or https)")
    events: list[str] | None = Field(default=None, description="Event-name filter")
    headers: dict[str, str] | None = Field(default=None, description="Extra request headers")
    retry_policy: RetryPolicy | None = Field(
        default=None, alias="retryPolicy", description="Delivery retry policy"
    )

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Hook name must be a non-empty string")
        return value

    @field_validator("url", mode="before")
    @classmethod
    def _check_url(cls, value: Any) -> Any:
        problem = url_problem(value, "Hook URL", HTTP_SCHEMES)
        if problem:
            raise ValueError(problem)
        return value

    @field_validator("events", mode="before")
    @classmethod
    def _check_events(cls, value: Any) -> Any:
        if isinstance(value, str | bytes) or not isinstance(value, Sequence):
            raise ValueError("Hook events must be a list of strings")
        for index, event in enumerate(value):
            if not isinstance(event, str):
                raise ValueError(f"Hook event at index {index} must be a string")
        return list(value)

    @field_validator("headers", mode="before")
    @classmethod
    def _check_headers(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            raise ValueError("Hook headers must be a mapping")
        for key, header in value.items():
            if not isinstance(key, str) or not isinstance(header, str):
                raise ValueError("Hook headers must be string key-value pairs")
        return dict(value)

    def to_payload(self) -> dict[str, Any]:
        """Request body for the API, camelCase, without unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class HookConfig(HookUpdate):
    """Full hook configuration for creation; name and URL are required."""

    name: str = Field(description="Display name")
    url: str = Field(description="Target URL (http or https)")


class Hook(BaseModel):
    """A hook record as returned by the API.

    Parsed leniently and never modified by the client; fields the API
    adds beyond these are kept as extra attributes.

    Attributes:
        id: Hook identifier.
        client_id: Owning client identity.
        status: Lifecycle status (active, paused, disabled).
        created_at: Creation timestamp (as sent).
        updated_at: Last update timestamp (as sent).
    """

    model_config = WIRE_MODEL_CONFIG

    id: str | None = None
    client_id: str | None = Field(default=None, alias="clientId")
    name: str | None = None
    url: str | None = None
    events: list[str] | None = None
    headers: dict[str, str] | None = None
    retry_policy: dict[str, Any] | None = Field(default=None, alias="retryPolicy")
    status: HookStatus | str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")


__all__ = [
    "Hook",
    "HookConfig",
    "HookStatus",
    "HookUpdate",
    "RetryPolicy",
]
