"""REST gateway for hook management.

Sends authenticated JSON requests to the zhook API with httpx and turns
every failure into a typed ``ApiError``:

    non-2xx       -> ApiRequestError  "API request failed (<status>): <message>"
    no response   -> ApiNetworkError  "Network error during API request: ..."
    bad JSON body -> ApiInvalidResponseError

Inputs are validated before any request is sent.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from .config import ClientConfig
from .constants import (
    ACCOUNT_MANAGEMENT_MESSAGE,
    AUTH_VERIFICATION_MESSAGE,
    RAW_MESSAGE_EXCERPT_LENGTH,
    USER_AGENT,
)
from .exceptions import ApiInvalidResponseError, ApiNetworkError, ApiRequestError
from .logging import ClientLogger
from .models import Hook, HookConfig, HookUpdate
from .validation import validate_hook_config, validate_hook_id, validate_partial_hook_config


class HookApi:
    """Authenticated client for the hook management endpoints.

    Args:
        client_key: Sent as a bearer token on every request.
        config: Validated client configuration (API URL, request timeout).
        logger: Level-gated client logger.
        http_client: Optional preconfigured ``httpx.AsyncClient``. When
            given, the caller owns it and ``aclose`` leaves it open.
    """

    def __init__(
        self,
        client_key: str,
        config: ClientConfig,
        logger: ClientLogger,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = config.api_url.rstrip("/")
        self._log = logger
        self._headers = {
            "Authorization": f"Bearer {client_key}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.request_timeout)

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        """Send one request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: Path relative to the API URL, starting with ``/``.
            body: JSON-serializable request body, if any.

        Returns:
            Decoded JSON, ``{}`` for an empty body, None for DELETE.

        Raises:
            ApiRequestError: On a non-2xx status.
            ApiNetworkError: If no response was received.
            ApiInvalidResponseError: If a 2xx body is not valid JSON.
        """
        url = f"{self._base_url}{path}"
        self._log.debug(f"Making {method} request", url=url)

        try:
            response = await self._http.request(
                method,
                url,
                headers=self._headers,
                content=json.dumps(body) if body is not None else None,
            )
        except httpx.RequestError as exc:
            detail = str(exc) or type(exc).__name__
            self._log.error(
                "Network error during API request", method=method, url=url, error=detail
            )
            raise ApiNetworkError(f"Network error during API request: {detail}") from exc

        if not response.is_success:
            raise self._request_error(method, url, response)

        if method.upper() == "DELETE":
            self._log.debug("API request successful", method=method, url=url)
            return None

        if not response.text.strip():
            return {}

        try:
            data = response.json()
        except ValueError as exc:
            self._log.error(
                "Failed to parse API response",
                method=method,
                url=url,
                response_text=response.text[:RAW_MESSAGE_EXCERPT_LENGTH],
            )
            raise ApiInvalidResponseError(f"Invalid JSON response from API: {exc}") from exc

        self._log.debug("API request successful", method=method, url=url)
        return data

    def _request_error(self, method: str, url: str, response: httpx.Response) -> ApiRequestError:
        status = response.status_code
        text = response.text
        try:
            data = json.loads(text)
        except ValueError:
            message = text or f"HTTP {status} {response.reason_phrase}".rstrip()
        else:
            message = None
            if isinstance(data, dict):
                message = data.get("message") or data.get("error")
            message = message or "API request failed"

        full_message = f"API request failed ({status}): {message}"
        if status == 401:
            full_message = f"{full_message}. {AUTH_VERIFICATION_MESSAGE}"
        elif status == 403:
            full_message = f"{full_message}. {ACCOUNT_MANAGEMENT_MESSAGE}"

        self._log.error("API request failed", method=method, url=url, status=status, error=message)
        return ApiRequestError(full_message, status=status, status_text=response.reason_phrase)

    def _parse_hook(self, data: Any) -> Hook:
        try:
            return Hook.model_validate(data)
        except PydanticValidationError as exc:
            raise ApiInvalidResponseError(
                f"Unexpected hook record in API response: {exc.errors()[0]['msg']}"
            ) from exc

    async def create_hook(self, config: HookConfig | Mapping[str, Any]) -> Hook:
        """Create a hook.

        Raises:
            InvalidConfigurationError: If ``config`` is malformed.
            ApiError: If the request fails.
        """
        hook_config = validate_hook_config(config)
        self._log.debug("Creating hook", name=hook_config.name)
        hook = self._parse_hook(await self.request("POST", "/hooks", hook_config.to_payload()))
        self._log.info("Hook created successfully", hook_id=hook.id, name=hook.name)
        return hook

    async def get_hooks(self) -> list[Hook]:
        """List every hook owned by this client key."""
        self._log.debug("Fetching hooks")
        data = await self.request("GET", "/hooks")
        if data == {}:
            return []
        if not isinstance(data, list):
            raise ApiInvalidResponseError("Expected a list of hooks in API response")
        hooks = [self._parse_hook(item) for item in data]
        self._log.debug("Hooks fetched successfully", count=len(hooks))
        return hooks

    async def get_hook(self, hook_id: str) -> Hook:
        """Fetch one hook by identifier."""
        validate_hook_id(hook_id)
        self._log.debug("Fetching hook", hook_id=hook_id)
        return self._parse_hook(await self.request("GET", _hook_path(hook_id)))

    async def update_hook(self, hook_id: str, update: HookUpdate | Mapping[str, Any]) -> Hook:
        """Apply a partial update to a hook.

        Raises:
            InvalidConfigurationError: If the identifier or update is malformed.
            ApiError: If the request fails.
        """
        validate_hook_id(hook_id)
        hook_update = validate_partial_hook_config(update)
        self._log.debug("Updating hook", hook_id=hook_id)
        hook = self._parse_hook(
            await self.request("PUT", _hook_path(hook_id), hook_update.to_payload())
        )
        self._log.info("Hook updated successfully", hook_id=hook_id)
        return hook

    async def delete_hook(self, hook_id: str) -> None:
        """Delete a hook."""
        validate_hook_id(hook_id)
        self._log.debug("Deleting hook", hook_id=hook_id)
        await self.request("DELETE", _hook_path(hook_id))
        self._log.info("Hook deleted successfully", hook_id=hook_id)

    async def aclose(self) -> None:
        """Close the HTTP client if this gateway created it."""
        if self._owns_client:
            await self._http.aclose()


def _hook_path(hook_id: str) -> str:
    return f"/hooks/{quote(hook_id, safe='')}"


__all__ = ["HookApi"]
