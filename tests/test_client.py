"""Tests for the ZhookClient facade."""

from __future__ import annotations

import httpx
import pytest
from fakes import (
    API_URL,
    CLIENT_KEY,
    WS_URL,
    FakeScheduler,
    FakeTransportFactory,
    connected_message,
    event_message,
)

from zhook import ZhookClient
from zhook.config import LogLevel, Settings, settings
from zhook.connection import ConnectionState
from zhook.exceptions import (
    ClientClosedError,
    InvalidConfigurationError,
    InvalidCredentialError,
    InvalidHandlerError,
    TransportError,
)


@pytest.fixture
def make_client(scheduler: FakeScheduler, transports: FakeTransportFactory, client_logger):
    """Build clients wired to the fake transport and scheduler."""

    def _make(**overrides) -> ZhookClient:
        options = {
            "ws_url": WS_URL,
            "api_url": API_URL,
            "logger": client_logger,
            "scheduler": scheduler,
            "transport_factory": transports,
            **overrides,
        }
        return ZhookClient(CLIENT_KEY, **options)

    return _make


class TestConstruction:
    """Tests for option validation at construction time."""

    @pytest.mark.parametrize("key", ["", "   ", None, 12345678901])
    def test_rejects_missing_key(self, key) -> None:
        with pytest.raises(InvalidCredentialError):
            ZhookClient(key)

    def test_rejects_short_key(self) -> None:
        with pytest.raises(InvalidCredentialError, match="too short"):
            ZhookClient("short")

    def test_rejects_http_ws_url(self) -> None:
        with pytest.raises(InvalidConfigurationError) as exc_info:
            ZhookClient(CLIENT_KEY, ws_url="https://relay.test/events")
        assert exc_info.value.field == "ws_url"

    def test_rejects_small_reconnect_delay(self) -> None:
        with pytest.raises(InvalidConfigurationError) as exc_info:
            ZhookClient(CLIENT_KEY, reconnect_delay=50)
        assert exc_info.value.field == "reconnect_delay"

    def test_rejects_invalid_url_from_environment(self, monkeypatch) -> None:
        """A bad ZHOOK_WS_URL should fail at construction, not at connect."""
        monkeypatch.setenv("ZHOOK_WS_URL", "not a url")
        monkeypatch.setattr("zhook.validation.settings", Settings(_env_file=None))

        with pytest.raises(InvalidConfigurationError) as exc_info:
            ZhookClient(CLIENT_KEY)
        assert exc_info.value.field == "ws_url"

    def test_defaults_from_settings(self) -> None:
        config = ZhookClient(CLIENT_KEY).get_config()

        assert config.ws_url == settings.ws_url
        assert config.api_url == settings.api_url
        assert config.max_reconnect_attempts == settings.max_reconnect_attempts
        assert config.reconnect_delay == settings.reconnect_delay

    def test_overrides(self) -> None:
        client = ZhookClient(
            CLIENT_KEY,
            ws_url="ws://localhost:8080/events",
            max_reconnect_attempts=3,
            reconnect_delay=250,
            log_level="debug",
        )

        config = client.get_config()

        assert config.ws_url == "ws://localhost:8080/events"
        assert config.max_reconnect_attempts == 3
        assert config.reconnect_delay == 250
        assert config.log_level is LogLevel.DEBUG

    def test_initial_state(self, make_client) -> None:
        client = make_client()

        assert client.get_connection_state() is ConnectionState.DISCONNECTED
        assert not client.is_connected()
        assert client.get_client_id() is None


class TestConnectionLifecycle:
    """Tests for connect and close through the facade."""

    @pytest.mark.asyncio
    async def test_connect_and_receive(self, make_client, transports: FakeTransportFactory) -> None:
        """Handlers registered on the client should see connection and event frames."""
        client = make_client()
        connections, events = [], []
        client.on_connected(connections.append)
        client.on_hook_called(events.append)

        await client.connect()
        transports.last.fire_message(connected_message("client_9"))
        transports.last.fire_message(event_message("evt_1"))

        assert client.is_connected()
        assert client.get_client_id() == "client_9"
        assert connections[0].client_id == "client_9"
        assert events[0].event_id == "evt_1"

    @pytest.mark.asyncio
    async def test_connect_failure_propagates(
        self, make_client, transports: FakeTransportFactory
    ) -> None:
        transports.default = "error"
        client = make_client()

        with pytest.raises(TransportError):
            await client.connect()
        assert client.get_connection_state() is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_close_then_connect(self, make_client) -> None:
        client = make_client()
        await client.connect()

        client.close()

        assert client.get_connection_state() is ConnectionState.CLOSED
        with pytest.raises(ClientClosedError):
            await client.connect()

    @pytest.mark.asyncio
    async def test_async_context_manager(self, make_client) -> None:
        """The context manager should connect on entry and close on exit."""
        client = make_client()

        async with client as entered:
            assert entered is client
            assert client.is_connected()

        assert client.get_connection_state() is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_context_manager_closes_on_connect_failure(
        self, make_client, transports: FakeTransportFactory
    ) -> None:
        transports.default = "error"
        client = make_client()

        with pytest.raises(TransportError):
            async with client:
                pass

        assert client.get_connection_state() is ConnectionState.CLOSED


class TestHandlers:
    """Tests for handler registration through the facade."""

    def test_registration_returns_handler(self, make_client) -> None:
        """Registration methods should return the handler so they work as decorators."""
        client = make_client()

        @client.on_hook_called
        def handle(event):
            pass

        assert callable(handle)

    def test_rejects_non_callable(self, make_client) -> None:
        client = make_client()
        with pytest.raises(InvalidHandlerError):
            client.on_error("nope")

    @pytest.mark.asyncio
    async def test_remove_handler(self, make_client, transports: FakeTransportFactory) -> None:
        client = make_client()
        events = []
        client.on_hook_called(events.append)
        await client.connect()

        client.remove_handler(events.append)
        transports.last.fire_message(event_message())

        assert events == []

    @pytest.mark.asyncio
    async def test_errors_reach_error_handlers(
        self, make_client, transports: FakeTransportFactory
    ) -> None:
        client = make_client()
        errors = []
        client.on_error(errors.append)
        await client.connect()

        transports.last.fire_message("not json")

        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_events_flow_after_malformed_frame(
        self, make_client, transports: FakeTransportFactory
    ) -> None:
        client = make_client()
        errors, events = [], []
        client.on_error(errors.append)
        client.on_hook_called(events.append)
        await client.connect()

        transports.last.fire_message("not json")
        transports.last.fire_message(event_message("evt_2"))

        assert len(errors) == 1
        assert "Message parsing failed" in str(errors[0])
        assert [event.event_id for event in events] == ["evt_2"]


class TestHooks:
    """Tests for hook management through the facade."""

    @pytest.mark.asyncio
    async def test_crud_round_trip(self, make_client) -> None:
        """Each hook operation should reach the REST API with the right method."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            if request.method == "DELETE":
                return httpx.Response(204)
            if request.method == "GET" and request.url.path.endswith("/hooks"):
                return httpx.Response(200, json=[{"id": "hook_1", "name": "orders"}])
            return httpx.Response(200, json={"id": "hook_1", "name": "orders"})

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = make_client(http_client=http_client)

        created = await client.create_hook({"name": "orders", "url": "https://example.com/o"})
        listed = await client.get_hooks()
        fetched = await client.get_hook("hook_1")
        updated = await client.update_hook("hook_1", {"events": ["order.paid"]})
        await client.delete_hook("hook_1")
        await client.aclose()

        assert created.id == fetched.id == updated.id == "hook_1"
        assert [hook.id for hook in listed] == ["hook_1"]
        assert seen == [
            ("POST", "/v1/hooks"),
            ("GET", "/v1/hooks"),
            ("GET", "/v1/hooks/hook_1"),
            ("PUT", "/v1/hooks/hook_1"),
            ("DELETE", "/v1/hooks/hook_1"),
        ]
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_validation_errors_raise_synchronously(self, make_client) -> None:
        client = make_client()

        with pytest.raises(InvalidConfigurationError, match="Hook name must be a non-empty string"):
            await client.create_hook({"name": "", "url": "https://example.com"})
