"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

# Add tests directory to path so fakes can be imported
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from fakes import API_URL, CLIENT_KEY, WS_URL, FakeScheduler, FakeTransportFactory  # noqa: E402

from zhook.config import ClientConfig, LogLevel  # noqa: E402
from zhook.connection import ConnectionStateMachine  # noqa: E402
from zhook.dispatch import EventDispatcher  # noqa: E402
from zhook.logging import ClientLogger  # noqa: E402


@pytest.fixture
def scheduler() -> FakeScheduler:
    """Create a virtual-clock scheduler."""
    return FakeScheduler()


@pytest.fixture
def transports() -> FakeTransportFactory:
    """Create a transport factory whose transports open immediately."""
    return FakeTransportFactory()


@pytest.fixture
def log_sink() -> MagicMock:
    """Create a sink that records every log call."""
    return MagicMock()


@pytest.fixture
def client_logger(log_sink: MagicMock) -> ClientLogger:
    """Create a debug-level client logger writing to the recording sink."""
    return ClientLogger(LogLevel.DEBUG, sink=log_sink)


@pytest.fixture
def dispatcher(client_logger: ClientLogger) -> EventDispatcher:
    """Create a dispatcher with no handlers."""
    return EventDispatcher(client_logger)


@pytest.fixture
def errors(dispatcher: EventDispatcher) -> list[Exception]:
    """Collect every error emitted on the dispatcher's error channel."""
    from zhook.dispatch import HandlerKind

    collected: list[Exception] = []
    dispatcher.add_handler(HandlerKind.ERROR, collected.append)
    return collected


@pytest.fixture
def make_machine(
    scheduler: FakeScheduler,
    transports: FakeTransportFactory,
    dispatcher: EventDispatcher,
    client_logger: ClientLogger,
) -> Callable[..., ConnectionStateMachine]:
    """Build a state machine on the fakes; jitter is neutral (random 0.5)."""

    def _make(**overrides: Any) -> ConnectionStateMachine:
        config = ClientConfig(ws_url=WS_URL, api_url=API_URL, **overrides)
        return ConnectionStateMachine(
            CLIENT_KEY,
            config,
            dispatcher,
            client_logger,
            scheduler=scheduler,
            transport_factory=transports,
            random_source=lambda: 0.5,
        )

    return _make
