"""
Shared test fixtures and configuration for entire test suite.

Provides: Fake push socket and connector, fake clock, mocked backend client,
status record factory, polling helper for event-loop driven assertions
Dependencies: pytest, unittest.mock
System role: Test infrastructure and fixture management
"""

import asyncio
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from runwatch.configs.api import ApiSettings
from runwatch.configs.watchers import PollSettings, PushSettings
from runwatch.models.application_run import StatusRecord

_CLOSED = object()


class FakeSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.closed_by_client = False
        self._frames: asyncio.Queue = asyncio.Queue()

    def push(self, message: str | bytes) -> None:
        """Deliver a frame from the server."""
        self._frames.put_nowait(message)

    def server_close(self, code: int = 1000, reason: str = "") -> None:
        """Close the connection from the server side."""
        self.close_code = code
        self.close_reason = reason
        self._frames.put_nowait(_CLOSED)

    async def send(self, message: str) -> None:
        self.sent.append(message)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_by_client = True
        if self.close_code is None:
            self.close_code = code
            self.close_reason = reason
        self._frames.put_nowait(_CLOSED)

    def __aiter__(self) -> "FakeSocket":
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._frames.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class FakeConnector:
    """Returns queued sockets (or raises queued exceptions) for each open attempt."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.urls: list[str] = []

    async def __call__(self, url: str) -> FakeSocket:
        self.urls.append(url)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_record() -> Callable[..., StatusRecord]:
    """
    Create StatusRecord factory.

    Returns:
        Callable: Builds a record for a status, defaulting the run id to abc-1
    """

    def _make(status: str, run_id: str = "abc-1", **fields: Any) -> StatusRecord:
        return StatusRecord(id=run_id, status=status, **fields)

    return _make


@pytest.fixture
def mock_backend() -> AsyncMock:
    """
    Create mock backend client for testing.

    Returns:
        AsyncMock: Client with async get_application_status/confirm_user_action
    """
    backend = AsyncMock()
    backend.get_application_status = AsyncMock()
    backend.confirm_user_action = AsyncMock(return_value=None)
    return backend


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide manually advanced clock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def socket_factory() -> type[FakeSocket]:
    """Provide the FakeSocket class."""
    return FakeSocket


@pytest.fixture
def connector_factory() -> type[FakeConnector]:
    """Provide the FakeConnector class."""
    return FakeConnector


@pytest.fixture
def fast_poll_settings() -> PollSettings:
    """Poll settings with a short interval for event-loop driven tests."""
    return PollSettings(active_interval_seconds=0.01, timeout_seconds=60)


@pytest.fixture
def fast_push_settings() -> PushSettings:
    """Push settings with short delays for event-loop driven tests."""
    return PushSettings(
        heartbeat_interval_seconds=10,
        auto_reconnect=True,
        max_reconnect_attempts=5,
        reconnect_base_delay_seconds=0.01,
        reconnect_max_delay_seconds=0.05,
        manual_reconnect_delay_seconds=0.0,
    )


@pytest.fixture
def api_settings() -> ApiSettings:
    """API settings pointing at an https backend."""
    return ApiSettings(base_url="https://api.example.com/api/v1")


@pytest.fixture
def wait_until() -> Callable[..., Any]:
    """
    Provide async helper that waits for a condition on the event loop.

    Returns:
        Callable: wait_until(predicate, timeout=1.0); fails the test on timeout
    """

    async def _wait(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                pytest.fail("Condition not met before timeout")
            await asyncio.sleep(0.002)

    return _wait
