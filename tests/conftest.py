"""
Shared test fixtures.

Provides an in-memory stand-in for aiohttp.ClientSession so probes
and webhook deliveries never touch the network.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from core.clock import MockClock
from health_monitor.config import MonitorConfig
from health_monitor.context import MonitorContext


WEBHOOK_URL = "https://hooks.example.com/open-apis/bot/v2/hook/secret-token"


# ============================================================
# FAKE HTTP SESSION
# ============================================================

class FakeResponse:
    """Response carrying only a status and a body."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body


class FakeRequest:
    """Async context manager returned by FakeSession.get/post."""

    def __init__(self, outcome: Any):
        self._outcome = outcome

    async def __aenter__(self) -> FakeResponse:
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return FakeResponse(self._outcome)

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class FakeSession:
    """
    Scripted HTTP session.

    routes maps a URL to an outcome or a list of outcomes. An outcome
    is an HTTP status code or an exception instance to raise. A list
    is consumed one entry per request, repeating its last entry.
    """

    def __init__(
        self,
        routes: Optional[Dict[str, Any]] = None,
        webhook_outcome: Any = 200,
    ):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.webhook_outcome = webhook_outcome
        self.get_calls: List[Dict[str, Any]] = []
        self.posts: List[Dict[str, Any]] = []
        self.closed = False

    def _next_outcome(self, url: str) -> Any:
        outcome = self.routes.get(url, 200)
        if isinstance(outcome, list):
            return outcome.pop(0) if len(outcome) > 1 else outcome[0]
        return outcome

    def get(self, url: str, **kwargs) -> FakeRequest:
        self.get_calls.append({"url": url, **kwargs})
        return FakeRequest(self._next_outcome(url))

    def post(self, url: str, json: Any = None, **kwargs) -> FakeRequest:
        self.posts.append({"url": url, "json": json, **kwargs})
        return FakeRequest(self.webhook_outcome)

    def posts_containing(self, text: str) -> List[Dict[str, Any]]:
        return [p for p in self.posts if text in p["json"]["content"]["text"]]

    async def close(self) -> None:
        self.closed = True


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def fake_session_cls():
    """The FakeSession class, for tests that build their own."""
    return FakeSession


@pytest.fixture
def fake_session():
    """A session where every target answers 200."""
    return FakeSession()


@pytest.fixture
def mock_clock():
    """Clock frozen at a known instant."""
    return MockClock(datetime(2024, 1, 15, 3, 30, 0, tzinfo=timezone.utc))


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def make_config():
    """Factory for a valid MonitorConfig with overrides."""
    def _make(**overrides) -> MonitorConfig:
        values = {
            "webhook_url": WEBHOOK_URL,
            "targets": ["https://good.example.com/health"],
            "retry_attempts": 3,
            "retry_delay_ms": 1000,
            "request_timeout_ms": 10000,
            "timezone": "UTC",
        }
        values.update(overrides)
        return MonitorConfig(**values)
    return _make


@pytest.fixture
def make_context(make_config, mock_clock):
    """Factory for a MonitorContext with an initialized store."""
    def _make(session=None, **config_overrides) -> MonitorContext:
        config = make_config(**config_overrides)
        context = MonitorContext(config=config, clock=mock_clock, session=session)
        context.store.initialize(config.targets)
        return context
    return _make
