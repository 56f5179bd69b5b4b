"""Shared test fixtures for the statistics client tests.

Provides:
  - Mock HTTP transport for httpx (intercepts all requests, token and metrics)
  - A controllable clock for credential expiry
  - Pre-built ClientConfig / StatisticsClient instances wired to the mock
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest
from kindly_stats.client import StatisticsClient
from kindly_stats.config import ClientConfig
from kindly_stats.observability import RequestAttempt

BASE_URL = "https://stats.test/api/v1/stats/bot"
TOKEN_URL_BASE = "https://auth.test/api/v2/bot"
BOT_ID = "test-bot"
API_KEY = "test-api-key"

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


def token_response(jwt: str = "jwt-1", ttl: int = 300) -> httpx.Response:
    return httpx.Response(200, json={"jwt": jwt, "ttl": ttl})


def envelope(data: Any) -> httpx.Response:
    return httpx.Response(200, json={"data": data})


class MockTransport(httpx.AsyncBaseTransport):
    """Mock HTTP transport that returns preconfigured responses.

    Usage:
        transport = MockTransport(responses=[
            httpx.Response(200, json={"data": [...]}),
        ])

    Requests to the token endpoint pop from token_responses (a fresh valid
    token each time once that list is empty); all other requests pop from
    responses, or go to handler when one is given. An exhausted response
    list returns a 500 error.
    """

    def __init__(
        self,
        responses: list[httpx.Response] | None = None,
        token_responses: list[httpx.Response | Exception] | None = None,
        handler: Handler | None = None,
        token_handler: Handler | None = None,
    ) -> None:
        self.responses = list(responses or [])
        self.token_responses = list(token_responses or [])
        self.handler = handler
        self.token_handler = token_handler
        self.requests: list[httpx.Request] = []
        self.token_requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/sage/auth"):
            self.token_requests.append(request)
            response = await self._token_response(request)
        else:
            self.requests.append(request)
            response = await self._metrics_response(request)
        response.stream = httpx.ByteStream(response.content)
        return response

    async def _token_response(self, request: httpx.Request) -> httpx.Response:
        if self.token_handler is not None:
            return await self.token_handler(request)
        if self.token_responses:
            item = self.token_responses.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return token_response(jwt=f"jwt-{len(self.token_requests)}")

    async def _metrics_response(self, request: httpx.Request) -> httpx.Response:
        if self.handler is not None:
            return await self.handler(request)
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(500, json={"error": "No more mock responses"})


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2021, 2, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingObserver:
    def __init__(self) -> None:
        self.attempts: list[RequestAttempt] = []

    def record(self, attempt: RequestAttempt) -> None:
        self.attempts.append(attempt)


def make_config(transport: httpx.AsyncBaseTransport, **overrides: Any) -> ClientConfig:
    values: dict[str, Any] = {
        "bot_id": BOT_ID,
        "api_key": API_KEY,
        "base_url": BASE_URL,
        "token_url_base": TOKEN_URL_BASE,
        "transport": transport,
        "backoff_initial": 0.0,
        "backoff_max": 0.0,
    }
    values.update(overrides)
    return ClientConfig(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
async def client(transport, clock, observer):
    async with StatisticsClient(make_config(transport, observer=observer), clock=clock) as c:
        yield c
