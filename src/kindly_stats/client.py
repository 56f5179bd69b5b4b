"""Statistics API client — the request pipeline plus one method per endpoint.

Every endpoint goes through do():

  1. Build GET {base_url}/{bot_id}/{endpoint}?{filter query} with
     Accept: application/json and a bearer token from the CredentialCache.
  2. Send it through the configured httpx transport, reporting each attempt
     to the RequestObserver.
  3. On 429, wait and resend the same request (tenacity, no attempt
     ceiling). A Retry-After header dictates the wait; without one the wait
     grows exponentially up to backoff_max. An unparsable Retry-After is
     terminal. The waits are plain asyncio sleeps, so cancellation and
     asyncio.timeout() deadlines interrupt them.
  4. Any other status above 399 raises UpstreamError with the body attached.
  5. Otherwise unwrap the {"data": ...} envelope and validate the payload
     into the requested type.

A success response whose body isn't a JSON object is treated as "no data"
rather than an error, and logged at WARNING. So is "data": null. A JSON
object with no data field at all raises EnvelopeError.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_never,
    wait_exponential,
)
from tenacity.wait import wait_base

from kindly_stats.auth import CredentialCache, utc_now
from kindly_stats.config import ClientConfig
from kindly_stats.errors import EnvelopeError, UpstreamError
from kindly_stats.models.filter import Filter, query
from kindly_stats.models.statistics import (
    ChatLabel,
    CountByDate,
    CountByDateWithRate,
    Feedback,
    Handovers,
    HandoversTimeSeries,
    PageStatistic,
    RateTotal,
)
from kindly_stats.observability import LoggingObserver, RequestAttempt, RequestObserver

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimited(Exception):
    """Internal retry signal for a 429 answer."""

    def __init__(self, retry_after: float | None) -> None:
        self.retry_after = retry_after
        super().__init__(f"rate limited (Retry-After: {retry_after})")


class wait_retry_after(wait_base):
    """Wait what the server asked for, or fall back to another strategy."""

    def __init__(self, fallback: wait_base) -> None:
        self.fallback = fallback

    def __call__(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, RateLimited) and exc.retry_after is not None:
            return exc.retry_after
        return self.fallback(retry_state)


def parse_retry_after(value: str) -> float | None:
    """Parse a Retry-After header given in whole seconds; None if unusable."""
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    if seconds < 0:
        return None
    return float(seconds)


class StatisticsClient:
    """Async client for the Kindly statistics API.

    Owns one httpx.AsyncClient, shared with its CredentialCache. Use it as
    an async context manager or call aclose() when done.
    """

    def __init__(
        self,
        config: ClientConfig,
        credentials: CredentialCache | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self._http = httpx.AsyncClient(transport=config.transport, timeout=config.timeout)
        self.credentials = credentials or CredentialCache(config, self._http, clock=clock)
        self.observer: RequestObserver = config.observer or LoggingObserver()
        self.request_count: int = 0

    async def __aenter__(self) -> StatisticsClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(RateLimited),
            wait=wait_retry_after(
                wait_exponential(
                    multiplier=self.config.backoff_initial,
                    max=self.config.backoff_max,
                )
            ),
            stop=stop_never,
            reraise=True,
        )

    async def do(
        self,
        endpoint: str,
        f: Filter | None = None,
        target: type[T] | Any = None,
    ) -> T | None:
        """Run one logical GET and return the decoded envelope payload.

        Returns None when target is None or the response carried no data.
        """
        credential = await self.credentials.get_valid_token()
        request = self._http.build_request(
            "GET",
            self.config.endpoint_url(endpoint),
            params=query(f),
            headers={
                "Accept": "application/json",
                "Authorization": credential.authorization,
            },
        )

        async for attempt in self._retrying():
            with attempt:
                response = await self._send(request, attempt.retry_state.attempt_number)

        if target is None:
            return None
        data = self._unwrap(response)
        if data is None:
            return None
        return TypeAdapter(target).validate_python(data)

    async def _send(self, request: httpx.Request, attempt_number: int) -> httpx.Response:
        """Send once; classify the status into retry, error or success."""
        self.request_count += 1
        started = time.monotonic()
        response = await self._http.send(request)
        self.observer.record(
            RequestAttempt(
                method=request.method,
                url=str(request.url),
                status_code=response.status_code,
                elapsed=time.monotonic() - started,
                attempt=attempt_number,
            )
        )

        if response.status_code == 429:
            header = response.headers.get("Retry-After")
            if header is None:
                raise RateLimited(None)
            seconds = parse_retry_after(header)
            if seconds is None:
                raise UpstreamError(response.status_code, response.content)
            raise RateLimited(seconds)

        if response.status_code > 399:
            raise UpstreamError(response.status_code, response.content)

        return response

    @staticmethod
    def _unwrap(response: httpx.Response) -> Any | None:
        """Extract the envelope's data field.

        None for a body that isn't a JSON object or for "data": null. An
        object without a data field is an EnvelopeError.
        """
        try:
            envelope = response.json()
        except ValueError:
            logger.warning(f"Undecodable envelope from {response.request.url}, treating as no data")
            return None
        if not isinstance(envelope, dict):
            logger.warning(f"Non-object envelope from {response.request.url}, treating as no data")
            return None
        if "data" not in envelope:
            raise EnvelopeError(response.status_code, response.content)
        return envelope["data"]

    # =========================================================================
    # SESSIONS
    # =========================================================================

    async def chat_sessions(self, f: Filter | None = None) -> list[CountByDate]:
        """Number of chats where users engaged with the bot."""
        return await self.do("sessions/chats", f, list[CountByDate]) or []

    async def user_messages(self, f: Filter | None = None) -> list[CountByDate]:
        """Number of messages from users."""
        return await self.do("sessions/messages", f, list[CountByDate]) or []

    # =========================================================================
    # PAGES & LABELS
    # =========================================================================

    async def page_statistics(self, f: Filter | None = None) -> list[PageStatistic]:
        """Most frequent web pages where users talked to the bot.

        Upstream returns the top 3 pages unless the filter sets a limit.
        """
        return await self.do("chatbubble/pages", f, list[PageStatistic]) or []

    async def chat_labels(self, f: Filter | None = None) -> list[ChatLabel]:
        """Labels added to chats in the period."""
        return await self.do("chatlabels/added", f, list[ChatLabel]) or []

    # =========================================================================
    # FALLBACKS
    # =========================================================================

    async def fallback_rate_total(self, f: Filter | None = None) -> RateTotal:
        """Count and fraction of bot replies that were fallbacks, in total."""
        result = await self.do("fallbacks/total", f, RateTotal)
        return result if result is not None else RateTotal()

    async def fallback_rate_time_series(
        self, f: Filter | None = None
    ) -> list[CountByDateWithRate]:
        """Count and fraction of fallback replies as a time series."""
        return await self.do("fallbacks/series", f, list[CountByDateWithRate]) or []

    # =========================================================================
    # HANDOVERS
    # =========================================================================

    async def handovers_total(self, f: Filter | None = None) -> Handovers:
        """Handover requests (open and closed), started and ended, in total."""
        result = await self.do("takeovers/totals", f, Handovers)
        return result if result is not None else Handovers()

    async def handovers_time_series(
        self, f: Filter | None = None
    ) -> list[HandoversTimeSeries]:
        """Handover counts as a time series."""
        return await self.do("takeovers/series", f, list[HandoversTimeSeries]) or []

    # =========================================================================
    # FEEDBACK
    # =========================================================================

    async def aggregated_feedback(self, f: Filter | None = None) -> Feedback:
        """Ratings users gave the bot in the period."""
        result = await self.do("feedback/summary", f, Feedback)
        return result if result is not None else Feedback()

