"""Bearer credential cache for the metrics API.

The metrics API wants a short-lived JWT, minted by the token endpoint in
exchange for the bot's static API key. CredentialCache keeps the current
token and refreshes it when it expires:

  - A valid cached credential is returned without any network call.
  - A stale or missing credential triggers exactly one refresh. Callers that
    arrive while that refresh is running await the same task instead of
    starting their own (single-flight).
  - A failed refresh leaves the cache as it was and raises an AuthError to
    every waiter. The next caller starts a fresh attempt.

Waiters await the shared refresh through asyncio.shield(), so cancelling one
waiter never cancels the refresh the others depend on. When the last waiter
is cancelled the refresh itself is cancelled and the slot is cleared.

Token bodies larger than MAX_TOKEN_BODY_BYTES are rejected as malformed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

import httpx
from pydantic import ValidationError

from kindly_stats.config import ClientConfig
from kindly_stats.errors import (
    MalformedResponseError,
    TransientFetchError,
    UnauthorizedError,
)
from kindly_stats.models.auth import Credential, TokenResponse

logger = logging.getLogger(__name__)

MAX_TOKEN_BODY_BYTES = 1 << 20


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def _read_capped(response: httpx.Response, limit: int) -> bytes:
    """Read a streamed body, refusing anything larger than limit bytes."""
    length = response.headers.get("Content-Length", "")
    if length.isdigit() and int(length) > limit:
        raise MalformedResponseError(f"token body too large: {length} bytes")

    body = bytearray()
    async for chunk in response.aiter_bytes():
        body.extend(chunk)
        if len(body) > limit:
            raise MalformedResponseError(f"token body exceeds {limit} bytes")
    return bytes(body)


class CredentialCache:
    """Caches one bearer credential and refreshes it single-flight."""

    def __init__(
        self,
        config: ClientConfig,
        http: httpx.AsyncClient,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self._http = http
        self._clock = clock
        self._credential: Credential | None = None
        self._refresh_task: asyncio.Task[Credential] | None = None
        self._refresh_waiters: int = 0
        self.refresh_count: int = 0

    @property
    def credential(self) -> Credential | None:
        return self._credential

    def invalidate(self) -> None:
        """Forget the cached credential; the next caller refreshes."""
        self._credential = None

    async def get_valid_token(self) -> Credential:
        """Return a credential that is valid now, refreshing if needed."""
        credential = self._credential
        if credential is not None and credential.is_valid(self._clock()):
            return credential

        # No await between the check and the assignment, so only one task
        # can ever observe _refresh_task as None here.
        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh())
            self._refresh_task.add_done_callback(self._clear_refresh_task)
            self._refresh_waiters = 0

        task = self._refresh_task
        self._refresh_waiters += 1
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._refresh_task is task:
                self._refresh_waiters -= 1
                if self._refresh_waiters == 0:
                    task.cancel()
                    self._refresh_task = None
            raise

    def _clear_refresh_task(self, task: asyncio.Task[Credential]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # Mark the exception retrieved even if every waiter was cancelled.
        if not task.cancelled():
            task.exception()

    async def _refresh(self) -> Credential:
        credential = await self._fetch_token()
        self._credential = credential
        return credential

    async def _fetch_token(self) -> Credential:
        """GET the token endpoint and decode {jwt, ttl} into a Credential."""
        self.refresh_count += 1
        fetched_at = self._clock()
        headers = {
            "Authorization": f"Bearer {self.config.api_key.get_secret_value()}",
            "Accept": "application/json",
        }
        try:
            async with self._http.stream("GET", self.config.token_url, headers=headers) as response:
                if response.status_code == 401:
                    raise UnauthorizedError("unauthorized")
                if response.status_code != 200:
                    raise TransientFetchError(f"unexpected status code {response.status_code}")

                content_type = response.headers.get("Content-Type", "")
                if not content_type.startswith("application/json"):
                    raise MalformedResponseError(f"unexpected content-type: {content_type}")

                body = await _read_capped(response, MAX_TOKEN_BODY_BYTES)
        except httpx.TransportError as e:
            raise TransientFetchError(f"token request failed: {e}") from e

        try:
            token = TokenResponse.model_validate_json(body)
        except ValidationError as e:
            raise MalformedResponseError(f"undecodable token body: {e}") from e

        credential = token.to_credential(fetched_at)
        logger.info(
            f"Fetched token for bot '{self.config.bot_id}', "
            f"valid until {credential.expires_at.isoformat()}"
        )
        return credential
