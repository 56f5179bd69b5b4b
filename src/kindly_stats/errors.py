"""Exception taxonomy for the statistics client.

Every failure the library raises on purpose derives from StatisticsError:

  AuthError        — the token endpoint refused or garbled a credential
  UpstreamError    — the metrics API answered with a terminal error status
  EnvelopeError    — a success response carried an object without a data field
  AggregationError — one sub-query of a windowed export failed
  FilterValidationError — a Filter can't be aggregated (checked pre-network)

Cancellation is not part of this hierarchy. asyncio.CancelledError and the
TimeoutError raised by asyncio.timeout() propagate untouched so callers keep
their normal cancellation semantics.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kindly_stats.models.window import Window


class StatisticsError(Exception):
    """Base class for all statistics client errors."""


class AuthErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    TRANSIENT_FETCH = "transient_fetch"
    MALFORMED = "malformed"


class AuthError(StatisticsError):
    """Credential acquisition failed. The cached credential is left untouched."""

    kind: AuthErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(f"failed to fetch token: {message}")


class UnauthorizedError(AuthError):
    """The API key was rejected (HTTP 401). Retrying won't help."""

    kind = AuthErrorKind.UNAUTHORIZED


class TransientFetchError(AuthError):
    """Non-200 answer or transport failure. The caller may retry later."""

    kind = AuthErrorKind.TRANSIENT_FETCH


class MalformedResponseError(AuthError):
    """Wrong content type or a body that doesn't decode as {jwt, ttl}."""

    kind = AuthErrorKind.MALFORMED


class UpstreamError(StatisticsError):
    """Terminal error status from the metrics API, with the body attached."""

    def __init__(self, status_code: int, body: bytes | str = b"") -> None:
        self.status_code = status_code
        self.body = body.encode() if isinstance(body, str) else body
        super().__init__(f"statistics: erroneous status code {status_code}")

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class EnvelopeError(StatisticsError):
    """A success response was a JSON object without a 'data' field."""

    def __init__(self, status_code: int, body: bytes = b"") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"statistics: response envelope has no data field (status {status_code})")


class FilterValidationError(StatisticsError, ValueError):
    """The Filter can't be turned into sub-queries."""


class AggregationError(StatisticsError):
    """A sub-query failed; the whole aggregation was aborted."""

    def __init__(self, window: Window, cause: BaseException) -> None:
        self.window = window
        self.cause = cause
        super().__init__(
            f"aggregation aborted at window {window.start.isoformat()}.."
            f"{window.end.isoformat()} source '{window.source}': {cause}"
        )

    @property
    def source(self) -> str:
        return self.window.source


def is_client_error(exc: BaseException) -> bool:
    """Whether a front end should surface this error as the caller's fault.

    Unauthorized credentials, 4xx upstream answers and invalid filters are
    client-visible; everything else is a server-side failure.
    """
    if isinstance(exc, AggregationError):
        return is_client_error(exc.cause)
    if isinstance(exc, (UnauthorizedError, FilterValidationError)):
        return True
    if isinstance(exc, UpstreamError):
        return exc.is_client_error
    return False
