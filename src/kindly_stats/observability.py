"""Request observability — one record per HTTP attempt.

The client reports every attempt (including each 429 retry) to a
RequestObserver. Anything with a record() method qualifies; the default
LoggingObserver writes attempts to the module logger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestAttempt:
    """Metadata of one HTTP request/response exchange."""

    method: str
    url: str
    status_code: int
    elapsed: float
    attempt: int


@runtime_checkable
class RequestObserver(Protocol):
    def record(self, attempt: RequestAttempt) -> None: ...


class LoggingObserver:
    """Logs each attempt; rate-limited attempts at WARNING."""

    def record(self, attempt: RequestAttempt) -> None:
        level = logging.WARNING if attempt.status_code == 429 else logging.DEBUG
        logger.log(
            level,
            f"{attempt.method} {attempt.url} -> {attempt.status_code} "
            f"in {attempt.elapsed * 1000:.0f}ms (attempt {attempt.attempt})",
        )
