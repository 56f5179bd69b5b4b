"""Client configuration.

One immutable structure holds everything the composing layer decides once:
which bot to query, the API key used to mint bearer tokens, where the two
APIs live, and the pluggable transport and observer. The client and its
credential cache are built from it and never mutate it.

Environment variables (see from_env):
  BOT_ID                 — Kindly bot identifier (required)
  KINDLY_API_KEY         — static API key for the token endpoint (required)
  KINDLY_STATS_BASE_URL  — metrics API base URL override
  KINDLY_TOKEN_URL_BASE  — token API base URL override
"""

from __future__ import annotations

import os

import httpx
from pydantic import BaseModel, ConfigDict, SecretStr

from kindly_stats.observability import RequestObserver

DEFAULT_BASE_URL = "https://sage.kindly.ai/api/v1/stats/bot"
DEFAULT_TOKEN_URL_BASE = "https://api.kindly.ai/api/v2/bot"


class ClientConfig(BaseModel):
    """Everything needed to build a StatisticsClient."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    bot_id: str
    api_key: SecretStr
    base_url: str = DEFAULT_BASE_URL
    token_url_base: str = DEFAULT_TOKEN_URL_BASE
    transport: httpx.AsyncBaseTransport | None = None
    observer: RequestObserver | None = None
    timeout: float = 30.0
    backoff_initial: float = 1.0
    backoff_max: float = 30.0

    @property
    def token_url(self) -> str:
        return f"{self.token_url_base.rstrip('/')}/{self.bot_id}/sage/auth"

    def endpoint_url(self, endpoint: str) -> str:
        return f"{self.base_url.rstrip('/')}/{self.bot_id}/{endpoint.lstrip('/')}"

    @classmethod
    def from_env(cls, **overrides: object) -> ClientConfig:
        """Build a config from environment variables; keyword overrides win."""
        values: dict[str, object] = {
            "bot_id": _require_env("BOT_ID"),
            "api_key": _require_env("KINDLY_API_KEY"),
        }
        if base_url := os.environ.get("KINDLY_STATS_BASE_URL"):
            values["base_url"] = base_url
        if token_url_base := os.environ.get("KINDLY_TOKEN_URL_BASE"):
            values["token_url_base"] = token_url_base
        values.update(overrides)
        return cls(**values)


def _require_env(name: str) -> str:
    value = os.environ.get(name, "")
    if not value:
        raise ValueError(f"Environment variable '{name}' is not set or empty")
    return value
