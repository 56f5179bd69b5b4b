"""Models for the token endpoint and the cached bearer credential."""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict


class Credential(BaseModel):
    """A bearer token and the moment it stops being usable."""

    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"


class TokenResponse(BaseModel):
    """Body of GET {token_url_base}/{bot_id}/sage/auth."""

    jwt: str
    ttl: int

    def to_credential(self, fetched_at: datetime) -> Credential:
        return Credential(token=self.jwt, expires_at=fetched_at + timedelta(seconds=self.ttl))
