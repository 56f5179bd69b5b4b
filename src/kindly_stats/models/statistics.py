"""Typed models for metrics API payloads.

Each model is the shape of the envelope's "data" field for one endpoint (or
one element of it, for list endpoints). Every field has a default so a
sparse payload still decodes; the zero value of an object model is what the
client returns when a response carries no data.

Upstream timestamps look like 2021-02-01T00:00:00.000000 with no zone, so
they decode to naive datetimes.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CountByDate(BaseModel):
    """A count bucketed by date (sessions, messages)."""

    count: int = 0
    date: datetime | None = None


class CountByDateWithRate(CountByDate):
    """A dated count with the fraction it represents (fallback series)."""

    rate: float = 0.0


class RateTotal(BaseModel):
    """Count and fraction aggregated over the whole period."""

    count: int = 0
    rate: float = 0.0


class PageStatistic(BaseModel):
    """A web page where users talked to the bot."""

    model_config = ConfigDict(populate_by_name=True)

    messages: int = 0
    sessions: int = 0
    host: str = Field(default="", alias="web_host")
    path: str = Field(default="", alias="web_path")


class ChatLabel(BaseModel):
    """A label added to chats, with how many chats carry it."""

    id: str = ""
    count: int = 0
    text: str = ""


class Handovers(BaseModel):
    """Handover (human takeover) totals."""

    requests: int = 0
    requests_while_closed: int = 0
    started: int = 0
    ended: int = 0


class HandoversTimeSeries(Handovers):
    date: datetime | None = None


class Rating(BaseModel):
    """Aggregated user ratings for one rating value."""

    rating: int = 0
    count: int = 0
    ratio: float = 0.0


class Feedback(BaseModel):
    """Binary (thumbs) and emoji ratings given by users."""

    binary: list[Rating] = []
    emojis: list[Rating] = []
