"""Query filter — the immutable description of one statistics query.

A Filter carries the time range, bucket size, row limit and traffic sources
of a query. It projects itself to wire-level query parameters with query();
fields left at their zero value are omitted from the projection entirely,
so the upstream API applies its own defaults for them.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator

DATE_LAYOUT = "%Y-%m-%d"
HOUR_LAYOUT = "%Y-%m-%d %H:%M"


class Granularity(str, Enum):
    """Time bucket size for series endpoints."""

    UNSPECIFIED = ""
    DAY = "day"
    HOUR = "hour"
    WEEK = "week"

    @property
    def wire_value(self) -> str:
        """The value sent upstream. Anything unrecognized means "day"."""
        if self in (Granularity.DAY, Granularity.HOUR, Granularity.WEEK):
            return self.value
        return Granularity.DAY.value

    def format_timestamp(self, value: date | datetime) -> str:
        """Render a row timestamp: with hour and minute for hourly buckets only."""
        if self is Granularity.HOUR:
            if not isinstance(value, datetime):
                value = datetime(value.year, value.month, value.day)
            return value.strftime(HOUR_LAYOUT)
        return value.strftime(DATE_LAYOUT)


class Filter(BaseModel):
    """Time range, granularity, limit and source set of a query."""

    model_config = ConfigDict(frozen=True)

    from_date: date | None = None
    to_date: date | None = None
    granularity: Granularity = Granularity.UNSPECIFIED
    limit: int = 0
    sources: tuple[str, ...] = ()
    language_codes: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_range(self) -> Filter:
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError(
                f"from ({self.from_date.isoformat()}) is after to ({self.to_date.isoformat()})"
            )
        return self

    def query(self) -> list[tuple[str, str]]:
        """Project to ordered query parameters, skipping zero-valued fields."""
        params: list[tuple[str, str]] = []
        if self.from_date:
            params.append(("from", self.from_date.strftime(DATE_LAYOUT)))
        if self.to_date:
            params.append(("to", self.to_date.strftime(DATE_LAYOUT)))
        if self.granularity is not Granularity.UNSPECIFIED:
            params.append(("granularity", self.granularity.wire_value))
        if self.limit:
            params.append(("limit", str(self.limit)))
        params.extend(("sources", source) for source in self.sources)
        params.extend(("language_codes", code) for code in self.language_codes)
        return params


def query(f: Filter | None) -> list[tuple[str, str]]:
    """Query parameters for an optional filter; no filter means no parameters."""
    if f is None:
        return []
    return f.query()
