"""Metrics queried once per source over the whole range.

These endpoints already return a dated series, so rows carry the date
upstream reported rather than a window start.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from kindly_stats.metrics.base import AggregationMode, BaseMetric, Row, format_ratio
from kindly_stats.models.statistics import CountByDate, CountByDateWithRate, HandoversTimeSeries

if TYPE_CHECKING:
    from kindly_stats.client import StatisticsClient
    from kindly_stats.models.filter import Filter, Granularity


def _stamp(value: datetime | None, granularity: Granularity) -> str:
    return granularity.format_timestamp(value) if value is not None else ""


class MessagesMetric(BaseMetric):
    """User messages per bucket."""

    name = "messages"
    mode = AggregationMode.PER_SOURCE
    columns = ("date", "source", "count")

    async def fetch(self, client: StatisticsClient, f: Filter) -> list[CountByDate]:
        return await client.user_messages(f)

    def to_rows(
        self,
        result: list[CountByDate],
        window_start: date,
        source: str,
        granularity: Granularity,
    ) -> list[Row]:
        return [(_stamp(item.date, granularity), source, str(item.count)) for item in result]


class SessionsMetric(MessagesMetric):
    """Chat sessions per bucket."""

    name = "sessions"

    async def fetch(self, client: StatisticsClient, f: Filter) -> list[CountByDate]:
        return await client.chat_sessions(f)


class FallbacksMetric(BaseMetric):
    """Fallback replies and their share of all replies, per bucket."""

    name = "fallbacks"
    mode = AggregationMode.PER_SOURCE
    columns = ("date", "source", "count", "rate")

    async def fetch(self, client: StatisticsClient, f: Filter) -> list[CountByDateWithRate]:
        return await client.fallback_rate_time_series(f)

    def to_rows(
        self,
        result: list[CountByDateWithRate],
        window_start: date,
        source: str,
        granularity: Granularity,
    ) -> list[Row]:
        return [
            (_stamp(item.date, granularity), source, str(item.count), format_ratio(item.rate))
            for item in result
        ]


class HandoversMetric(BaseMetric):
    """Handover requests and takeovers per bucket."""

    name = "handovers"
    mode = AggregationMode.PER_SOURCE
    columns = ("date", "source", "requests", "requests_while_closed", "started", "ended")

    async def fetch(self, client: StatisticsClient, f: Filter) -> list[HandoversTimeSeries]:
        return await client.handovers_time_series(f)

    def to_rows(
        self,
        result: list[HandoversTimeSeries],
        window_start: date,
        source: str,
        granularity: Granularity,
    ) -> list[Row]:
        return [
            (
                _stamp(item.date, granularity),
                source,
                str(item.requests),
                str(item.requests_while_closed),
                str(item.started),
                str(item.ended),
            )
            for item in result
        ]
