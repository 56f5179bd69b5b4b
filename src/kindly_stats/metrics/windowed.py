"""Metrics queried one day and one source at a time.

Upstream only reports these as totals over the requested range, so the
aggregator asks for each day separately and tags every row with the day.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from kindly_stats.metrics.base import AggregationMode, BaseMetric, Row
from kindly_stats.models.statistics import ChatLabel, PageStatistic

if TYPE_CHECKING:
    from kindly_stats.client import StatisticsClient
    from kindly_stats.models.filter import Filter, Granularity


class LabelsMetric(BaseMetric):
    """Chat labels added per day."""

    name = "labels"
    mode = AggregationMode.DAY_WINDOWED
    columns = ("date", "source", "id", "count", "text")

    async def fetch(self, client: StatisticsClient, f: Filter) -> list[ChatLabel]:
        return await client.chat_labels(f)

    def to_rows(
        self,
        result: list[ChatLabel],
        window_start: date,
        source: str,
        granularity: Granularity,
    ) -> list[Row]:
        day = granularity.format_timestamp(window_start)
        return [(day, source, label.id, str(label.count), label.text) for label in result]


class PagesMetric(BaseMetric):
    """Top web pages per day."""

    name = "pages"
    mode = AggregationMode.DAY_WINDOWED
    columns = ("date", "source", "host", "path", "sessions", "messages")

    async def fetch(self, client: StatisticsClient, f: Filter) -> list[PageStatistic]:
        return await client.page_statistics(f)

    def to_rows(
        self,
        result: list[PageStatistic],
        window_start: date,
        source: str,
        granularity: Granularity,
    ) -> list[Row]:
        day = granularity.format_timestamp(window_start)
        return [
            (day, source, page.host, page.path, str(page.sessions), str(page.messages))
            for page in result
        ]
