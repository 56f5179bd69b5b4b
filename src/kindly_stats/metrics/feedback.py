"""Aggregated feedback ratings, one query per source."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from kindly_stats.metrics.base import AggregationMode, BaseMetric, Row, format_ratio
from kindly_stats.models.statistics import Feedback

if TYPE_CHECKING:
    from kindly_stats.client import StatisticsClient
    from kindly_stats.models.filter import Filter, Granularity


class FeedbackMetric(BaseMetric):
    """Binary ratings first, then emoji ratings, as upstream orders them."""

    name = "feedback"
    mode = AggregationMode.PER_SOURCE
    columns = ("source", "type", "rating", "count", "ratio")

    async def fetch(self, client: StatisticsClient, f: Filter) -> Feedback:
        return await client.aggregated_feedback(f)

    def to_rows(
        self,
        result: Feedback,
        window_start: date,
        source: str,
        granularity: Granularity,
    ) -> list[Row]:
        rows: list[Row] = []
        for kind, ratings in (("binary", result.binary), ("emoji", result.emojis)):
            rows.extend(
                (source, kind, str(r.rating), str(r.count), format_ratio(r.ratio))
                for r in ratings
            )
        return rows
