"""Windowed aggregation — one logical export, many small upstream queries.

The aggregator turns a Filter into sub-queries and merges their rows:

  - Day-windowed metrics: one sub-query per (day, source), days ascending
    and, within a day, sources in the order the filter lists them.
  - Per-source metrics: one sub-query per source over the whole range.

Sources default to web then facebook when the filter names none.

Output order is always (window start, source index), even when sub-queries
run concurrently: results are buffered per sub-query and concatenated in
plan order. The first failing sub-query aborts the whole export and no
partial rows are returned. Cancellation propagates as is.
"""

from __future__ import annotations

import asyncio
import logging

from kindly_stats.client import StatisticsClient
from kindly_stats.errors import AggregationError, FilterValidationError
from kindly_stats.export import RowConsumer
from kindly_stats.metrics import get_metric
from kindly_stats.metrics.base import AggregationMode, BaseMetric, Row
from kindly_stats.models.filter import Filter
from kindly_stats.models.window import Window, day_windows

logger = logging.getLogger(__name__)

DEFAULT_SOURCES: tuple[str, ...] = ("web", "facebook")


def _resolve(metric: BaseMetric | str) -> BaseMetric:
    if isinstance(metric, BaseMetric):
        return metric
    return get_metric(metric)


def validate_range(f: Filter) -> None:
    """Reject filters that can't be split into windows."""
    if f.from_date is None or f.to_date is None:
        raise FilterValidationError('"from" and "to" are both required')
    if f.from_date == f.to_date:
        raise FilterValidationError('"from" and "to" are equal')
    if f.from_date > f.to_date:
        raise FilterValidationError('"from" is after "to"')


def plan_windows(f: Filter, metric: BaseMetric | str) -> list[Window]:
    """Sub-query windows for this filter, in output order. No network."""
    metric = _resolve(metric)
    validate_range(f)
    sources = f.sources or DEFAULT_SOURCES

    if metric.mode is AggregationMode.DAY_WINDOWED:
        return [
            Window(start=start, end=end, source=source)
            for start, end in day_windows(f.from_date, f.to_date)
            for source in sources
        ]
    return [Window(start=f.from_date, end=f.to_date, source=source) for source in sources]


class Aggregator:
    """Fans a Filter out into sub-queries and merges their rows in order."""

    def __init__(self, client: StatisticsClient, max_concurrency: int = 1) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.client = client
        self.max_concurrency = max_concurrency

    def plan(self, f: Filter, metric: BaseMetric | str) -> list[Window]:
        """Sub-query windows for this filter, in output order."""
        return plan_windows(f, metric)

    async def aggregate(self, f: Filter, metric: BaseMetric | str) -> list[Row]:
        """Run every sub-query and return all rows in canonical order."""
        metric = _resolve(metric)
        windows = self.plan(f, metric)
        logger.info(
            f"Aggregating '{metric.name}' from {f.from_date} to {f.to_date}: "
            f"{len(windows)} sub-queries"
        )

        if self.max_concurrency == 1:
            rows: list[Row] = []
            for window in windows:
                rows.extend(await self._run(metric, f, window))
            return rows

        chunks = await self._run_concurrently(metric, f, windows)
        return [row for chunk in chunks for row in chunk]

    async def export(self, f: Filter, metric: BaseMetric | str, consumer: RowConsumer) -> int:
        """Aggregate, then hand the header and rows to a consumer.

        Returns the number of data rows written.
        """
        metric = _resolve(metric)
        rows = await self.aggregate(f, metric)
        consumer.accept([metric.columns, *rows])
        return len(rows)

    async def _run(self, metric: BaseMetric, f: Filter, window: Window) -> list[Row]:
        sub_filter = f.model_copy(
            update={
                "from_date": window.start,
                "to_date": window.end,
                "sources": (window.source,),
            }
        )
        try:
            result = await metric.fetch(self.client, sub_filter)
        except Exception as e:
            raise AggregationError(window, e) from e
        return metric.to_rows(result, window.start, window.source, f.granularity)

    async def _run_concurrently(
        self, metric: BaseMetric, f: Filter, windows: list[Window]
    ) -> list[list[Row]]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(window: Window) -> list[Row]:
            async with semaphore:
                return await self._run(metric, f, window)

        tasks = [asyncio.create_task(bounded(window)) for window in windows]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
