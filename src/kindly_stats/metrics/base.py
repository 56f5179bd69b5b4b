"""Base metric — what the aggregator needs to know about one exportable metric.

A metric declares:

  - name        — the key users select it by
  - mode        — whether the aggregator splits queries by day and source,
                  or by source only
  - columns     — the header row of the export
  - fetch()     — the single client call that answers one sub-query
  - to_rows()   — how one decoded result flattens into export rows

A new metric = a new subclass + one line in the factory dict.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from kindly_stats.client import StatisticsClient
    from kindly_stats.models.filter import Filter, Granularity

Row = tuple[str, ...]


class AggregationMode(str, Enum):
    DAY_WINDOWED = "day_windowed"
    PER_SOURCE = "per_source"


class BaseMetric(ABC):
    """Abstract base for all exportable metrics."""

    name: ClassVar[str]
    mode: ClassVar[AggregationMode]
    columns: ClassVar[Row]

    @abstractmethod
    async def fetch(self, client: StatisticsClient, f: Filter) -> Any:
        """Answer one sub-query."""

    @abstractmethod
    def to_rows(
        self,
        result: Any,
        window_start: date,
        source: str,
        granularity: Granularity,
    ) -> list[Row]:
        """Flatten one sub-query result into rows, tagged with its source."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, mode={self.mode.value})"


def format_ratio(value: float) -> str:
    return f"{value:.2f}"
