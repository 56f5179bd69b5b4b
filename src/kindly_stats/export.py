"""Row consumers — where aggregated rows go.

The aggregator hands a consumer the header row followed by the data rows,
in order. Serialization belongs to the consumer.
"""

from __future__ import annotations

import csv
from collections.abc import Sequence
from typing import Protocol, TextIO, runtime_checkable

from kindly_stats.metrics.base import Row


@runtime_checkable
class RowConsumer(Protocol):
    def accept(self, rows: Sequence[Row]) -> None: ...


class CSVRowWriter:
    """Writes rows as CSV to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._writer = csv.writer(stream)

    def accept(self, rows: Sequence[Row]) -> None:
        self._writer.writerows(rows)


class MemoryRowConsumer:
    """Keeps accepted rows in memory."""

    def __init__(self) -> None:
        self.rows: list[Row] = []

    def accept(self, rows: Sequence[Row]) -> None:
        self.rows.extend(rows)
