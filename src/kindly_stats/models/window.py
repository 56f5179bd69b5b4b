"""Sub-query windows derived from a Filter during aggregation."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class Window:
    """Half-open date interval [start, end) queried for a single source."""

    start: date
    end: date
    source: str


def day_windows(start: date, end: date) -> Iterator[tuple[date, date]]:
    """Yield consecutive one-day intervals tiling [start, end).

    The last interval is truncated at end. Yields nothing unless start < end.
    """
    current = start
    while current < end:
        upper = min(current + ONE_DAY, end)
        yield current, upper
        current = upper
