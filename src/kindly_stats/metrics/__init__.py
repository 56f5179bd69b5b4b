"""Metric factory — maps metric names to metric classes.

Adding a new exportable metric:
  1. Create a new subclass of BaseMetric in this package
  2. Add one entry to _METRIC_CLASSES below
"""

from __future__ import annotations

from kindly_stats.metrics.base import AggregationMode, BaseMetric, Row
from kindly_stats.metrics.feedback import FeedbackMetric
from kindly_stats.metrics.series import (
    FallbacksMetric,
    HandoversMetric,
    MessagesMetric,
    SessionsMetric,
)
from kindly_stats.metrics.windowed import LabelsMetric, PagesMetric

_METRIC_CLASSES: dict[str, type[BaseMetric]] = {
    "labels": LabelsMetric,
    "pages": PagesMetric,
    "messages": MessagesMetric,
    "sessions": SessionsMetric,
    "fallbacks": FallbacksMetric,
    "handovers": HandoversMetric,
    "feedback": FeedbackMetric,
}

METRIC_NAMES: tuple[str, ...] = tuple(_METRIC_CLASSES)


def get_metric(name: str) -> BaseMetric:
    """Instantiate the metric registered under name."""
    cls = _METRIC_CLASSES.get(name)
    if cls is None:
        supported = ", ".join(sorted(_METRIC_CLASSES.keys()))
        raise ValueError(f"Unknown metric '{name}'. Supported: {supported}")
    return cls()


__all__ = [
    "METRIC_NAMES",
    "AggregationMode",
    "BaseMetric",
    "Row",
    "get_metric",
]
