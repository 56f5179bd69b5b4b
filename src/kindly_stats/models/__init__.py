"""Typed Pydantic models for filters, credentials and API payloads."""

from kindly_stats.models.auth import Credential, TokenResponse
from kindly_stats.models.filter import Filter, Granularity, query
from kindly_stats.models.statistics import (
    ChatLabel,
    CountByDate,
    CountByDateWithRate,
    Feedback,
    Handovers,
    HandoversTimeSeries,
    PageStatistic,
    RateTotal,
    Rating,
)
from kindly_stats.models.window import Window, day_windows

__all__ = [
    "ChatLabel",
    "CountByDate",
    "CountByDateWithRate",
    "Credential",
    "Feedback",
    "Filter",
    "Granularity",
    "Handovers",
    "HandoversTimeSeries",
    "PageStatistic",
    "RateTotal",
    "Rating",
    "TokenResponse",
    "Window",
    "day_windows",
    "query",
]
