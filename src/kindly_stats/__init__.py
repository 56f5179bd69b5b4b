"""Read-only export client for the Kindly statistics API.

Typical composition:

    config = ClientConfig.from_env()
    async with StatisticsClient(config) as client:
        rows = await Aggregator(client).aggregate(
            Filter(from_date=date(2021, 2, 1), to_date=date(2021, 2, 3)),
            "labels",
        )
"""

from kindly_stats.aggregator import DEFAULT_SOURCES, Aggregator
from kindly_stats.auth import CredentialCache
from kindly_stats.client import StatisticsClient
from kindly_stats.config import ClientConfig
from kindly_stats.errors import (
    AggregationError,
    AuthError,
    AuthErrorKind,
    EnvelopeError,
    FilterValidationError,
    MalformedResponseError,
    StatisticsError,
    TransientFetchError,
    UnauthorizedError,
    UpstreamError,
    is_client_error,
)
from kindly_stats.export import CSVRowWriter, MemoryRowConsumer, RowConsumer
from kindly_stats.metrics import METRIC_NAMES, get_metric
from kindly_stats.models import Credential, Filter, Granularity, Window
from kindly_stats.observability import LoggingObserver, RequestAttempt, RequestObserver

__all__ = [
    "DEFAULT_SOURCES",
    "METRIC_NAMES",
    "AggregationError",
    "Aggregator",
    "AuthError",
    "AuthErrorKind",
    "CSVRowWriter",
    "ClientConfig",
    "Credential",
    "CredentialCache",
    "EnvelopeError",
    "Filter",
    "FilterValidationError",
    "Granularity",
    "LoggingObserver",
    "MalformedResponseError",
    "MemoryRowConsumer",
    "RequestAttempt",
    "RequestObserver",
    "RowConsumer",
    "StatisticsClient",
    "StatisticsError",
    "TransientFetchError",
    "UnauthorizedError",
    "UpstreamError",
    "Window",
    "get_metric",
    "is_client_error",
]
