"""Tests for payload and credential models.

Verifies:
  - Payload models parse upstream JSON shapes, including aliases
  - Default values are sensible for sparse payloads
  - Credential validity is strict at the expiry instant
"""

from datetime import datetime, timedelta, timezone

import pytest
from kindly_stats.models.auth import Credential, TokenResponse
from kindly_stats.models.statistics import (
    CountByDate,
    CountByDateWithRate,
    Feedback,
    HandoversTimeSeries,
    PageStatistic,
)
from pydantic import ValidationError

NOW = datetime(2021, 2, 1, 12, 0, tzinfo=timezone.utc)


class TestStatisticsModels:
    def test_count_by_date_parses_upstream_timestamp(self):
        item = CountByDate.model_validate({"count": 3, "date": "2021-02-01T10:30:00.000000"})
        assert item.date == datetime(2021, 2, 1, 10, 30)

    def test_count_with_rate_inherits(self):
        item = CountByDateWithRate.model_validate({"count": 1, "rate": 0.5})
        assert item.date is None
        assert item.rate == 0.5

    def test_page_statistic_wire_names(self):
        page = PageStatistic.model_validate({"web_host": "example.com", "web_path": "/help"})
        assert page.host == "example.com"
        assert page.path == "/help"
        assert page.model_dump(by_alias=True)["web_host"] == "example.com"

    def test_page_statistic_by_field_name(self):
        assert PageStatistic(host="example.com").host == "example.com"

    def test_handover_series_defaults(self):
        item = HandoversTimeSeries.model_validate({"date": "2021-02-01T00:00:00.000000"})
        assert (item.requests, item.requests_while_closed, item.started, item.ended) == (0, 0, 0, 0)

    def test_feedback_defaults_are_independent(self):
        a, b = Feedback(), Feedback()
        a.binary.append(None)
        assert b.binary == []

    def test_bad_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            CountByDate.model_validate({"count": 1, "date": "yesterday"})


class TestCredential:
    def test_valid_before_expiry(self):
        credential = Credential(token="t", expires_at=NOW + timedelta(seconds=1))
        assert credential.is_valid(NOW)

    def test_invalid_at_expiry(self):
        credential = Credential(token="t", expires_at=NOW)
        assert not credential.is_valid(NOW)

    def test_frozen(self):
        credential = Credential(token="t", expires_at=NOW)
        with pytest.raises(ValidationError):
            credential.token = "other"

    def test_token_response_to_credential(self):
        credential = TokenResponse(jwt="abc", ttl=300).to_credential(NOW)
        assert credential.token == "abc"
        assert credential.expires_at == NOW + timedelta(seconds=300)
