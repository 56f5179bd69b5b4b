"""Tests for the query Filter and its wire projection.

Verifies:
  - Zero-valued fields never appear in the query
  - Dates, granularity and limit serialize in the upstream format
  - A missing filter projects to no parameters
  - Filters are immutable and reject inverted ranges
  - Timestamps format per granularity
"""

from datetime import date, datetime

import pytest
from kindly_stats.models.filter import Filter, Granularity, query
from pydantic import ValidationError


class TestQuery:
    def test_none_filter_is_empty(self):
        assert query(None) == []

    def test_empty_filter_is_empty(self):
        assert Filter().query() == []

    def test_dates_only(self):
        f = Filter(from_date=date(2021, 2, 1), to_date=date(2021, 2, 2))
        assert f.query() == [("from", "2021-02-01"), ("to", "2021-02-02")]

    def test_all_fields_in_stable_order(self):
        f = Filter(
            from_date=date(2021, 2, 1),
            to_date=date(2021, 2, 3),
            granularity=Granularity.HOUR,
            limit=25,
            sources=("web", "facebook"),
            language_codes=("nb", "en"),
        )
        assert f.query() == [
            ("from", "2021-02-01"),
            ("to", "2021-02-03"),
            ("granularity", "hour"),
            ("limit", "25"),
            ("sources", "web"),
            ("sources", "facebook"),
            ("language_codes", "nb"),
            ("language_codes", "en"),
        ]

    @pytest.mark.parametrize(
        "f,absent",
        [
            (Filter(to_date=date(2021, 2, 2)), "from"),
            (Filter(from_date=date(2021, 2, 2)), "to"),
            (Filter(limit=0, from_date=date(2021, 2, 2)), "limit"),
            (Filter(granularity=Granularity.UNSPECIFIED), "granularity"),
            (Filter(limit=5), "sources"),
            (Filter(limit=5), "language_codes"),
        ],
    )
    def test_zero_values_are_omitted(self, f, absent):
        assert absent not in [key for key, _ in f.query()]

    def test_week_granularity(self):
        assert Filter(granularity=Granularity.WEEK).query() == [("granularity", "week")]

    def test_granularity_from_string(self):
        assert Filter(granularity="day").granularity is Granularity.DAY


class TestGranularity:
    @pytest.mark.parametrize(
        "granularity,expected",
        [
            (Granularity.DAY, "day"),
            (Granularity.HOUR, "hour"),
            (Granularity.WEEK, "week"),
            (Granularity.UNSPECIFIED, "day"),
        ],
    )
    def test_wire_value(self, granularity, expected):
        assert granularity.wire_value == expected

    def test_hour_format_includes_time(self):
        ts = datetime(2021, 2, 1, 13, 5)
        assert Granularity.HOUR.format_timestamp(ts) == "2021-02-01 13:05"

    def test_hour_format_of_plain_date(self):
        assert Granularity.HOUR.format_timestamp(date(2021, 2, 1)) == "2021-02-01 00:00"

    @pytest.mark.parametrize("granularity", [Granularity.DAY, Granularity.WEEK, Granularity.UNSPECIFIED])
    def test_other_formats_are_date_only(self, granularity):
        assert granularity.format_timestamp(datetime(2021, 2, 1, 13, 5)) == "2021-02-01"


class TestFilterModel:
    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError, match="after"):
            Filter(from_date=date(2021, 2, 3), to_date=date(2021, 2, 1))

    def test_equal_range_is_a_valid_filter(self):
        f = Filter(from_date=date(2021, 2, 1), to_date=date(2021, 2, 1))
        assert f.from_date == f.to_date

    def test_frozen(self):
        f = Filter(limit=3)
        with pytest.raises(ValidationError):
            f.limit = 4

    def test_copy_is_independent(self):
        f = Filter(from_date=date(2021, 2, 1), to_date=date(2021, 2, 5), sources=("web", "facebook"))
        sub = f.model_copy(update={"to_date": date(2021, 2, 2), "sources": ("web",)})
        assert sub.sources == ("web",)
        assert f.sources == ("web", "facebook")
        assert f.to_date == date(2021, 2, 5)

    def test_sources_keep_order_and_duplicates(self):
        f = Filter(sources=["facebook", "web", "facebook"])
        assert f.sources == ("facebook", "web", "facebook")
