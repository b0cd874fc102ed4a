"""Tests for calendarfeed_lite.lite_datetime_utils module."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from calendarfeed_lite.lite_datetime_utils import (
    LiteDateTimeParser,
    add_months,
    align_to_frame,
    at_time_of,
    days_in_month,
    parse_ics_datetime,
    wall_clock_key,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def parser() -> LiteDateTimeParser:
    return LiteDateTimeParser()


class TestParseDatetime:
    """Tests for LiteDateTimeParser.parse_datetime."""

    def test_bare_date_is_all_day(self, parser):
        value, all_day = parser.parse_datetime("20250115")
        assert value == datetime(2025, 1, 15)
        assert value.tzinfo is None
        assert all_day is True

    def test_value_date_param_marks_all_day(self, parser):
        value, all_day = parser.parse_datetime("20250115", {"VALUE": "DATE"})
        assert value == datetime(2025, 1, 15)
        assert all_day is True

    def test_utc_suffix_gives_aware_value(self, parser):
        value, all_day = parser.parse_datetime("20250115T100000Z")
        assert value == datetime(2025, 1, 15, 10, 0, tzinfo=UTC)
        assert all_day is False

    def test_local_value_stays_naive(self, parser):
        value, all_day = parser.parse_datetime("20250624T170000")
        assert value == datetime(2025, 6, 24, 17, 0)
        assert value.tzinfo is None
        assert all_day is False

    def test_tzid_does_not_shift_clock_fields(self, parser):
        value, _ = parser.parse_datetime("20250624T170000", {"TZID": "America/New_York"})
        assert value == datetime(2025, 6, 24, 17, 0)
        assert value.tzinfo is None

    def test_generic_fallback(self, parser):
        value, all_day = parser.parse_datetime("2025-01-15T10:30:00")
        assert value == datetime(2025, 1, 15, 10, 30)
        assert all_day is False

    @pytest.mark.parametrize("raw", ["not a date", "20251345", "20250230T100000"])
    def test_invalid_values_raise(self, parser, raw):
        with pytest.raises(ValueError):
            parser.parse_datetime(raw)

    def test_optional_variant_returns_none(self, parser):
        assert parser.parse_datetime_optional("garbage") is None

    def test_module_wrapper(self):
        assert parse_ics_datetime("20250115") == (datetime(2025, 1, 15), True)
        assert parse_ics_datetime("nope") is None


class TestAlignToFrame:
    """Tests for align_to_frame and wall_clock_key."""

    def test_aware_into_naive_frame_uses_utc_clock(self):
        value = datetime(2025, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert align_to_frame(value, datetime(2025, 1, 1)) == datetime(2025, 1, 15, 10, 0)

    def test_naive_into_aware_frame_is_stamped(self):
        aligned = align_to_frame(datetime(2025, 1, 15, 10, 0), datetime(2025, 1, 1, tzinfo=UTC))
        assert aligned == datetime(2025, 1, 15, 10, 0, tzinfo=UTC)

    def test_matching_awareness_unchanged(self):
        value = datetime(2025, 1, 15, 10, 0)
        assert align_to_frame(value, datetime(2024, 1, 1)) is value

    def test_wall_clock_key_orders_mixed_values(self):
        values = [
            datetime(2025, 1, 15, 12, 0),
            datetime(2025, 1, 15, 9, 0, tzinfo=UTC),
            datetime(2025, 1, 15, 10, 0),
        ]
        ordered = sorted(values, key=wall_clock_key)
        assert [v.hour for v in ordered] == [9, 10, 12]


class TestCalendarHelpers:
    """Tests for month arithmetic helpers."""

    @pytest.mark.parametrize(
        ("year", "month", "expected"),
        [(2024, 2, 29), (2025, 2, 28), (2025, 4, 30), (2025, 12, 31)],
    )
    def test_days_in_month(self, year, month, expected):
        assert days_in_month(year, month) == expected

    def test_add_months_crosses_year(self):
        assert add_months(datetime(2025, 11, 1), 3) == datetime(2026, 2, 1)

    def test_add_months_keeps_tzinfo(self):
        assert add_months(datetime(2025, 1, 1, tzinfo=UTC), 1) == datetime(2025, 2, 1, tzinfo=UTC)

    def test_at_time_of(self):
        source = datetime(2020, 5, 5, 17, 30, tzinfo=UTC)
        assert at_time_of(date(2025, 2, 24), source) == datetime(2025, 2, 24, 17, 30, tzinfo=UTC)
