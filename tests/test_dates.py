"""Tests for date key utilities."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from calm.core.dates import (
    add_days,
    day_difference,
    format_timestamp,
    normalize_date_key,
    normalize_due_date,
    parse_date_key,
    parse_timestamp,
    shift_date_key,
    to_date_key,
)
from calm.errors import ValidationError


class TestToDateKey:
    def test_date(self):
        assert to_date_key(date(2024, 3, 5)) == "2024-03-05"

    def test_naive_datetime_ignores_time_of_day(self):
        assert to_date_key(datetime(2024, 3, 5, 23, 59)) == "2024-03-05"
        assert to_date_key(datetime(2024, 3, 5, 0, 1)) == "2024-03-05"

    def test_aware_datetime_uses_local_calendar(self):
        late_utc = datetime(2024, 3, 10, 3, 0, tzinfo=timezone.utc)
        assert to_date_key(late_utc, ZoneInfo("America/Toronto")) == "2024-03-09"
        assert to_date_key(late_utc, timezone.utc) == "2024-03-10"


class TestArithmetic:
    def test_add_days_normalizes_to_noon(self):
        result = add_days(datetime(2024, 3, 9, 23, 30), 1)
        assert result == datetime(2024, 3, 10, 12, 0)

    def test_add_days_on_date(self):
        assert add_days(date(2024, 1, 31), 1) == datetime(2024, 2, 1, 12, 0)

    def test_shift_across_leap_day(self):
        assert shift_date_key("2024-02-28", 1) == "2024-02-29"
        assert shift_date_key("2024-03-01", -1) == "2024-02-29"

    def test_shift_across_year_end(self):
        assert shift_date_key("2024-12-31", 1) == "2025-01-01"

    def test_shift_across_dst_start(self):
        assert shift_date_key("2024-03-09", 1) == "2024-03-10"
        assert shift_date_key("2024-03-10", 1) == "2024-03-11"

    def test_parse_date_key_is_noon(self):
        assert parse_date_key("2024-03-10") == datetime(2024, 3, 10, 12, 0)

    def test_day_difference(self):
        assert day_difference("2024-03-12", "2024-03-10") == 2
        assert day_difference("2024-03-10", "2024-03-10") == 0

    def test_day_difference_never_negative(self):
        assert day_difference("2024-03-10", "2024-03-12") == 0

    def test_day_difference_across_month(self):
        assert day_difference("2024-03-01", "2024-02-28") == 2


class TestNormalizeDateKey:
    def test_trims(self):
        assert normalize_date_key("  2024-03-10 ") == "2024-03-10"

    @pytest.mark.parametrize("bad", ["2024-3-10", "tomorrow", "", "2024-13-01", "2024-02-30"])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ValidationError):
            normalize_date_key(bad)

    def test_rejects_non_string(self):
        with pytest.raises(ValidationError):
            normalize_date_key(None)


class TestNormalizeDueDate:
    def test_none_and_blank_mean_unscheduled(self):
        assert normalize_due_date(None) is None
        assert normalize_due_date("") is None
        assert normalize_due_date("   ") is None

    def test_date_key_passes_through(self):
        assert normalize_due_date(" 2024-03-10 ") == "2024-03-10"

    def test_free_form_date(self):
        assert normalize_due_date("March 10, 2024") == "2024-03-10"

    def test_aware_timestamp_converted_to_local_day(self):
        assert normalize_due_date("2024-03-10T23:30:00+00:00", ZoneInfo("Asia/Tokyo")) == "2024-03-11"

    def test_date_object(self):
        assert normalize_due_date(date(2024, 3, 10)) == "2024-03-10"

    def test_unparseable(self):
        with pytest.raises(ValidationError):
            normalize_due_date("whenever")

    def test_invalid_key_shape_that_looks_like_a_key(self):
        with pytest.raises(ValidationError):
            normalize_due_date("2024-02-31")


class TestTimestamps:
    def test_fixed_millisecond_precision(self):
        stamp = format_timestamp(datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc))
        assert stamp == "2024-03-10T09:00:00.000+00:00"

    def test_naive_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 3, 10, 9, 0)).endswith("+00:00")

    def test_parse(self):
        parsed = parse_timestamp("2024-03-10T09:00:00.000+00:00")
        assert parsed == datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)
        assert parse_timestamp(None) is None
