"""Tests for timestamp normalization and calendar helpers."""

from datetime import UTC, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from src.core.timestamps import (
    days_in_month,
    local_date,
    month_window,
    normalize_timestamp,
    period_label,
    shift_month,
)


class TestNormalizeTimestamp:
    def test_iso_with_z(self):
        assert normalize_timestamp("2025-10-17T08:30:00Z") == datetime(
            2025, 10, 17, 8, 30, tzinfo=UTC
        )

    def test_iso_with_offset_converted_to_utc(self):
        value = normalize_timestamp("2025-10-17T10:30:00+02:00")
        assert value == datetime(2025, 10, 17, 8, 30, tzinfo=UTC)
        assert value.tzinfo is UTC

    def test_naive_is_utc(self):
        assert normalize_timestamp(datetime(2025, 1, 1, 12)) == datetime(2025, 1, 1, 12, tzinfo=UTC)

    def test_legacy_seconds_shape(self):
        value = normalize_timestamp({"_seconds": 1760689800, "_nanoseconds": 500_000_000})
        assert value == datetime.fromtimestamp(1760689800, tz=UTC) + timedelta(milliseconds=500)

    def test_aware_datetime_passthrough(self):
        aware = datetime(2025, 3, 1, 1, 0, tzinfo=timezone(timedelta(hours=3)))
        assert normalize_timestamp(aware) == datetime(2025, 2, 28, 22, 0, tzinfo=UTC)

    @pytest.mark.parametrize("value", ["yesterday", 12345, None, {"seconds": 1}])
    def test_rejects_unknown_shapes(self, value):
        with pytest.raises(ValueError):
            normalize_timestamp(value)


class TestCalendarHelpers:
    def test_month_window_utc(self):
        start, end = month_window(2, 2024, ZoneInfo("UTC"))
        assert start == datetime(2024, 2, 1, tzinfo=UTC)
        assert end == datetime(2024, 3, 1, tzinfo=UTC)

    def test_month_window_december_rolls_year(self):
        _, end = month_window(12, 2024, ZoneInfo("UTC"))
        assert end == datetime(2025, 1, 1, tzinfo=UTC)

    def test_month_window_in_zone(self):
        start, _ = month_window(10, 2025, ZoneInfo("Europe/Paris"))
        assert start == datetime(2025, 9, 30, 22, 0, tzinfo=UTC)

    def test_local_date(self):
        instant = datetime(2025, 10, 17, 23, 30, tzinfo=UTC)
        assert local_date(instant, ZoneInfo("Europe/Paris")).day == 18
        assert local_date(instant, ZoneInfo("UTC")).day == 17

    def test_days_in_month(self):
        assert days_in_month(2, 2024) == 29
        assert days_in_month(2, 2025) == 28
        assert days_in_month(10, 2025) == 31

    @pytest.mark.parametrize(
        ("month", "year", "offset", "expected"),
        [
            (10, 2025, -1, (9, 2025)),
            (1, 2025, -1, (12, 2024)),
            (3, 2025, -14, (1, 2024)),
            (12, 2025, 1, (1, 2026)),
        ],
    )
    def test_shift_month(self, month, year, offset, expected):
        assert shift_month(month, year, offset) == expected

    def test_period_label(self):
        assert period_label(10, 2025) == "October 2025"
