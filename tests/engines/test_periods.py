"""
Tests for the Period Window Engine.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from paytrack_engines.periods import (
    month_label,
    month_window,
    parse_reporting_month,
    reporting_month_start,
)
from paytrack_kernel.exceptions import InvalidPeriodError


class TestMonthWindow:

    def test_january(self):
        window = month_window(1, 2026)

        assert window.first_day == date(2026, 1, 1)
        assert window.last_day == date(2026, 1, 31)
        assert window.start == datetime(2026, 1, 1, 0, 0, 0)
        assert window.end == datetime(2026, 1, 31, 23, 59, 59, 999000)

    def test_leap_february(self):
        assert month_window(2, 2024).last_day == date(2024, 2, 29)
        assert month_window(2, 2025).last_day == date(2025, 2, 28)

    def test_label_and_key(self):
        window = month_window(3, 2026)

        assert window.label == "March 2026"
        assert window.key == "2026-03"
        assert month_label(12, 2025) == "December 2025"

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month(self, month):
        with pytest.raises(InvalidPeriodError) as exc_info:
            month_window(month, 2026)

        assert exc_info.value.code == "INVALID_PERIOD"
        assert exc_info.value.month == month
        assert isinstance(exc_info.value, ValueError)


class TestContains:

    def test_dates(self):
        window = month_window(1, 2026)

        assert window.contains(date(2026, 1, 1))
        assert window.contains(date(2026, 1, 31))
        assert not window.contains(date(2025, 12, 31))
        assert not window.contains(date(2026, 2, 1))

    def test_datetimes_at_edges(self):
        window = month_window(1, 2026)

        assert window.contains(datetime(2026, 1, 31, 23, 59, 59, 999000))
        assert not window.contains(datetime(2026, 1, 31, 23, 59, 59, 999500))
        assert window.contains(datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc))

    def test_none_is_never_contained(self):
        assert not month_window(1, 2026).contains(None)


class TestReportingMonth:

    def test_start(self):
        assert reporting_month_start(7, 2026) == date(2026, 7, 1)

    def test_invalid(self):
        with pytest.raises(InvalidPeriodError):
            reporting_month_start(13, 2026)

    def test_parse(self):
        assert parse_reporting_month(date(2026, 7, 1)) == (7, 2026)


class TestWindowProperties:

    @given(month=st.integers(1, 12), year=st.integers(1900, 2200))
    def test_window_covers_exactly_its_month(self, month, year):
        window = month_window(month, year)

        assert window.contains(window.first_day)
        assert window.contains(window.last_day)
        assert not window.contains(window.first_day - timedelta(days=1))
        assert not window.contains(window.last_day + timedelta(days=1))
        assert (window.last_day + timedelta(days=1)).day == 1
