"""
Period Window Engine - calendar month boundaries.

Pure functions with no I/O.  Every "falls within this month" filter in the
report engine goes through ``month_window``; the window is inclusive at both
ends, from 00:00:00.000 on day 1 to 23:59:59.999 on the last day.

Usage:
    from paytrack_engines.periods import month_window

    window = month_window(2, 2024)
    print(window.last_day)   # 2024-02-29
    print(window.label)      # February 2024
    print(window.key)        # 2024-02
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time

from paytrack_kernel.exceptions import InvalidPeriodError

_END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive bounds of one calendar month."""

    month: int
    year: int
    first_day: date
    last_day: date

    @property
    def start(self) -> datetime:
        return datetime.combine(self.first_day, time.min)

    @property
    def end(self) -> datetime:
        return datetime.combine(self.last_day, _END_OF_DAY)

    @property
    def label(self) -> str:
        return month_label(self.month, self.year)

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def contains(self, value: date | datetime | None) -> bool:
        """True if ``value`` falls in this month.  None never does."""
        if value is None:
            return False
        if isinstance(value, datetime):
            return self.start <= value.replace(tzinfo=None) <= self.end
        return self.first_day <= value <= self.last_day


def _validate(month: int, year: int) -> None:
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise InvalidPeriodError(month, year)


def month_window(month: int, year: int) -> PeriodWindow:
    """
    Bounds of ``month`` in ``year``.

    Raises:
        InvalidPeriodError: If month is outside 1-12 or year outside 1-9999.
    """
    _validate(month, year)
    _, days = calendar.monthrange(year, month)
    return PeriodWindow(
        month=month,
        year=year,
        first_day=date(year, month, 1),
        last_day=date(year, month, days),
    )


def month_label(month: int, year: int) -> str:
    """Display label, e.g. ``"January 2026"``."""
    _validate(month, year)
    return f"{calendar.month_name[month]} {year}"


def reporting_month_start(month: int, year: int) -> date:
    """Canonical stored value of a reporting-month assignment (day 1)."""
    _validate(month, year)
    return date(year, month, 1)


def parse_reporting_month(value: date | datetime) -> tuple[int, int]:
    """``(month, year)`` of a stored reporting-month value."""
    return value.month, value.year
