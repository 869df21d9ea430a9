"""
Calendar arithmetic for broadcast windows.

Weekdays are numbered Sunday=0 .. Saturday=6 throughout the tool.
"""
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, Iterator, Optional

import pandas as pd


DAYS_PER_MONTH = Decimal(30)


class DurationMode(str, Enum):
    """How the broadcast window end is entered."""
    DATE = "date"
    DAYS = "days"
    MONTHS = "months"


def weekday_index(day: date) -> int:
    """Day of week with Sunday=0."""
    return day.isoweekday() % 7


def iter_dates(start_date: date, end_date: date) -> Iterator[date]:
    """Yield every date from start to end inclusive."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def count_broadcast_days(start_date: date, end_date: date, active_weekdays: Iterable[int]) -> int:
    """Count dates in the window whose weekday is active."""
    active = frozenset(active_weekdays)
    if not active:
        return 0
    return sum(1 for day in iter_dates(start_date, end_date) if weekday_index(day) in active)


def inclusive_day_span(start_date: date, end_date: date) -> int:
    """Window length counting both endpoints."""
    return abs((end_date - start_date).days) + 1


def campaign_months(start_date: date, end_date: date) -> Decimal:
    """Window length in flat 30-day months."""
    return Decimal(inclusive_day_span(start_date, end_date)) / DAYS_PER_MONTH


def end_date_for_days(start_date: date, days: int) -> date:
    """Last date of a window that runs for `days` calendar days."""
    if days < 1:
        raise ValueError("Duration in days must be at least 1")
    return start_date + timedelta(days=days - 1)


def end_date_for_months(start_date: date, months: int) -> date:
    """
    Last date of a window that runs for `months` calendar months.

    The day of month is kept and overflows into the following month when
    the target month is shorter (Dec 31 + 2 months is Mar 3, 2025), then
    one day is taken off.
    """
    if months < 1:
        raise ValueError("Duration in months must be at least 1")
    month_start = pd.Timestamp(start_date).replace(day=1) + pd.DateOffset(months=months)
    shifted = month_start + pd.Timedelta(days=start_date.day - 1)
    return shifted.date() - timedelta(days=1)


def resolve_end_date(
    start_date: Optional[date],
    mode: DurationMode = DurationMode.DATE,
    value: Optional[int] = None,
    end_date: Optional[date] = None,
) -> Optional[date]:
    """
    Expand the duration shorthand into a concrete end date.

    In DATE mode the explicit end date is returned unchanged (possibly None).
    """
    mode = DurationMode(mode)
    if mode == DurationMode.DATE or start_date is None:
        return end_date
    if value is None:
        return None
    if mode == DurationMode.DAYS:
        return end_date_for_days(start_date, int(value))
    return end_date_for_months(start_date, int(value))
