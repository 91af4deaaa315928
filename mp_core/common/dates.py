# mp_core/common/dates.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator

DAYS_IN_WEEK = 7
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def day_of_week(d: date) -> int:
    """
    0=Sunday ... 6=Saturday (Python's weekday() is 0=Monday).
    """
    return (d.weekday() + 1) % DAYS_IN_WEEK


def is_valid_day_of_week(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < DAYS_IN_WEEK


def date_range(start: date, end: date) -> Iterator[date]:
    """Inclusive on both ends."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
