"""
sales/periods.py

Calendar bucketing keys for time-series sales views.

Weekly keys are month-relative, NOT ISO-8601 week numbers::

    week = ceil((day_of_month + weekday_of_first_of_month) / 7)

where weekdays count from Sunday = 0. Week 1 is the (possibly partial) week
containing the 1st of the month, so a month spans up to six buckets and the
same calendar week can appear under two different months. Consumers that need
true ISO weeks must not reuse these keys.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Final

DAILY: Final[str] = "daily"
WEEKLY: Final[str] = "weekly"
MONTHLY: Final[str] = "monthly"
QUARTERLY: Final[str] = "quarterly"

GRANULARITIES: Final[tuple[str, ...]] = (DAILY, WEEKLY, MONTHLY, QUARTERLY)

MONTH_NAMES: Final[tuple[str, ...]] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
MONTH_ABBREVIATIONS: Final[tuple[str, ...]] = tuple(name[:3] for name in MONTH_NAMES)


def sunday_based_weekday(day: date) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6."""
    return (day.weekday() + 1) % 7


def month_week_number(day: date) -> int:
    first_weekday = sunday_based_weekday(day.replace(day=1))
    return math.ceil((day.day + first_weekday) / 7)


def period_key(day: date, granularity: str) -> str:
    """
    Return the bucket key of *day* for *granularity*.

    Raises:
        ValueError: If granularity is not one of GRANULARITIES.
    """
    if granularity == DAILY:
        return day.isoformat()
    if granularity == WEEKLY:
        return f"{day.year:04d}-{day.month:02d}-W{month_week_number(day)}"
    if granularity == MONTHLY:
        return f"{day.year:04d}-{day.month:02d}"
    if granularity == QUARTERLY:
        return f"{day.year:04d}-Q{(day.month - 1) // 3 + 1}"
    raise ValueError(
        f"Unknown granularity {granularity!r}. Valid: {list(GRANULARITIES)}"
    )
