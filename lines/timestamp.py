"""
Calendar date stamps for note file names.

Dates are computed from UTC seconds since the Unix epoch with plain
proleptic Gregorian arithmetic, no calendar library involved.

Format: YYYY_MM_DD (e.g. 2024_02_29)
"""

from __future__ import annotations

import re
import time

EPOCH_YEAR = 1970
SECONDS_PER_DAY = 86400

_MONTH_DAYS = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

_STAMP_RE = re.compile(r"^(\d{4})_(\d{2})_(\d{2})$")


def is_leap_year(year: int) -> bool:
    """Gregorian rule: every 4th year, except centuries not divisible by 400."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def days_in_month(year: int, month: int) -> int:
    """Length of `month` (1-12) in `year`."""
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    if month == 2 and is_leap_year(year):
        return 29
    return _MONTH_DAYS[month - 1]


def civil_from_days(days: int) -> tuple[int, int, int]:
    """Convert a day count since 1970-01-01 into (year, month, day)."""
    year = EPOCH_YEAR

    # Pre-epoch: step back whole years until the count is non-negative
    while days < 0:
        year -= 1
        days += days_in_year(year)

    while days >= days_in_year(year):
        days -= days_in_year(year)
        year += 1

    month = 1
    while days >= days_in_month(year, month):
        days -= days_in_month(year, month)
        month += 1

    # days is now in [0, 30]
    return year, month, days + 1


def civil_from_seconds(seconds: float) -> tuple[int, int, int]:
    """Convert UTC epoch seconds into (year, month, day)."""
    return civil_from_days(int(seconds // SECONDS_PER_DAY))


def format_date(year: int, month: int, day: int) -> str:
    return f"{year:04d}_{month:02d}_{day:02d}"


def timestamp(now: float | None = None) -> str:
    """Current UTC date as YYYY_MM_DD.

    Args:
        now: Epoch seconds to format instead of the current time

    Returns:
        Zero-padded date stamp
    """
    if now is None:
        now = time.time()
    return format_date(*civil_from_seconds(now))


def parse_timestamp(stamp: str) -> tuple[int, int, int]:
    """Parse a YYYY_MM_DD stamp back into (year, month, day)."""
    m = _STAMP_RE.match(stamp)
    if not m:
        raise ValueError(f"not a YYYY_MM_DD stamp: {stamp!r}")
    year, month, day = (int(g) for g in m.groups())
    if not 1 <= month <= 12 or not 1 <= day <= days_in_month(year, month):
        raise ValueError(f"no such date: {stamp!r}")
    return year, month, day
