"""Calendar helpers for monthly windows."""

from datetime import date, datetime, timedelta
from typing import List, Tuple


def month_key(value) -> str:
    """'YYYY-MM' key for a date or datetime."""
    return f"{value.year:04d}-{value.month:02d}"


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move (year, month) by delta months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_start_end(year: int, month: int) -> Tuple[datetime, datetime]:
    """
    Returns (start_inclusive, end_exclusive) as datetimes
    """
    start = datetime(year, month, 1)
    next_year, next_month = shift_month(year, month, 1)
    return start, datetime(next_year, next_month, 1)


def month_keys_between(start: date, end: date) -> List[str]:
    """Inclusive list of 'YYYY-MM' keys from start's month to end's month."""
    keys = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        keys.append(f"{year:04d}-{month:02d}")
        year, month = shift_month(year, month, 1)
    return keys


def period_start_end(period: str, as_of: date) -> Tuple[datetime, datetime]:
    """
    Returns (start_inclusive, end_exclusive) for a budget period containing as_of.

    Weeks start on Monday.
    """
    if period == "weekly":
        day = datetime(as_of.year, as_of.month, as_of.day)
        start = day - timedelta(days=day.weekday())
        return start, start + timedelta(days=7)
    if period == "yearly":
        return datetime(as_of.year, 1, 1), datetime(as_of.year + 1, 1, 1)
    if period == "monthly":
        return month_start_end(as_of.year, as_of.month)
    raise ValueError(f"Unknown budget period: {period}")


def to_naive(value: datetime) -> datetime:
    """Drop timezone information, keeping the wall-clock time."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value
