"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from typing import List, Tuple


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month.

    Example: 2025-01-31 + 1 month -> 2025-02-28
    """
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(from_date.day, last_day))


def month_key(day: date) -> str:
    """Monthly bucket key, YYYY-MM"""
    return day.strftime("%Y-%m")


def day_key(day: date) -> str:
    """Daily bucket key, YYYY-MM-DD"""
    return day.isoformat()


def month_bounds(key: str) -> Tuple[date, date]:
    """First and last day of a YYYY-MM month key"""
    try:
        year, month = (int(part) for part in key.split("-"))
        last_day = calendar.monthrange(year, month)[1]
    except ValueError as e:
        raise ValueError(f"Invalid month key: {key!r}") from e
    return date(year, month, 1), date(year, month, last_day)
