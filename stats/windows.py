"""Calendar windows used to select expense and income records.

All windows are inclusive at both ends. The upper bound is the last whole
second of the period, so a record dated 23:59:59 on the last day is inside
and one dated 00:00:00 on the next day is not.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, time
from typing import Optional, Tuple

from settings.errors import DomainValidationError

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

END_OF_DAY = time(23, 59, 59)


def validate_period(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    if not 1000 <= year <= 9999:
        raise ValueError(f"year must be a four digit calendar year, got {year}")


def month_window(year: int, month: int) -> Tuple[datetime, datetime]:
    validate_period(year, month)
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, 1), datetime.combine(date(year, month, last_day), END_OF_DAY)


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def trailing_months_window(months_back: int, today: Optional[date] = None) -> Tuple[datetime, datetime]:
    """First instant of the month `months_back - 1` months ago through the end of the current month."""
    if months_back < 1:
        raise ValueError("months_back must be at least 1")
    today = today or date.today()
    start_year, start_month = shift_month(today.year, today.month, -(months_back - 1))
    start, _ = month_window(start_year, start_month)
    _, end = month_window(today.year, today.month)
    return start, end


def current_period(today: Optional[date] = None) -> Tuple[int, int]:
    today = today or date.today()
    return today.year, today.month


def range_start(value: date | datetime | None) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def range_end(value: date | datetime | None) -> Optional[datetime]:
    """A date-only upper bound covers the whole day."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, END_OF_DAY)


def month_label(year: int, month: int) -> str:
    return f"{MONTH_ABBR[month - 1]} {year}"


def parse_bound(value: Optional[str]) -> date | datetime | None:
    """Query string bound: `YYYY-MM-DD` stays a date, anything longer is an instant."""
    if not value:
        return None
    value = value.strip()
    if len(value) == 10:
        return date.fromisoformat(value)
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def request_bounds(start_date: Optional[str], end_date: Optional[str]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """`startDate`/`endDate` query values as an inclusive instant range."""
    try:
        return range_start(parse_bound(start_date)), range_end(parse_bound(end_date))
    except ValueError as exc:
        raise DomainValidationError(f"Invalid date: {exc}") from exc
