"""
Calendar helpers for the daily ledger.

Dates are always handled as `datetime.date` values. String dates only exist
at the edges (storage and display) and go through the parsers here.
"""

import calendar
import datetime
from typing import Any, Optional, Union

from finance_tracker.config import get_settings
from finance_tracker.models.ledger import DateRange
from finance_tracker.models.parsing import parse_date

DEFAULT_MAX_DAYS = 90
STORAGE_FORMAT = "%Y-%m-%d"

ONE_DAY = datetime.timedelta(days=1)


def expand_date_range(
    start: datetime.date,
    end: datetime.date,
    max_days: int = DEFAULT_MAX_DAYS,
) -> list[datetime.date]:
    """
    Every calendar day from start to end inclusive, ascending.

    A reversed range yields nothing. Ranges longer than `max_days` are cut
    to their first `max_days` days.
    """
    if end < start or max_days < 1:
        return []

    days = []
    current = start
    while len(days) < max_days:
        days.append(current)
        # stop before stepping past date.max
        if current == end:
            break
        current += ONE_DAY
    return days


def format_date_for_display(
    value: Union[str, datetime.date, None],
    fmt: Optional[str] = None,
) -> str:
    """
    Render with the configured display format (DD/MM/YYYY by default).

    Unreadable input is returned as given.
    """
    if value is None or value == "":
        return ""
    parsed = parse_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime(fmt or get_settings().ledger.display_date_format)


def format_date_for_storage(value: Union[str, datetime.date, None]) -> str:
    """Render as YYYY-MM-DD; unreadable input is returned as given."""
    if value is None or value == "":
        return ""
    parsed = parse_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime(STORAGE_FORMAT)


def add_months(value: datetime.date, months: int) -> datetime.date:
    """
    Shift a date by whole calendar months.

    The day is clamped to the last day of the target month, so Jan 31 plus
    one month is Feb 28 (or 29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, min(value.day, last_day))


def month_window(
    month: int,
    year: int,
    days: int = DEFAULT_MAX_DAYS,
) -> DateRange:
    """The `days`-long range starting on the first of the given month."""
    start = datetime.date(year, month, 1)
    return DateRange(
        start_date=start,
        end_date=start + datetime.timedelta(days=max(days, 1) - 1),
    )


def month_key(value: datetime.date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def coerce_date(value: Any) -> datetime.date:
    """Like parse_date, but raise ValueError for unreadable input."""
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed


__all__ = [
    "DEFAULT_MAX_DAYS",
    "add_months",
    "coerce_date",
    "expand_date_range",
    "format_date_for_display",
    "format_date_for_storage",
    "month_key",
    "month_window",
    "parse_date",
]
