"""
Tolerant coercion helpers for incoming record fields.

Records arrive from forms, spreadsheets and old exports. A single bad cell
must not blank a whole report, so these helpers never raise: an amount that
cannot be read becomes zero and a date that cannot be read becomes None.
"""

import datetime
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DMY_DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")

ZERO = Decimal("0")


def parse_date(value: Any) -> Optional[datetime.date]:
    """
    Parse a calendar date from the formats the tracker has stored over time.

    Accepts date/datetime objects, YYYY-MM-DD, DD/MM/YYYY and ISO datetimes.
    Returns None for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        if ISO_DATE_RE.match(text):
            return datetime.date.fromisoformat(text)
        if DMY_DATE_RE.match(text):
            day, month, year = text.split("/")
            return datetime.date(int(year), int(month), int(day))
        return datetime.datetime.fromisoformat(text).date()
    except ValueError:
        return None


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse a currency magnitude.

    Returns None when the value cannot be read as a finite number.
    Accepts a decimal comma ("12,50") as entered in the expense form.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(" ", "")
        if not text:
            return None
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not result.is_finite():
        return None
    return result


def coerce_amount(value: Any) -> Decimal:
    """Amount as a non-negative magnitude; unreadable values count as zero."""
    parsed = parse_amount(value)
    if parsed is None:
        return ZERO
    return abs(parsed)


def describe_amount_problem(value: Any) -> Optional[str]:
    """Explain why an amount will be coerced, or None if it is usable as-is."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return "missing"
    parsed = parse_amount(value)
    if parsed is None:
        return "unparseable"
    if parsed < 0:
        return "negative"
    return None


def describe_date_problem(value: Any, required: bool = True) -> Optional[str]:
    """Explain why a date will be ignored, or None if it parses."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return "missing" if required else None
    if parse_date(value) is None:
        return "unparseable"
    return None
