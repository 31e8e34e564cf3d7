"""
Calendar date helpers.

Dates travel as ISO-8601 ``YYYY-MM-DD`` strings; the dd/mm/yyyy helpers
exist only for display and form input.
"""
from datetime import date, datetime
from typing import Optional, Union

from kidchart.models.exceptions import InvalidDateError

DateLike = Union[date, datetime, str]


def parse_iso_date(value: DateLike) -> date:
    """Return the calendar day of ``value``; any time of day is dropped."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise InvalidDateError(f"Not an ISO date: {value!r}") from None
    raise InvalidDateError(f"Unsupported date value: {value!r}")


def format_date_ddmmyyyy(value: Optional[DateLike]) -> str:
    """yyyy-mm-dd -> dd/mm/yyyy"""
    if not value:
        return ''
    return date_to_string_ddmmyyyy(parse_iso_date(value))


def parse_date_ddmmyyyy(text: Optional[str]) -> Optional[str]:
    """dd/mm/yyyy -> yyyy-mm-dd, or None when the input is not a real date."""
    if not text:
        return None
    parts = text.strip().split('/')
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(p) for p in parts)
    except ValueError:
        return None

    if day < 1 or day > 31 or month < 1 or month > 12 or year < 1900:
        return None
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        # e.g. 31/02
        return None


def date_to_string_ddmmyyyy(value: date) -> str:
    return f"{value.day:02d}/{value.month:02d}/{value.year}"


def today_ddmmyyyy() -> str:
    return date_to_string_ddmmyyyy(date.today())
