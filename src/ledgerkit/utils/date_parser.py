"""Date and instant parsing utilities."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Union

from dateutil import parser as date_parser

InstantLike = Union[datetime, date, str]

_RELATIVE_DAYS = {"yesterday": -1, "today": 0, "tomorrow": 1}


def parse_instant(value: str) -> datetime:
    """Parse a date or date-time string into an aware UTC datetime.

    A bare date is midnight UTC; a naive date-time is taken as UTC.
    "today", "yesterday" and "tomorrow" are midnight UTC of that UTC day.

    Raises:
        ValueError: If the string cannot be parsed
    """
    text = value.strip()
    if not text:
        raise ValueError("Empty date string")
    offset = _RELATIVE_DAYS.get(text.lower())
    if offset is not None:
        today = datetime.now(timezone.utc).date()
        return to_utc_instant(today + timedelta(days=offset))
    try:
        dt = date_parser.isoparse(text)
    except (ValueError, TypeError, OverflowError):
        try:
            dt = date_parser.parse(text)
        except (ValueError, TypeError, OverflowError) as e:
            raise ValueError(f"Could not parse date '{value}': {e}")
    return _as_utc(dt)


def to_utc_instant(value: InstantLike) -> datetime:
    """Normalize a date, datetime or string into an aware UTC datetime.

    Raises:
        ValueError: If the value cannot be interpreted as an instant
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        return parse_instant(value)
    raise ValueError(f"Not a date or datetime: {value!r}")


def isoformat_utc(value: datetime) -> str:
    """ISO-8601 text of an instant with a trailing Z."""
    return _as_utc(value).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
