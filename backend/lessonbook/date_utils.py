# backend/lessonbook/date_utils.py
from datetime import datetime, date, timedelta
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"


def parse_iso_date(s) -> Optional[date]:
    """Parse a yyyy-mm-dd string into a date, or return None for falsy input."""
    if s is None or s == "":
        return None
    if isinstance(s, date):
        return s
    try:
        return datetime.strptime(s, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date format, expected YYYY-MM-DD: {s!r}")


def format_iso_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def add_days(iso_date: str, days: int) -> str:
    """Shift a naive calendar date. No timezone, so no DST drift."""
    return format_iso_date(parse_iso_date(iso_date) + timedelta(days=days))


def ensure_end_after_start(start: Optional[date], end: Optional[date]) -> None:
    """Raise ValueError if end exists and is before start."""
    if start and end and end < start:
        raise ValueError("'to' must be the same as or after 'from'.")
