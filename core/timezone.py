"""
Timezone and date formatting utilities.

Exam dates are stored and compared in UTC; naive datetimes coming back from
the database are treated as UTC.
"""

from datetime import date, datetime

import pytz


def ensure_utc(dt: datetime) -> datetime:
    """Return an aware UTC datetime (naive datetimes treated as UTC)."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def to_iso(dt: datetime | None) -> str | None:
    """Serialize a datetime as ISO-8601 UTC with a trailing Z."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def format_exam_date(dt: datetime | date, tz_name: str = "UTC") -> str:
    """
    Format an exam date for message bodies.

    Returns:
        Formatted string like "Sunday, June 1, 2025"
    """
    if isinstance(dt, datetime):
        try:
            tz = pytz.timezone(tz_name)
        except pytz.UnknownTimeZoneError:
            tz = pytz.UTC
        dt = ensure_utc(dt).astimezone(tz)

    return dt.strftime("%A, %B %d, %Y").replace(" 0", " ")  # "June 1" not "June 01"
