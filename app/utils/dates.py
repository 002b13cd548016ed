"""
Timestamp helpers.

Stored timestamps come in several shapes: datetimes written by the server,
ISO-8601 strings written by forms, epoch milliseconds and exported
``{"seconds": ..., "nanoseconds": ...}`` maps. Everything is normalized to
timezone-aware UTC datetimes here.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional

from dateutil import parser as dtparser


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Values this large are milliseconds
        seconds = value / 1000 if abs(value) > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, dict) and "seconds" in value:
        seconds = value.get("seconds", 0) + value.get("nanoseconds", 0) / 1e9
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = dtparser.parse(value)
        except (ValueError, OverflowError):
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def time_ago(value: Any, now: Optional[datetime] = None) -> str:
    """Relative phrase such as ``"3 days ago"`` or ``"in 2 hours"``."""
    moment = to_datetime(value)
    if moment is None:
        return "N/A"
    now = now or utcnow()
    delta = (now - moment).total_seconds()
    future = delta < 0
    seconds = abs(delta)

    if seconds < 45:
        phrase = "less than a minute"
    elif seconds < 45 * 60:
        phrase = _plural(max(1, round(seconds / 60)), "minute")
    elif seconds < 24 * 3600:
        phrase = "about " + _plural(max(1, round(seconds / 3600)), "hour")
    elif seconds < 30 * 86400:
        phrase = _plural(max(1, round(seconds / 86400)), "day")
    elif seconds < 365 * 86400:
        phrase = _plural(max(1, round(seconds / (30 * 86400))), "month")
    else:
        phrase = "about " + _plural(max(1, round(seconds / (365 * 86400))), "year")

    return f"in {phrase}" if future else f"{phrase} ago"


def month_label(value: Any) -> Optional[str]:
    moment = to_datetime(value)
    return moment.strftime("%b %Y") if moment else None


def month_sort_key(label: str) -> datetime:
    return datetime.strptime(label, "%b %Y")
