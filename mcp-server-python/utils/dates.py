"""
Calendar-day helpers for delivery dates.

Delivery dates are stored as ISO strings with date-only meaning. Every
comparison reduces them to a calendar day in one fixed reference timezone so
that "today" and "overdue" do not drift between callers.
"""

from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Optional


class DeliveryBucket(str, Enum):
    """Board ordering buckets; declaration order is sort order."""

    OVERDUE = "overdue"
    TODAY = "today"
    FUTURE = "future"
    INVALID = "invalid"


BUCKET_ORDER = {
    DeliveryBucket.OVERDUE: 0,
    DeliveryBucket.TODAY: 1,
    DeliveryBucket.FUTURE: 2,
    DeliveryBucket.INVALID: 3,
}


def parse_calendar_day(value: Optional[str], tz: tzinfo) -> Optional[date]:
    """
    Reduce an ISO date or datetime string to a calendar day in ``tz``.

    - ``2026-03-01`` is that day.
    - An aware datetime is converted to ``tz`` before taking the day.
    - A naive datetime is read as wall-clock time in ``tz``.

    Returns None when the value is missing or unparseable.
    """
    if value is None or not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.date()
    return parsed.astimezone(tz).date()


def today_in(tz: tzinfo, now: Optional[datetime] = None) -> date:
    """Return the current calendar day in the reference timezone."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def delivery_bucket(delivery_date: Optional[str], today: date, tz: tzinfo) -> DeliveryBucket:
    """Classify a delivery date relative to ``today``."""
    day = parse_calendar_day(delivery_date, tz)
    if day is None:
        return DeliveryBucket.INVALID
    if day < today:
        return DeliveryBucket.OVERDUE
    if day == today:
        return DeliveryBucket.TODAY
    return DeliveryBucket.FUTURE
