"""Business-day boundaries.

"Today" is the calendar day in the configured business timezone; database
timestamps are UTC.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from callmate.core.exceptions import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def business_zone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Unknown timezone: {name}", cause=e)


def business_today(now: datetime, tz_name: str = "UTC") -> date:
    """Calendar date of ``now`` in the business timezone."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(business_zone(tz_name)).date()


def start_of_day(day: date, tz_name: str = "UTC") -> datetime:
    """Local midnight of ``day`` expressed in UTC."""
    local_midnight = datetime.combine(day, time.min, tzinfo=business_zone(tz_name))
    return local_midnight.astimezone(timezone.utc)


def day_window(now: datetime, tz_name: str = "UTC") -> tuple[datetime, datetime]:
    """``[start, end)`` of the business day containing ``now``, in UTC."""
    today = business_today(now, tz_name)
    return start_of_day(today, tz_name), start_of_day(today + timedelta(days=1), tz_name)
