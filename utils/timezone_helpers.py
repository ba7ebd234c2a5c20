"""
Timezone utilities for turning business-local calendar boundaries into UTC
ranges that can be compared against stored time-clock timestamps.
"""

from datetime import date, datetime
from datetime import time as datetime_time
from datetime import timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo


def from_utc_to_local(utc_dt: datetime, tz: str) -> datetime:
    """
    Convert UTC datetime to local datetime in the specified timezone.

    Args:
        utc_dt: UTC datetime (naive values are treated as UTC)
        tz: IANA timezone string (e.g., 'America/New_York', 'America/Los_Angeles')

    Returns:
        datetime: Local datetime in the specified timezone
    """
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)

    return utc_dt.astimezone(ZoneInfo(tz))


def local_start_of_day(local_date: date, tz: str) -> datetime:
    """Start of day (00:00:00) in the specified timezone, as UTC."""
    local_start = datetime.combine(local_date, datetime_time.min, tzinfo=ZoneInfo(tz))
    return local_start.astimezone(timezone.utc)


def local_end_of_day(local_date: date, tz: str) -> datetime:
    """End of day (23:59:59.999999) in the specified timezone, as UTC."""
    local_end = datetime.combine(local_date, datetime_time.max, tzinfo=ZoneInfo(tz))
    return local_end.astimezone(timezone.utc)


def get_week_range(local_date: date, tz: str) -> Tuple[date, date, datetime, datetime]:
    """
    Get the pay week (Sunday to Saturday) containing a local date.

    Args:
        local_date: Any date inside the wanted week
        tz: IANA timezone string

    Returns:
        Tuple containing:
        - start: Local Sunday
        - end: Local Saturday
        - start_dt: Week start datetime in UTC
        - end_dt: Week end datetime in UTC
    """
    # weekday() returns 0=Monday, 6=Sunday; the pay week starts on Sunday
    week_start_date = local_date - timedelta(days=(local_date.weekday() + 1) % 7)
    week_end_date = week_start_date + timedelta(days=6)

    start_dt = local_start_of_day(week_start_date, tz)
    end_dt = local_end_of_day(week_end_date, tz)

    return (week_start_date, week_end_date, start_dt, end_dt)


def get_current_date_in_tz(tz: str) -> date:
    """Today's date in the specified timezone."""
    return from_utc_to_local(datetime.now(timezone.utc), tz).date()
