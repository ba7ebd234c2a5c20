from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

def format_utc_datetime(dt: Optional[datetime]) -> Optional[str]:
    """
    Format a datetime object to an ISO 8601 string with 'Z' suffix.

    If the datetime is naive, it is assumed to be in UTC and is made aware.
    If it is timezone-aware, it is converted to UTC.

    Args:
        dt: A datetime object or None

    Returns:
        An ISO 8601 formatted string with 'Z' suffix, or None if the input is None.
    """
    if dt is None:
        return None

    # If the datetime is naive, assume it's UTC and make it timezone-aware.
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    # If it's already timezone-aware, ensure it's in UTC.
    else:
        dt = dt.astimezone(timezone.utc)

    # Format to ISO string and replace the +00:00 suffix with 'Z'.
    iso_string = dt.isoformat()

    if iso_string.endswith('+00:00'):
        return iso_string.replace('+00:00', 'Z')

    return iso_string


def combine_local_date_time(
    day: Optional[date], at: Optional[time], tz: str
) -> Optional[datetime]:
    """
    Combine a local calendar date and wall-clock time into a UTC datetime.

    Args:
        day: Local date, or None
        at: Local time of day, or None
        tz: IANA timezone the date and time were entered in

    Returns:
        Timezone-aware UTC datetime, or None if either part is missing.
    """
    if day is None or at is None:
        return None
    local_dt = datetime.combine(day, at.replace(tzinfo=None), tzinfo=ZoneInfo(tz))
    return local_dt.astimezone(timezone.utc)
