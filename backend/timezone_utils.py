"""
Timezone utilities for Lodge Calendar.

Provides unified timezone conversion functions for the entire application.
Timed events arrive as aware datetimes and are converted to local time for
display and for date-key calculation.
"""

from datetime import datetime, date
import time as _time
import pytz


# Default timezone - overridden from config at startup
_local_timezone_name: str = "UTC"


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Returns:
        pytz timezone object for the configured local timezone.
    """
    try:
        return pytz.timezone(_local_timezone_name)
    except pytz.UnknownTimeZoneError:
        # Last resort: fixed offset of the host clock
        is_dst = _time.localtime().tm_isdst
        if is_dst:
            offset_seconds = -_time.altzone
        else:
            offset_seconds = -_time.timezone
        return pytz.FixedOffset(offset_seconds // 60)


def to_local_datetime(dt: datetime) -> datetime:
    """
    Convert an aware datetime to the local timezone.

    Naive datetimes are assumed to already be local and are returned unchanged.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(get_local_timezone())
    return dt


def local_midnight(d: date) -> datetime:
    """First instant of the given local calendar day, as an aware datetime."""
    return get_local_timezone().localize(datetime.combine(d, datetime.min.time()))


def now_local() -> datetime:
    """Current time in the local timezone."""
    return datetime.now(pytz.UTC).astimezone(get_local_timezone())


def to_rfc3339(dt: datetime) -> str:
    """Format an aware datetime as the UTC RFC 3339 string Google expects."""
    if dt.tzinfo is None:
        dt = get_local_timezone().localize(dt)
    return dt.astimezone(pytz.UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def date_key(d: date) -> str:
    """Canonical YYYY-MM-DD key used to match events to grid cells."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"
