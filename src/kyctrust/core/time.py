"""
Time helpers.

All timestamps produced by the simulators are timezone-aware, so history entries, EXIF
timestamps and API output never mix naive and aware datetimes.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo


def get_tz(name: str) -> tzinfo:
    """Resolve a timezone name; "UTC" never needs the system tz database."""
    if name.strip().upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def now_in(tz_name: str) -> datetime:
    """Current aware datetime in `tz_name`."""
    return datetime.now(get_tz(tz_name))


def start_of_day(dt: datetime) -> datetime:
    """Midnight of the calendar day of `dt`, keeping its tzinfo."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)
