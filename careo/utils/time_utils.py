# careo/utils/time_utils.py
"""
Centralized timezone and time utilities.

All clinical dates are calendar days in the facility's local timezone, while
stored instants (order start/end dates, created_at) are timezone-aware UTC.
These helpers convert between the two so that no module does its own
timezone arithmetic.

- Pure time parsing for dose clock strings ("08:00")
- Instant to facility-local date conversion
- Local date + clock time combination
- Calendar helpers for monthly recurrence
"""

import calendar
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..constants import DATE_FORMAT, DOSE_TIME_FORMAT, DOSE_TIME_PATTERN

# Constant for UTC timezone to avoid hardcoded timezone.utc references
UTC_TIMEZONE = timezone.utc

_DOSE_TIME_RE = re.compile(DOSE_TIME_PATTERN)

TimezoneLike = Union[str, ZoneInfo]


def utc_now() -> datetime:
    """Get current timezone-aware UTC datetime."""
    return datetime.now(UTC_TIMEZONE)


def get_zone(timezone_like: TimezoneLike) -> ZoneInfo:
    """Return a ZoneInfo for a timezone name, passing ZoneInfo through."""
    if isinstance(timezone_like, ZoneInfo):
        return timezone_like
    return ZoneInfo(timezone_like)


def validate_timezone(timezone_str: str) -> bool:
    """
    Validate if a timezone string is valid.

    Args:
        timezone_str: Timezone string to validate

    Returns:
        True if valid, False otherwise
    """
    try:
        ZoneInfo(timezone_str)
        return True
    except (ZoneInfoNotFoundError, ValueError):
        return False


# ════════════════════════════════════════════════════════════════════════════════
#                               DOSE TIME PARSING
# ════════════════════════════════════════════════════════════════════════════════


def is_valid_dose_time(value: str) -> bool:
    """Check a dose time is a zero padded 24-hour "HH:MM" string."""
    return isinstance(value, str) and bool(_DOSE_TIME_RE.fullmatch(value))


def parse_time_string(value: str) -> time:
    """
    Parse a dose clock string into a time object.

    Args:
        value: Clock string such as "08:00" or "22:30"

    Returns:
        Naive time object

    Raises:
        ValueError: If the string is not a valid 24-hour HH:MM time
    """
    if not is_valid_dose_time(value):
        raise ValueError(f"Invalid time '{value}', expected 24-hour HH:MM")
    return datetime.strptime(value, DOSE_TIME_FORMAT).time()


# ════════════════════════════════════════════════════════════════════════════════
#                           FACILITY-LOCAL CONVERSIONS
# ════════════════════════════════════════════════════════════════════════════════


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; leave aware datetimes untouched."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC_TIMEZONE)
    return value


def to_local(value: datetime, timezone_like: TimezoneLike) -> datetime:
    """
    Convert an instant to the facility timezone.

    Naive datetimes are treated as UTC, matching how instants are stored.
    """
    return ensure_utc(value).astimezone(get_zone(timezone_like))


def local_date_of(value: Union[datetime, date], timezone_like: TimezoneLike) -> date:
    """Calendar date an instant falls on in the facility timezone."""
    if isinstance(value, datetime):
        return to_local(value, timezone_like).date()
    return value


def combine_local(
    target_date: date, clock_time: time, timezone_like: TimezoneLike
) -> datetime:
    """
    Combine a local calendar date and wall-clock time into an aware datetime.

    Wall-clock times that fall in a DST gap or overlap resolve with fold=0.
    """
    return datetime.combine(target_date, clock_time, tzinfo=get_zone(timezone_like))


def local_today(
    timezone_like: TimezoneLike, now: Optional[datetime] = None
) -> date:
    """Today's calendar date in the facility timezone."""
    return to_local(now or utc_now(), timezone_like).date()


# ════════════════════════════════════════════════════════════════════════════════
#                               CALENDAR HELPERS
# ════════════════════════════════════════════════════════════════════════════════


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month."""
    return calendar.monthrange(year, month)[1]


def iter_dates(start_date: date, end_date: date) -> Iterator[date]:
    """Yield each calendar date from start_date to end_date inclusive."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def format_date_string(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime(DATE_FORMAT)


def parse_date_string(value: str) -> date:
    """Parse a YYYY-MM-DD string."""
    return datetime.strptime(value, DATE_FORMAT).date()
