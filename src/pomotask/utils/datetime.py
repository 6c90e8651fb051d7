"""Datetime helpers for relative due-date arithmetic.

All relative dates are resolved against a caller supplied "now" so parsing
stays deterministic under test. Results keep the tzinfo of that "now"; naive
inputs produce naive results.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

Clock = Callable[[], datetime]

WEEKDAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']

END_OF_DAY = time(23, 59, 59, 999000)


def now_local() -> datetime:
    """Return the current local time as a timezone-aware datetime."""
    return datetime.now().astimezone()


def is_local_zone(dt: datetime) -> bool:
    """True when ``dt`` carries the system zone's offset for its instant."""
    return dt.tzinfo is not None and dt.utcoffset() == dt.astimezone().utcoffset()


def relocalize(dt: datetime, reference: datetime) -> datetime:
    """Give ``dt`` the local offset in force at its own wall time.

    ``astimezone()`` yields a fixed offset, which goes stale once day
    arithmetic crosses a DST change. Only applies when ``reference`` is in
    the system zone; other zones and naive values pass through unchanged.
    """
    if not is_local_zone(reference):
        return dt
    return dt.replace(tzinfo=None).astimezone()


def end_of_day(dt: datetime) -> datetime:
    """Return ``dt`` with its time set to 23:59:59.999."""
    return dt.replace(hour=END_OF_DAY.hour, minute=END_OF_DAY.minute,
                      second=END_OF_DAY.second, microsecond=END_OF_DAY.microsecond)


def start_of_day(dt: datetime) -> datetime:
    """Return local midnight of ``dt``'s day."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def is_end_of_day(dt: datetime) -> bool:
    """True when ``dt`` carries the default end-of-day time."""
    return dt.time() == END_OF_DAY


def at_date(now: datetime, day: date) -> datetime:
    """End of ``day`` in the timezone of ``now``."""
    return end_of_day(datetime.combine(day, time(0, 0), tzinfo=now.tzinfo))


def set_time_of_day(dt: datetime, hour: int, minute: int) -> datetime:
    """Override the time-of-day portion of ``dt``."""
    return dt.replace(hour=hour, minute=minute, second=0, microsecond=0)


def weekday_number(day_name: str) -> int:
    """Convert day name to number (0=Monday)."""
    return WEEKDAYS.index(day_name.lower())


def next_weekday(now: datetime, weekday: int) -> datetime:
    """Next occurrence of ``weekday`` strictly after ``now``'s day.

    When today already is that weekday the result is one week out.
    """
    days_ahead = (weekday - now.weekday()) % 7 or 7
    return now + timedelta(days=days_ahead)


def add_months(dt: datetime, months: int) -> datetime:
    """Add months to a date, clamping the day to the target month's length."""
    month = dt.month - 1 + months
    year = dt.year + month // 12
    month = month % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def parse_iso_date(date_str: str) -> Optional[date]:
    """Parse ``YYYY-MM-DD``; None if it is not a calendar date."""
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_now(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp used to pin "now".

    Naive values are interpreted in the local timezone.
    Raises ValueError for malformed input.
    """
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed
