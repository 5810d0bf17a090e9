"""
Timezone-aware datetime helpers.
- Store and compute instants in UTC.
- Calendar days (and therefore midnight splits) are wall-clock days in
  settings.WORK_TIMEZONE.
- API responses expose datetimes in the work timezone with explicit offset.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from timeclock.core.config import settings

UTC = timezone.utc
WORK_TZ = ZoneInfo(settings.WORK_TIMEZONE)

# Last representable instant of a day at millisecond precision
END_OF_DAY_TIME = time(23, 59, 59, 999000)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def to_local(dt: Optional[datetime], tz: Optional[ZoneInfo] = None) -> Optional[datetime]:
    """Convert to the work timezone. Naive datetimes are treated as UTC before converting."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(tz or WORK_TZ)


def local_date(dt: datetime, tz: Optional[ZoneInfo] = None) -> date:
    """Calendar day of an instant in the work timezone."""
    return to_local(dt, tz).date()


def start_of_day(day: date, tz: Optional[ZoneInfo] = None) -> datetime:
    """00:00:00.000 local of day, as a UTC instant."""
    return datetime.combine(day, time.min, tzinfo=tz or WORK_TZ).astimezone(UTC)


def end_of_day(day: date, tz: Optional[ZoneInfo] = None) -> datetime:
    """23:59:59.999 local of day, as a UTC instant."""
    return datetime.combine(day, END_OF_DAY_TIME, tzinfo=tz or WORK_TZ).astimezone(UTC)


def next_midnight(day: date, tz: Optional[ZoneInfo] = None) -> datetime:
    """Exclusive upper bound of day: 00:00 of the following day, as a UTC instant."""
    return start_of_day(day + timedelta(days=1), tz)


def day_bounds(day: date, tz: Optional[ZoneInfo] = None) -> Tuple[datetime, datetime]:
    """(start_of_day, end_of_day) for a calendar day."""
    return start_of_day(day, tz), end_of_day(day, tz)


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 in the work timezone with explicit offset. Use for API response datetime fields."""
    if dt is None:
        return None
    return to_local(dt).isoformat()
