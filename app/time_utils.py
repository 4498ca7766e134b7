from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from app.config import settings


def local_tz() -> tzinfo:
    return ZoneInfo(settings.TIMEZONE)


def local_now() -> datetime:
    return datetime.now(local_tz())


def local_today() -> date:
    return local_now().date()


def to_local(dt: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert a stored timestamp to the local wall clock.

    Naive values are treated as UTC (SQLite drops tzinfo on round trips).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz or local_tz())


def local_hour(dt: datetime, tz: tzinfo | None = None) -> int:
    return to_local(dt, tz).hour


def start_of_day(d: date, tz: tzinfo | None = None) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=tz or local_tz())
