from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from reservations.core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime read back from the database to aware UTC.

    SQLite hands timestamps back naive; every timestamp this service
    writes is UTC, so a naive value is UTC by construction.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def event_timezone() -> ZoneInfo:
    return ZoneInfo(settings.EVENT_TIMEZONE)


def local_today() -> date:
    """Today's calendar date where the show takes place."""
    return utcnow().astimezone(event_timezone()).date()


def event_start(event_date: date, start_time: time) -> datetime:
    return datetime.combine(event_date, start_time, tzinfo=event_timezone()).astimezone(timezone.utc)


def event_end(event_date: date, start_time: time) -> datetime:
    return event_start(event_date, start_time) + timedelta(minutes=settings.EVENT_DURATION_MINUTES)


def parse_event_time(value: str) -> time:
    """Accepts '16:00', '16:00:00' or '04:00 PM'."""
    value = value.strip()
    for fmt in ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p"):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised event time: {value!r}")


def format_event_date(value: date) -> str:
    return value.strftime("%A, %B %d, %Y")


def format_event_time(value: time) -> str:
    return value.strftime("%I:%M %p").lstrip("0")
