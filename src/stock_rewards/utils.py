"""Shared time utilities. All timestamps are stored as naive UTC datetimes."""

from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(ts: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive input is assumed to be UTC already."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    """Midnight (naive UTC) at the start of the given calendar day."""
    return datetime.combine(day, time.min)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, next-day start) for a calendar day."""
    start = start_of_day(day)
    return start, start + timedelta(days=1)
