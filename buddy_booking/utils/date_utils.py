"""Date manipulation utilities"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterator


def iter_dates(start: date, days: int) -> Iterator[date]:
    """Yield `days` consecutive calendar dates beginning at start"""
    for offset in range(max(days, 0)):
        yield start + timedelta(days=offset)


def localize(moment: datetime, tz: tzinfo) -> datetime:
    """Express moment in tz; naive values are taken to already be wall-clock time in tz"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def as_utc(moment: datetime | None) -> datetime | None:
    """Normalize a stored timestamp to aware UTC (SQLite hands back naive values)"""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
