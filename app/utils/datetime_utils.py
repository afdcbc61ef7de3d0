"""
Common date/time helpers.

Storage: all timestamps are stored in UTC.
Report ranges are calendar dates; a range [start, end] covers every
instant from start 00:00 UTC up to (but excluding) the day after end.
"""

from datetime import date, datetime, time, timedelta, timezone


def as_utc(dt: datetime) -> datetime:
    """
    Convert dt to tz-aware UTC.
    If dt is naive, we treat it as UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    """
    Exclusive upper bound for `day`: the next midnight UTC.

    date.max has no next day, so its bound is datetime.max (UTC).
    """
    if day == date.max:
        return datetime.max.replace(tzinfo=timezone.utc)
    return start_of_day(day) + timedelta(days=1)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [00:00, next 00:00) bounds for a single UTC day."""
    return start_of_day(day), end_of_day(day)


def range_bounds(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Half-open bounds covering both end dates inclusively."""
    return start_of_day(start_date), end_of_day(end_date)


def to_date_key(value: date | datetime | str | None) -> str | None:
    """
    Normalize a grouped date value to 'YYYY-MM-DD'.

    func.date() returns a string on SQLite and a date on PostgreSQL.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]
