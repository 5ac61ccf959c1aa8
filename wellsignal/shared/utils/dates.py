"""UTC helpers.

All day bucketing in the platform uses the UTC calendar date of the stored
timestamp, with no per-user timezone adjustment. Naive datetimes coming out
of storage are taken to be UTC already.
"""
from datetime import date, datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_day(value: datetime) -> date:
    """Calendar day of ``value`` in UTC."""
    return as_utc(value).date()


def days_ago(now: datetime, days: int) -> datetime:
    return as_utc(now) - timedelta(days=days)


def parse_timestamp(value) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware datetime.

    datetime values pass through, normalized to UTC.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
