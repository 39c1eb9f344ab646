"""Reference-time helpers

Time-dependent checks take an explicit as_of; these resolve the default and
normalise naive timestamps (stored as UTC) so comparisons never mix kinds.
"""

from __future__ import annotations

from datetime import date, datetime, timezone


def resolve_as_of(as_of: datetime | None) -> datetime:
    """as_of, or the current UTC time"""
    if as_of is None:
        return datetime.now(timezone.utc)
    return to_utc(as_of)


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_between(start: date | datetime, end: date | datetime) -> float:
    """Days from start to end (negative when end is earlier)"""
    if isinstance(start, datetime) and isinstance(end, datetime):
        return (to_utc(end) - to_utc(start)).total_seconds() / 86_400
    return float((_as_date(end) - _as_date(start)).days)


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return to_utc(value).date()
    return value
