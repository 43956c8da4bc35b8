"""Clock — UTC time helpers shared by services and stores.

Invariants:
    - Every datetime the domain compares is timezone-aware UTC
    - Naive datetimes are interpreted as UTC, never as local time
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
