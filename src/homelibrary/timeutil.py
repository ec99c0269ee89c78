"""UTC timestamp helpers.

Timestamps are stored as fixed-width ISO 8601 strings in UTC
(``2024-01-15T00:00:00.000000+00:00``) so that string comparison in SQL
matches chronological order.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalise a datetime to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: datetime) -> str:
    """Format a datetime for storage."""
    return to_utc(value).isoformat(timespec="microseconds")


def now_storage() -> str:
    """Current time formatted for storage."""
    return to_storage(utcnow())


def from_storage(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp back into an aware datetime."""
    if not value:
        return None
    return to_utc(datetime.fromisoformat(value))
