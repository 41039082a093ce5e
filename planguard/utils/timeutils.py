"""
Timestamp helpers shared by the sweepers.

SQLite hands timestamps back without tzinfo, PostgreSQL with it; the
sweepers compare everything as aware UTC datetimes.
"""

from datetime import datetime, timezone
from typing import Optional


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Current aware UTC time. Only the job entry points call this."""
    return datetime.now(timezone.utc)
