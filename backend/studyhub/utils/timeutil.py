"""UTC helpers shared by the stores and the stats aggregator.

Every timestamp the application writes is timezone-aware UTC. SQLite
drops the offset on the way back, so readers treat naive values as UTC.
"""

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return `value` as an aware UTC datetime (naive input is assumed UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_day(value: datetime) -> date:
    """Truncate a timestamp to its UTC calendar date."""
    return as_utc(value).date()
