"""
Time and expiry helpers.

Timestamps are always handled as timezone-aware UTC. Some drivers (SQLite)
hand back naive datetimes for timezone columns; ``as_utc`` normalises them.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes, convert aware ones."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when ``expires_at`` is in the past (or missing)."""
    if expires_at is None:
        return True
    return as_utc(expires_at) < (now or utcnow())


def iso_timestamp(dt: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    dt = as_utc(dt) if dt else utcnow()
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_millis(dt: Optional[datetime] = None) -> int:
    return int((dt or utcnow()).timestamp() * 1000)
