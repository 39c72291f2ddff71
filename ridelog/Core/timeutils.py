"""Datetime helpers shared by services and repositories.

- Stored timestamps are compared and subtracted as aware UTC values.
- SQLite returns naive datetimes for DateTime(timezone=True) columns; those are
  interpreted as UTC."""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime (naive values are assumed UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_epoch(seconds: float) -> datetime:
    """Aware UTC datetime for an epoch timestamp (used with injected clocks)."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
