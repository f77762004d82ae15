from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current instant in UTC.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize DATETIME values read back from MySQL (naive, stored as UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetime -> naive UTC for a DATETIME column."""
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)


def format_utc(value: Optional[datetime]) -> Optional[str]:
    """ISO 8601 with a 'Z' suffix, or None."""
    if value is None:
        return None
    iso = as_utc(value).isoformat()
    if iso.endswith("+00:00"):
        return iso[: -len("+00:00")] + "Z"
    return iso
