"""Shared utility functions."""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone (naive values are treated as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_zone(dt: datetime, zone: ZoneInfo) -> datetime:
    """Express an instant as wall-clock time in ``zone``."""
    return ensure_utc(dt).astimezone(zone)


def month_start(dt: datetime, months_back: int = 0) -> datetime:
    """First instant of the month ``months_back`` months before ``dt``'s month."""
    month_index = dt.year * 12 + (dt.month - 1) - months_back
    return dt.replace(
        year=month_index // 12,
        month=month_index % 12 + 1,
        day=1,
        hour=0,
        minute=0,
        second=0,
        microsecond=0,
    )
