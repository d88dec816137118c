"""Wall-clock time parsing and interval arithmetic.

All helpers are pure. ``overlaps`` and ``contains`` work on any mutually
comparable values, so the same rules apply to minute-of-day offsets, second
offsets and absolute timestamps.

Intervals are half-open: ``[start, end)``. Two intervals that merely touch
(``a_end == b_start``) do not overlap, while identical intervals do.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import TypeVar

from sessionbook.shared.exceptions import ValidationException

TIME_PATTERN = re.compile(r"([01]?\d|2[0-3]):[0-5]\d(:[0-5]\d)?", re.ASCII)

T = TypeVar("T")


def to_minutes(value: str) -> int:
    """Convert ``HH:MM`` or ``HH:MM:SS`` to minutes since midnight.

    Seconds, when present, are validated but do not contribute to the result.
    """
    if not isinstance(value, str) or TIME_PATTERN.fullmatch(value) is None:
        raise ValidationException(f"Invalid time '{value}': expected HH:MM")
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def format_minutes(minutes: int) -> str:
    """Render minutes since midnight as ``HH:MM``."""
    hours, rest = divmod(minutes, 60)
    return f"{hours:02d}:{rest:02d}"


def overlaps(start_a: T, end_a: T, start_b: T, end_b: T) -> bool:
    """Return True when ``[start_a, end_a)`` and ``[start_b, end_b)`` intersect."""
    return start_a < end_b and start_b < end_a


def contains(outer_start: T, outer_end: T, inner_start: T, inner_end: T) -> bool:
    """Return True when the inner interval lies entirely inside the outer one."""
    return outer_start <= inner_start and outer_end >= inner_end


def day_of_week(moment: datetime) -> int:
    """Day index with 0=Sunday .. 6=Saturday."""
    return moment.isoweekday() % 7


def seconds_since_midnight(moment: datetime, reference: datetime | None = None) -> int:
    """Seconds between the local midnight of ``reference`` (default ``moment``) and ``moment``.

    Using the start instant as reference for an end instant lets a window that
    runs past midnight produce an offset above one day, so it never fits in a
    single-day slot.
    """
    anchor = reference if reference is not None else moment
    midnight = anchor.replace(hour=0, minute=0, second=0, microsecond=0)
    return int((moment - midnight).total_seconds())
