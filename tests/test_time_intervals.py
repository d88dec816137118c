from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from sessionbook.shared.exceptions import ValidationException
from sessionbook.shared.intervals import (
    contains,
    day_of_week,
    format_minutes,
    overlaps,
    seconds_since_midnight,
    to_minutes,
)
from sessionbook.shared.utils import month_start, to_zone


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("00:00", 0),
        ("9:05", 545),
        ("09:30", 570),
        ("23:59", 1439),
        ("10:15:45", 615),
    ],
)
def test_to_minutes_parses_wall_clock(value: str, expected: int) -> None:
    assert to_minutes(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", "12", "1:2", "12:00:61", "09:00\n", " 09:00"])
def test_to_minutes_rejects_malformed_input(value: str) -> None:
    with pytest.raises(ValidationException) as exc:
        to_minutes(value)
    assert "expected HH:MM" in exc.value.message


def test_format_minutes_pads_hours_and_minutes() -> None:
    assert format_minutes(545) == "09:05"
    assert format_minutes(0) == "00:00"


def test_overlaps_is_half_open() -> None:
    assert overlaps(540, 600, 570, 630)
    assert overlaps(540, 600, 540, 600)
    assert not overlaps(540, 600, 600, 660)
    assert not overlaps(600, 660, 540, 600)


def test_overlaps_is_symmetric() -> None:
    pairs = [((540, 600), (550, 560)), ((0, 30), (30, 60)), ((100, 200), (150, 250))]
    for (a_start, a_end), (b_start, b_end) in pairs:
        assert overlaps(a_start, a_end, b_start, b_end) == overlaps(b_start, b_end, a_start, a_end)


def test_contains_allows_touching_edges() -> None:
    assert contains(540, 720, 540, 720)
    assert contains(540, 720, 555, 585)
    assert not contains(540, 720, 530, 600)
    assert not contains(540, 720, 700, 730)


def test_intervals_work_on_timestamps() -> None:
    start = datetime(2024, 1, 8, 9, 0, tzinfo=UTC)
    assert overlaps(start, start + timedelta(hours=1), start + timedelta(minutes=30), start + timedelta(hours=2))
    assert not overlaps(start, start + timedelta(hours=1), start + timedelta(hours=1), start + timedelta(hours=2))


def test_day_of_week_starts_on_sunday() -> None:
    assert day_of_week(datetime(2024, 1, 7, 12, 0, tzinfo=UTC)) == 0
    assert day_of_week(datetime(2024, 1, 8, 12, 0, tzinfo=UTC)) == 1
    assert day_of_week(datetime(2024, 1, 13, 12, 0, tzinfo=UTC)) == 6


def test_seconds_since_midnight_runs_past_one_day_for_overnight_end() -> None:
    start = datetime(2024, 1, 8, 23, 30, tzinfo=UTC)
    end = datetime(2024, 1, 9, 0, 30, tzinfo=UTC)

    assert seconds_since_midnight(start) == 23 * 3600 + 30 * 60
    assert seconds_since_midnight(end, reference=start) == 24 * 3600 + 30 * 60


def test_to_zone_shifts_wall_clock_and_weekday() -> None:
    moment = datetime(2024, 1, 8, 2, 0, tzinfo=UTC)
    local = to_zone(moment, ZoneInfo("America/New_York"))

    assert local.hour == 21
    assert day_of_week(local) == 0


def test_month_start_walks_back_across_year_boundary() -> None:
    now = datetime(2026, 1, 15, 10, 30, tzinfo=UTC)

    assert month_start(now) == datetime(2026, 1, 1, tzinfo=UTC)
    assert month_start(now, months_back=1) == datetime(2025, 12, 1, tzinfo=UTC)
