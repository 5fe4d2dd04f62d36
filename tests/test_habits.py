"""Tests for recurring habit expansion."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from dateutil import tz

from autoscheduler.domain.models import (
    BlockSource,
    BlockType,
    EnergyPreference,
    Frequency,
    HabitWindow,
)
from autoscheduler.repos.memory import ScheduleStore
from autoscheduler.services.habits import (
    build_habit_blocks,
    habit_occurrences,
    schedule_habit,
)

# Monday 1 June 2026; the 14-day horizon runs through Sunday 14 June.
_NOW = datetime(2026, 6, 1, 10, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# habit_occurrences
# ---------------------------------------------------------------------------


def test_daily_covers_fourteen_days_including_today():
    starts = habit_occurrences(_NOW, Frequency.DAILY, HabitWindow.MORNING)

    assert len(starts) == 14
    assert starts[0] == datetime(2026, 6, 1, 7, 0, tzinfo=timezone.utc)
    assert starts[-1] == datetime(2026, 6, 14, 7, 0, tzinfo=timezone.utc)
    assert all(b - a == timedelta(days=1) for a, b in zip(starts, starts[1:]))


def test_weekdays_skip_saturday_and_sunday():
    starts = habit_occurrences(_NOW, "weekdays", "afternoon")

    assert len(starts) == 10
    assert all(s.weekday() < 5 for s in starts)
    assert all(s.hour == 14 for s in starts)


def test_weekends_only():
    starts = habit_occurrences(_NOW, Frequency.WEEKENDS, HabitWindow.EVENING)

    assert [s.day for s in starts] == [6, 7, 13, 14]
    assert all(s.hour == 19 for s in starts)


def test_starting_on_a_sunday_includes_today_for_weekends():
    sunday = datetime(2026, 6, 7, 6, 0, tzinfo=timezone.utc)

    starts = habit_occurrences(sunday, Frequency.WEEKENDS, HabitWindow.MORNING)

    assert starts[0] == datetime(2026, 6, 7, 7, 0, tzinfo=timezone.utc)
    assert len(starts) == 4


def test_unknown_frequency_rejected():
    with pytest.raises(ValueError):
        habit_occurrences(_NOW, "fortnightly", HabitWindow.MORNING)


# ---------------------------------------------------------------------------
# build_habit_blocks / schedule_habit
# ---------------------------------------------------------------------------


def test_habit_block_fields():
    blocks = build_habit_blocks("Meditate", 20, _NOW)

    block = blocks[0]
    assert block.title == "Meditate"
    assert block.end - block.start == timedelta(minutes=20)
    assert block.type == BlockType.PERSONAL
    assert block.source == BlockSource.AUTO
    assert block.category == "habit"
    assert block.is_flexible is True
    assert block.flexibility_score == 60
    assert block.energy_level == EnergyPreference.MEDIUM


def test_non_morning_habits_use_low_energy():
    blocks = build_habit_blocks("Walk", 45, _NOW, preferred_time=HabitWindow.EVENING)

    assert {b.energy_level for b in blocks} == {EnergyPreference.LOW}


def test_custom_flexibility_score():
    blocks = build_habit_blocks("Read", 30, _NOW, flexibility_score=90)

    assert {b.flexibility_score for b in blocks} == {90}


def test_invalid_duration_rejected():
    with pytest.raises(ValueError, match="duration_minutes"):
        build_habit_blocks("Stretch", 0, _NOW)


def test_schedule_habit_inserts_every_occurrence():
    store = ScheduleStore()

    blocks = schedule_habit(store, "Gym", 60, _NOW, frequency=Frequency.WEEKDAYS)

    assert len(store) == 10
    assert {b.id for b in store.list_all()} == {b.id for b in blocks}


def test_occurrences_keep_wall_clock_hour_across_dst():
    berlin = tz.gettz("Europe/Berlin")
    now = datetime(2026, 3, 27, 6, 0, tzinfo=berlin)

    starts = habit_occurrences(now, Frequency.DAILY, HabitWindow.MORNING, horizon_days=5)

    assert [s.hour for s in starts] == [7] * 5
    assert [s.astimezone(timezone.utc).hour for s in starts] == [6, 6, 5, 5, 5]
