"""Service for expanding a habit into recurring schedule blocks."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from dateutil.rrule import DAILY, FR, MO, SA, SU, TH, TU, WE, rrule

from autoscheduler.domain.models import (
    BlockSource,
    BlockType,
    EnergyPreference,
    Frequency,
    HabitWindow,
    Priority,
    ScheduleBlock,
)
from autoscheduler.repos.memory import ScheduleStore

logger = logging.getLogger(__name__)

HABIT_CATEGORY = "habit"

_START_HOURS = {
    HabitWindow.MORNING: 7,
    HabitWindow.AFTERNOON: 14,
    HabitWindow.EVENING: 19,
}

_WEEKDAYS = {
    Frequency.DAILY: None,
    Frequency.WEEKDAYS: (MO, TU, WE, TH, FR),
    Frequency.WEEKENDS: (SA, SU),
}


def habit_occurrences(
    now: datetime,
    frequency: Frequency | str,
    preferred_time: HabitWindow | str,
    horizon_days: int = 14,
) -> list[datetime]:
    """Start times for a habit over the next ``horizon_days`` days, today included."""
    first = now.replace(
        hour=_START_HOURS[HabitWindow(preferred_time)], minute=0, second=0, microsecond=0
    )
    rule = rrule(
        DAILY,
        dtstart=first,
        until=first + timedelta(days=horizon_days - 1),
        byweekday=_WEEKDAYS[Frequency(frequency)],
    )
    return list(rule)


def build_habit_blocks(
    title: str,
    duration_minutes: int,
    now: datetime,
    frequency: Frequency | str = Frequency.DAILY,
    preferred_time: HabitWindow | str = HabitWindow.MORNING,
    flexibility_score: int = 60,
    horizon_days: int = 14,
) -> list[ScheduleBlock]:
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")
    preferred_time = HabitWindow(preferred_time)
    energy = (
        EnergyPreference.MEDIUM
        if preferred_time == HabitWindow.MORNING
        else EnergyPreference.LOW
    )

    return [
        ScheduleBlock(
            title=title,
            start=start,
            end=start + timedelta(minutes=duration_minutes),
            type=BlockType.PERSONAL,
            priority=Priority.MEDIUM,
            is_flexible=True,
            flexibility_score=flexibility_score,
            energy_level=energy,
            category=HABIT_CATEGORY,
            source=BlockSource.AUTO,
        )
        for start in habit_occurrences(now, frequency, preferred_time, horizon_days)
    ]


def schedule_habit(
    store: ScheduleStore,
    title: str,
    duration_minutes: int,
    now: datetime,
    frequency: Frequency | str = Frequency.DAILY,
    preferred_time: HabitWindow | str = HabitWindow.MORNING,
    flexibility_score: int = 60,
    horizon_days: int = 14,
) -> list[ScheduleBlock]:
    """Insert a habit's occurrences without checking for overlaps."""
    blocks = store.insert_many(
        build_habit_blocks(
            title,
            duration_minutes,
            now,
            frequency,
            preferred_time,
            flexibility_score,
            horizon_days,
        )
    )
    logger.info("Scheduled habit %r: %d occurrences", title, len(blocks))
    return blocks
