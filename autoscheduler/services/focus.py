"""Service for declaring protected deep-work blocks."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from autoscheduler.domain.models import (
    BlockSource,
    BlockType,
    EnergyPreference,
    FocusWindow,
    Priority,
    ScheduleBlock,
)
from autoscheduler.repos.memory import ScheduleStore

logger = logging.getLogger(__name__)

FOCUS_TITLE = "Protected Focus Time"
FOCUS_FLEXIBILITY = 20

_START_HOURS = {
    FocusWindow.MORNING: 9,
    FocusWindow.AFTERNOON: 14,
}


def build_focus_blocks(
    now: datetime,
    hours_per_day: float = 2,
    preferred_time: FocusWindow | str = FocusWindow.MORNING,
    days: int = 5,
) -> list[ScheduleBlock]:
    """One fixed focus block per day, starting today."""
    if hours_per_day <= 0:
        raise ValueError(f"hours_per_day must be positive, got {hours_per_day}")
    start_hour = _START_HOURS[FocusWindow(preferred_time)]

    blocks = []
    for day in range(days):
        start = (now + timedelta(days=day)).replace(
            hour=start_hour, minute=0, second=0, microsecond=0
        )
        blocks.append(
            ScheduleBlock(
                title=FOCUS_TITLE,
                start=start,
                end=start + timedelta(hours=hours_per_day),
                type=BlockType.FOCUS,
                priority=Priority.HIGH,
                is_flexible=False,
                flexibility_score=FOCUS_FLEXIBILITY,
                energy_level=EnergyPreference.HIGH,
                source=BlockSource.AUTO,
            )
        )
    return blocks


def protect_focus_time(
    store: ScheduleStore,
    now: datetime,
    hours_per_day: float = 2,
    preferred_time: FocusWindow | str = FocusWindow.MORNING,
    days: int = 5,
) -> list[ScheduleBlock]:
    """Insert the focus blocks without checking for overlaps.

    Protecting time is a declaration; any overlaps it creates show up in the
    next conflict refresh.
    """
    blocks = store.insert_many(build_focus_blocks(now, hours_per_day, preferred_time, days))
    logger.info("Protected %sh of focus time on %d days", hours_per_day, len(blocks))
    return blocks
