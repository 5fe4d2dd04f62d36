"""Service for placing ad hoc tasks into the best available slot."""

from __future__ import annotations

import logging
from datetime import datetime

from autoscheduler.config import SchedulerSettings
from autoscheduler.domain.events import SlotUnavailable
from autoscheduler.domain.models import (
    BlockSource,
    BlockType,
    EnergyPreference,
    Priority,
    ScheduleBlock,
)
from autoscheduler.repos.memory import ScheduleStore
from autoscheduler.services.slots import SlotFinder

logger = logging.getLogger(__name__)


def preferred_energy_for(priority: Priority) -> EnergyPreference:
    return EnergyPreference.HIGH if priority.is_urgent else EnergyPreference.MEDIUM


def auto_schedule_task(
    title: str,
    duration_minutes: int,
    priority: Priority | str,
    finder: SlotFinder,
    store: ScheduleStore,
    settings: SchedulerSettings | None = None,
    deadline: datetime | None = None,
) -> ScheduleBlock | None:
    """Find a slot for a task and insert it as an auto-sourced block.

    Returns the inserted block, or ``None`` when no slot is free before the
    deadline. In that case nothing is inserted and ``SlotUnavailable`` is
    published on the store's bus so the caller can relax and retry.
    """
    settings = settings or SchedulerSettings()
    priority = Priority(priority)
    energy = preferred_energy_for(priority)

    slot = finder.find_optimal_slot(duration_minutes, priority, energy, deadline)
    if slot is None:
        logger.warning("No available slot for task %r (%d min)", title, duration_minutes)
        store.bus.publish(
            SlotUnavailable(title=title, duration_minutes=duration_minutes, deadline=deadline)
        )
        return None

    block = ScheduleBlock(
        title=title,
        start=slot.start,
        end=slot.end,
        type=BlockType.TASK,
        priority=priority,
        is_flexible=priority != Priority.CRITICAL,
        flexibility_score=settings.priority_flexibility[priority],
        energy_level=energy,
        source=BlockSource.AUTO,
    )
    store.insert(block)
    logger.info("Scheduled %r at %s (score %.1f)", title, slot.start.isoformat(), slot.score)
    return block
