"""Read-only schedule metrics for display."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sized
from datetime import date

from autoscheduler.domain.models import BlockType, ScheduleBlock, ScheduleEfficiency

_FOCUS_TYPES = frozenset({BlockType.FOCUS, BlockType.TASK})


def schedule_efficiency(
    blocks: Iterable[ScheduleBlock],
    conflicts: Sized,
    today: date,
) -> ScheduleEfficiency:
    """Share of today's scheduled minutes spent on focus and task blocks."""
    todays = [b for b in blocks if b.start.date() == today]
    total = sum(b.duration_minutes for b in todays)
    focus = sum(b.duration_minutes for b in todays if b.type in _FOCUS_TYPES)
    return ScheduleEfficiency(
        total_scheduled=total,
        focus_time=focus,
        efficiency=math.floor(focus / total * 100 + 0.5) if total > 0 else 0,
        conflicts=len(conflicts),
    )
