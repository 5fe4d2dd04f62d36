"""Service for detecting overlapping schedule blocks and proposing moves."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from autoscheduler.domain.models import (
    ActionImpact,
    ConflictResolution,
    Priority,
    RescheduleAction,
    ScheduleBlock,
)


def find_conflicts(
    new_start: datetime,
    new_end: datetime,
    existing_blocks: Iterable[ScheduleBlock],
) -> list[ScheduleBlock]:
    """Return existing blocks that overlap with the given time range.

    Overlap rule: conflict if new_start < existing.end AND existing.start < new_end.
    Exact boundary touches (end == start) are NOT considered conflicts.
    """
    return [block for block in existing_blocks if block.overlaps(new_start, new_end)]


def _choose_mover(a: ScheduleBlock, b: ScheduleBlock) -> tuple[ScheduleBlock, ScheduleBlock]:
    """Return ``(mover, anchor)`` for an overlapping pair.

    The more flexible block moves. On equal flexibility the lower-priority
    block moves; on a full tie the later block in scan order (``b``) moves.
    """
    if a.flexibility_score != b.flexibility_score:
        return (a, b) if a.flexibility_score > b.flexibility_score else (b, a)
    if a.priority.rank != b.priority.rank:
        return (a, b) if a.priority.rank < b.priority.rank else (b, a)
    return b, a


def _resolution_for(a: ScheduleBlock, b: ScheduleBlock) -> ConflictResolution:
    mover, anchor = _choose_mover(a, b)
    new_start = anchor.end
    new_end = new_start + (mover.end - mover.start)

    action = RescheduleAction(
        block_id=mover.id,
        original_start=mover.start,
        original_end=mover.end,
        new_start=new_start,
        new_end=new_end,
        reason=f'Conflict with "{anchor.title}"',
        impact=ActionImpact.HIGH if mover.priority == Priority.CRITICAL else ActionImpact.LOW,
    )
    return ConflictResolution(
        blocks=[a, b],
        suggestion=f'Move "{mover.title}" to after "{anchor.title}"',
        actions=[action],
        auto_resolvable=mover.is_flexible,
    )


def detect_conflicts(blocks: Iterable[ScheduleBlock]) -> list[ConflictResolution]:
    """Scan every pair of blocks and return one resolution per overlap.

    Blocks are ordered by (start, end, id) first so identical inputs always
    produce the same pairs, movers and target intervals. Generated
    conflict/action ids differ between calls. The input is never mutated.
    """
    ordered = sorted(blocks, key=lambda blk: (blk.start, blk.end, blk.id))
    resolutions: list[ConflictResolution] = []

    for i, a in enumerate(ordered):
        for b in ordered[i + 1 :]:
            # Sorted by start: once b starts at/after a ends, nothing later overlaps a.
            if b.start >= a.end:
                break
            if a.overlaps(b.start, b.end):
                resolutions.append(_resolution_for(a, b))

    return resolutions
