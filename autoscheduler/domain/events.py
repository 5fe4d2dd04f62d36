"""Domain events emitted when the schedule changes."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class BlockInserted(BaseModel):
    """Fired when a block is added to the store."""

    block_id: str


class BlockMoved(BaseModel):
    """Fired when a block's interval changes."""

    block_id: str
    previous_start: datetime
    previous_end: datetime
    start: datetime
    end: datetime


class BlockRemoved(BaseModel):
    """Fired when a caller removes a block."""

    block_id: str
    title: str


class RescheduleApplied(BaseModel):
    """Fired after a reschedule action has moved its block."""

    action_id: str
    block_id: str


class RescheduleRejected(BaseModel):
    """Fired when a reschedule action is rejected."""

    action_id: str
    block_id: str


class ConflictsResolved(BaseModel):
    """Fired once per auto-resolution batch."""

    conflict_ids: list[str]
    action_ids: list[str]


class SlotUnavailable(BaseModel):
    """Fired when a task could not be placed inside its search window."""

    title: str
    duration_minutes: int
    deadline: datetime | None = None
