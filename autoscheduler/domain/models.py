"""Domain models for the scheduling and conflict-resolution engine."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import AwareDatetime, BaseModel, Field, model_validator


class BlockType(StrEnum):
    MEETING = "meeting"
    TASK = "task"
    FOCUS = "focus"
    BREAK = "break"
    PERSONAL = "personal"
    BLOCKED = "blocked"


class Priority(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric ordering: critical (3) > high > medium > low (0)."""
        return _PRIORITY_RANK[self]

    @property
    def is_urgent(self) -> bool:
        return self in (Priority.CRITICAL, Priority.HIGH)


_PRIORITY_RANK = {
    Priority.CRITICAL: 3,
    Priority.HIGH: 2,
    Priority.MEDIUM: 1,
    Priority.LOW: 0,
}


class EnergyPreference(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EnergyTier(StrEnum):
    PEAK = "peak"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    RECOVERY = "recovery"


class BlockSource(StrEnum):
    CALENDAR = "calendar"
    TASK = "task"
    HABIT = "habit"
    AUTO = "auto"


class ActionImpact(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionStatus(StrEnum):
    PENDING = "pending"
    APPLIED = "applied"
    REJECTED = "rejected"


class Frequency(StrEnum):
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"


class FocusWindow(StrEnum):
    MORNING = "morning"
    AFTERNOON = "afternoon"


class HabitWindow(StrEnum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class HistoryEntryType(StrEnum):
    INSERTED = "inserted"
    MOVED = "moved"
    REMOVED = "removed"
    RESCHEDULE_APPLIED = "reschedule_applied"
    RESCHEDULE_REJECTED = "reschedule_rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class ScheduleBlock(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    start: AwareDatetime
    end: AwareDatetime
    type: BlockType
    priority: Priority = Priority.MEDIUM
    is_flexible: bool = True
    flexibility_score: int = Field(default=50, ge=0, le=100)
    energy_level: EnergyPreference = EnergyPreference.MEDIUM
    category: str | None = None
    source: BlockSource = BlockSource.CALENDAR

    @model_validator(mode="after")
    def _end_after_start(self) -> ScheduleBlock:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    @property
    def duration_minutes(self) -> int:
        return _minutes_between(self.start, self.end)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open intersection test: touching boundaries do not overlap."""
        return start < self.end and self.start < end


class RescheduleAction(BaseModel):
    id: str = Field(default_factory=_new_id)
    block_id: str
    original_start: datetime
    original_end: datetime
    new_start: datetime
    new_end: datetime
    reason: str
    impact: ActionImpact = ActionImpact.LOW
    status: ActionStatus = ActionStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status != ActionStatus.PENDING


class ConflictResolution(BaseModel):
    conflict_id: str = Field(default_factory=_new_id)
    blocks: list[ScheduleBlock]
    suggestion: str
    actions: list[RescheduleAction] = Field(min_length=1)
    auto_resolvable: bool


class EnergyPattern(BaseModel):
    hour: int = Field(ge=0, le=23)
    level: EnergyTier
    best_for: list[str] = Field(default_factory=list)


class SlotCandidate(BaseModel):
    start: datetime
    end: datetime
    score: float


class ScheduleEfficiency(BaseModel):
    total_scheduled: int = 0
    focus_time: int = 0
    efficiency: int = 0
    conflicts: int = 0


class ScheduleHistoryEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    block_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    type: HistoryEntryType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request DTOs
# ---------------------------------------------------------------------------


class AutoScheduleTaskRequest(BaseModel):
    title: str
    duration_minutes: int = Field(gt=0)
    priority: Priority = Priority.MEDIUM
    deadline: AwareDatetime | None = None


class ProtectFocusTimeRequest(BaseModel):
    hours_per_day: int = Field(default=2, gt=0)
    preferred_time: FocusWindow = FocusWindow.MORNING


class ScheduleHabitRequest(BaseModel):
    title: str
    duration_minutes: int = Field(gt=0)
    frequency: Frequency = Frequency.DAILY
    preferred_time: HabitWindow = HabitWindow.MORNING
    flexibility_score: int = Field(default=60, ge=0, le=100)
