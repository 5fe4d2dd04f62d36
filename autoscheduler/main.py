"""FastAPI application: HTTP adapter over a single AutoScheduler."""

from __future__ import annotations

from datetime import datetime

from fastapi import FastAPI, HTTPException

from autoscheduler.config import load_settings
from autoscheduler.domain.models import (
    ActionStatus,
    AutoScheduleTaskRequest,
    ConflictResolution,
    EnergyPattern,
    ProtectFocusTimeRequest,
    RescheduleAction,
    ScheduleBlock,
    ScheduleEfficiency,
    ScheduleHabitRequest,
    ScheduleHistoryEntry,
)
from autoscheduler.engine import AutoScheduler

app = FastAPI(title="Auto Scheduler")

# ── Singleton (created at import time for simplicity) ────────────────
scheduler = AutoScheduler(settings=load_settings())


def _get_block_or_404(block_id: str) -> ScheduleBlock:
    block = scheduler.store.get(block_id)
    if block is None:
        raise HTTPException(status_code=404, detail="Block not found")
    return block


def _get_pending_action(action_id: str) -> RescheduleAction:
    action = scheduler.action_repo.get(action_id)
    if action is None:
        raise HTTPException(status_code=404, detail="Reschedule action not found")
    if action.status != ActionStatus.PENDING:
        raise HTTPException(
            status_code=400,
            detail=f"Reschedule action is already {action.status}",
        )
    return action


# ── Blocks ────────────────────────────────────────────────────────────


@app.get("/blocks", response_model=list[ScheduleBlock])
def list_blocks() -> list[ScheduleBlock]:
    """Return every block, ordered by start time."""
    return sorted(scheduler.blocks, key=lambda b: (b.start, b.end))


@app.post("/blocks", response_model=ScheduleBlock, status_code=201)
def add_block(block: ScheduleBlock) -> ScheduleBlock:
    """Insert a caller-supplied block (e.g. from an external calendar)."""
    try:
        return scheduler.add_block(block)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@app.get("/blocks/{block_id}", response_model=ScheduleBlock)
def get_block(block_id: str) -> ScheduleBlock:
    return _get_block_or_404(block_id)


@app.delete("/blocks/{block_id}", response_model=ScheduleBlock)
def remove_block(block_id: str) -> ScheduleBlock:
    _get_block_or_404(block_id)
    removed = scheduler.remove_block(block_id)
    if removed is None:
        raise HTTPException(status_code=404, detail="Block not found")
    return removed


@app.get("/blocks/{block_id}/history", response_model=list[ScheduleHistoryEntry])
def block_history(block_id: str) -> list[ScheduleHistoryEntry]:
    """Return the block's activity history, oldest first."""
    entries = scheduler.history_repo.list_for_block(block_id)
    if not entries and scheduler.store.get(block_id) is None:
        raise HTTPException(status_code=404, detail="Block not found")
    return entries


# ── Planning ──────────────────────────────────────────────────────────


@app.post("/tasks/auto-schedule", response_model=ScheduleBlock, status_code=201)
def auto_schedule_task(body: AutoScheduleTaskRequest) -> ScheduleBlock:
    """Place a task at the best free slot before its deadline."""
    block = scheduler.auto_schedule_task(
        body.title, body.duration_minutes, body.priority, body.deadline
    )
    if block is None:
        raise HTTPException(
            status_code=409,
            detail="No available slot found; try adjusting the deadline or duration",
        )
    return block


@app.post("/focus-time", response_model=list[ScheduleBlock], status_code=201)
def protect_focus_time(body: ProtectFocusTimeRequest) -> list[ScheduleBlock]:
    return scheduler.protect_focus_time(body.hours_per_day, body.preferred_time)


@app.post("/habits", response_model=list[ScheduleBlock], status_code=201)
def schedule_habit(body: ScheduleHabitRequest) -> list[ScheduleBlock]:
    return scheduler.schedule_habit(
        body.title,
        body.duration_minutes,
        body.frequency,
        body.preferred_time,
        body.flexibility_score,
    )


# ── Conflicts and reschedule actions ──────────────────────────────────


@app.get("/conflicts", response_model=list[ConflictResolution])
def list_conflicts() -> list[ConflictResolution]:
    """Recompute conflicts; their actions become the pending actions."""
    return scheduler.detect_conflicts()


@app.post("/conflicts/auto-resolve")
def auto_resolve_conflicts() -> dict:
    resolved = scheduler.auto_resolve_conflicts()
    return {
        "resolved": len(resolved),
        "conflict_ids": [c.conflict_id for c in resolved],
    }


@app.get("/actions", response_model=list[RescheduleAction])
def list_actions(status: ActionStatus | None = None) -> list[RescheduleAction]:
    actions = scheduler.action_repo.list_all()
    if status is not None:
        actions = [a for a in actions if a.status == status]
    return actions


@app.post("/actions/{action_id}/apply", response_model=RescheduleAction)
def apply_reschedule(action_id: str) -> RescheduleAction:
    _get_pending_action(action_id)
    action = scheduler.apply_reschedule(action_id)
    if action is None:
        raise HTTPException(
            status_code=409,
            detail="Block to reschedule was removed or moved since the action was proposed",
        )
    return action


@app.post("/actions/{action_id}/reject", response_model=RescheduleAction)
def reject_reschedule(action_id: str) -> RescheduleAction:
    _get_pending_action(action_id)
    action = scheduler.reject_reschedule(action_id)
    if action is None:
        raise HTTPException(status_code=409, detail="Reschedule action is no longer pending")
    return action


# ── Reporting ─────────────────────────────────────────────────────────


@app.get("/efficiency", response_model=ScheduleEfficiency)
def schedule_efficiency() -> ScheduleEfficiency:
    return scheduler.schedule_efficiency()


@app.get("/energy", response_model=EnergyPattern)
def energy_level(at: datetime | None = None) -> EnergyPattern:
    """Energy pattern for *at*, or for the current time when omitted."""
    return scheduler.get_energy_level(at)
