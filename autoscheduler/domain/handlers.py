"""Schedule event handlers that record a per-block activity history."""

from __future__ import annotations

from autoscheduler.domain.bus import EventBus
from autoscheduler.domain.events import (
    BlockInserted,
    BlockMoved,
    BlockRemoved,
    RescheduleApplied,
    RescheduleRejected,
)
from autoscheduler.domain.models import HistoryEntryType, ScheduleHistoryEntry
from autoscheduler.repos.memory import ActionRepository, HistoryRepository, ScheduleStore


class HandlerRegistry:
    """Wires history handlers to the bus with access to the repositories."""

    def __init__(
        self,
        bus: EventBus,
        store: ScheduleStore,
        action_repo: ActionRepository,
        history_repo: HistoryRepository,
    ) -> None:
        self.bus = bus
        self.store = store
        self.action_repo = action_repo
        self.history_repo = history_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BlockInserted, self.on_block_inserted)
        self.bus.subscribe(BlockMoved, self.on_block_moved)
        self.bus.subscribe(BlockRemoved, self.on_block_removed)
        self.bus.subscribe(RescheduleApplied, self.on_reschedule_applied)
        self.bus.subscribe(RescheduleRejected, self.on_reschedule_rejected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_block_inserted(self, event: BlockInserted) -> None:
        block = self.store.get(event.block_id)
        if block is None:
            return

        self.history_repo.add(
            ScheduleHistoryEntry(
                block_id=event.block_id,
                type=HistoryEntryType.INSERTED,
                payload={
                    "start": block.start.isoformat(),
                    "end": block.end.isoformat(),
                    "source": block.source.value,
                },
            )
        )

    def on_block_moved(self, event: BlockMoved) -> None:
        self.history_repo.add(
            ScheduleHistoryEntry(
                block_id=event.block_id,
                type=HistoryEntryType.MOVED,
                payload={
                    "from": [event.previous_start.isoformat(), event.previous_end.isoformat()],
                    "to": [event.start.isoformat(), event.end.isoformat()],
                },
            )
        )

    def on_block_removed(self, event: BlockRemoved) -> None:
        self.history_repo.add(
            ScheduleHistoryEntry(
                block_id=event.block_id,
                type=HistoryEntryType.REMOVED,
                payload={"title": event.title},
            )
        )

    def on_reschedule_applied(self, event: RescheduleApplied) -> None:
        action = self.action_repo.get(event.action_id)
        self.history_repo.add(
            ScheduleHistoryEntry(
                block_id=event.block_id,
                type=HistoryEntryType.RESCHEDULE_APPLIED,
                payload={
                    "action_id": event.action_id,
                    "reason": action.reason if action else None,
                },
            )
        )

    def on_reschedule_rejected(self, event: RescheduleRejected) -> None:
        self.history_repo.add(
            ScheduleHistoryEntry(
                block_id=event.block_id,
                type=HistoryEntryType.RESCHEDULE_REJECTED,
                payload={"action_id": event.action_id},
            )
        )
