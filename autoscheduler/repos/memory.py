"""In-memory repositories for schedule blocks, reschedule actions and history."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime

from autoscheduler.domain.bus import EventBus
from autoscheduler.domain.events import BlockInserted, BlockMoved, BlockRemoved
from autoscheduler.domain.models import (
    ActionStatus,
    RescheduleAction,
    ScheduleBlock,
    ScheduleHistoryEntry,
)

logger = logging.getLogger(__name__)


class ScheduleStore:
    """Dict-backed store for ScheduleBlock instances, keyed by id.

    The single point of truth for the schedule. Every mutation runs under
    one re-entrant lock and is announced on the store's ``bus`` once the
    lock is released. Readers that need a stable view should use
    :meth:`snapshot`.
    """

    def __init__(self, bus: EventBus | None = None) -> None:
        self.bus = bus if bus is not None else EventBus()
        self._store: dict[str, ScheduleBlock] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def subscribe(self, event_type: type, handler: Callable) -> None:
        """Register an observer for one of the store's domain events."""
        self.bus.subscribe(event_type, handler)

    def insert(self, block: ScheduleBlock) -> ScheduleBlock:
        with self._lock:
            if block.id in self._store:
                raise ValueError(f"Block {block.id} already exists")
            self._store[block.id] = block
        logger.debug("Inserted block %s (%s)", block.id, block.title)
        self.bus.publish(BlockInserted(block_id=block.id))
        return block

    def insert_many(self, blocks: Iterable[ScheduleBlock]) -> list[ScheduleBlock]:
        """Insert a batch atomically: either every block lands or none does."""
        batch = list(blocks)
        with self._lock:
            ids = [b.id for b in batch]
            duplicates = {i for i in ids if i in self._store or ids.count(i) > 1}
            if duplicates:
                raise ValueError(f"Blocks already exist: {sorted(duplicates)}")
            for block in batch:
                self._store[block.id] = block
        logger.debug("Inserted %d blocks", len(batch))
        for block in batch:
            self.bus.publish(BlockInserted(block_id=block.id))
        return batch

    def get(self, block_id: str) -> ScheduleBlock | None:
        return self._store.get(block_id)

    def list_all(self) -> list[ScheduleBlock]:
        return list(self._store.values())

    def snapshot(self) -> list[ScheduleBlock]:
        """Return deep copies of every block, safe to read without the lock."""
        with self._lock:
            return [b.model_copy(deep=True) for b in self._store.values()]

    def update(
        self, block_id: str, start: datetime, end: datetime
    ) -> ScheduleBlock | None:
        """Move a block to a new interval. Returns ``None`` for unknown ids."""
        moved = self.move_many([(block_id, start, end)])
        return moved[0] if moved else None

    def move_many(
        self, moves: Iterable[tuple[str, datetime, datetime]]
    ) -> list[ScheduleBlock]:
        """Apply several interval changes as one batch.

        All target intervals are validated before any block is touched.
        Unknown block ids are skipped. When a block appears more than once
        the last move wins.
        """
        events: list[BlockMoved] = []
        moved: list[ScheduleBlock] = []
        with self._lock:
            planned = []
            for block_id, start, end in moves:
                block = self._store.get(block_id)
                if block is None:
                    logger.warning("Cannot move unknown block %s", block_id)
                    continue
                # Validates the new interval (end after start) before mutating.
                ScheduleBlock.model_validate(
                    {**block.model_dump(), "start": start, "end": end}
                )
                planned.append((block, start, end))

            for block, start, end in planned:
                events.append(
                    BlockMoved(
                        block_id=block.id,
                        previous_start=block.start,
                        previous_end=block.end,
                        start=start,
                        end=end,
                    )
                )
                block.start = start
                block.end = end
                moved.append(block)

        for event in events:
            self.bus.publish(event)
        return moved

    def remove(self, block_id: str) -> ScheduleBlock | None:
        with self._lock:
            block = self._store.pop(block_id, None)
        if block is not None:
            logger.debug("Removed block %s", block_id)
            self.bus.publish(BlockRemoved(block_id=block_id, title=block.title))
        return block

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class ActionRepository:
    """Dict-backed store for RescheduleAction instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, RescheduleAction] = {}

    def add(self, action: RescheduleAction) -> None:
        self._store[action.id] = action

    def add_many(self, actions: Iterable[RescheduleAction]) -> None:
        for action in actions:
            self._store[action.id] = action

    def get(self, action_id: str) -> RescheduleAction | None:
        return self._store.get(action_id)

    def list_all(self) -> list[RescheduleAction]:
        return list(self._store.values())

    def list_pending(self) -> list[RescheduleAction]:
        return [a for a in self._store.values() if a.status == ActionStatus.PENDING]

    def update_status(self, action_id: str, status: ActionStatus) -> None:
        action = self._store.get(action_id)
        if action is not None:
            action.status = status

    def discard_pending(self) -> int:
        """Drop every still-pending action. Applied and rejected ones are kept."""
        stale = [aid for aid, a in self._store.items() if a.status == ActionStatus.PENDING]
        for aid in stale:
            del self._store[aid]
        return len(stale)

    def clear(self) -> None:
        self._store.clear()


class HistoryRepository:
    """List-backed store for ScheduleHistoryEntry instances."""

    def __init__(self) -> None:
        self._entries: list[ScheduleHistoryEntry] = []

    def add(self, entry: ScheduleHistoryEntry) -> None:
        self._entries.append(entry)

    def list_for_block(self, block_id: str) -> list[ScheduleHistoryEntry]:
        return sorted(
            [e for e in self._entries if e.block_id == block_id],
            key=lambda e: e.timestamp,
        )

    def clear(self) -> None:
        self._entries.clear()
