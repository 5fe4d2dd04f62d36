"""Service for applying, rejecting and batch-resolving reschedule actions."""

from __future__ import annotations

import logging

from autoscheduler.domain.events import (
    ConflictsResolved,
    RescheduleApplied,
    RescheduleRejected,
)
from autoscheduler.domain.models import ActionStatus, ConflictResolution, RescheduleAction
from autoscheduler.repos.memory import ActionRepository, ScheduleStore
from autoscheduler.services.conflicts import detect_conflicts

logger = logging.getLogger(__name__)


class Rescheduler:
    """The only component that moves blocks already in the store."""

    def __init__(self, store: ScheduleStore, action_repo: ActionRepository) -> None:
        self.store = store
        self.action_repo = action_repo
        self._conflicts: list[ConflictResolution] = []

    @property
    def conflicts(self) -> list[ConflictResolution]:
        """The conflict list from the last refresh (empty after a resolution pass)."""
        return list(self._conflicts)

    def refresh_conflicts(self) -> list[ConflictResolution]:
        """Recompute conflicts from the store and register their actions.

        Pending actions from earlier refreshes describe stale positions and
        are discarded; applied/rejected ones stay as history.
        """
        with self.store.lock:
            conflicts = detect_conflicts(self.store.snapshot())
            self.action_repo.discard_pending()
            for conflict in conflicts:
                self.action_repo.add_many(conflict.actions)
            self._conflicts = conflicts
        return list(conflicts)

    def _pending_action(self, action_id: str) -> RescheduleAction | None:
        action = self.action_repo.get(action_id)
        if action is None:
            logger.warning("Ignoring unknown reschedule action %s", action_id)
            return None
        if action.is_terminal:
            logger.warning(
                "Ignoring reschedule action %s: already %s", action_id, action.status
            )
            return None
        return action

    def apply_reschedule(self, action_id: str) -> RescheduleAction | None:
        """Move the action's block to its proposed interval.

        Unknown or terminal actions, and actions whose block has since been
        removed or moved away from ``original_start``/``original_end``, are
        reported and ignored. Returns the applied action or ``None`` for a
        no-op.
        """
        with self.store.lock:
            action = self._pending_action(action_id)
            if action is None:
                return None
            block = self.store.get(action.block_id)
            if block is None:
                logger.warning(
                    "Ignoring reschedule action %s: block %s no longer exists",
                    action_id,
                    action.block_id,
                )
                return None
            if (block.start, block.end) != (action.original_start, action.original_end):
                logger.warning(
                    "Ignoring reschedule action %s: block %s moved since it was proposed",
                    action_id,
                    action.block_id,
                )
                return None
            self.store.update(action.block_id, action.new_start, action.new_end)
            self.action_repo.update_status(action_id, ActionStatus.APPLIED)

        logger.info("Applied reschedule %s for block %s", action_id, action.block_id)
        self.store.bus.publish(RescheduleApplied(action_id=action_id, block_id=action.block_id))
        return action

    def reject_reschedule(self, action_id: str) -> RescheduleAction | None:
        """Mark the action rejected. No block is touched."""
        with self.store.lock:
            action = self._pending_action(action_id)
            if action is None:
                return None
            self.action_repo.update_status(action_id, ActionStatus.REJECTED)

        logger.info("Rejected reschedule %s", action_id)
        self.store.bus.publish(RescheduleRejected(action_id=action_id, block_id=action.block_id))
        return action

    def auto_resolve_conflicts(self) -> list[ConflictResolution]:
        """Apply every action of every auto-resolvable conflict as one batch.

        Conflicts are recomputed from the store first. Afterwards the held
        conflict list is cleared; the next refresh starts from the mutated
        schedule. Returns the conflicts that were resolved.
        """
        with self.store.lock:
            conflicts = self.refresh_conflicts()
            resolvable = [c for c in conflicts if c.auto_resolvable]
            actions = [a for c in resolvable for a in c.actions]

            moved_ids = {
                b.id
                for b in self.store.move_many(
                    (a.block_id, a.new_start, a.new_end) for a in actions
                )
            }
            for action in actions:
                if action.block_id in moved_ids:
                    self.action_repo.update_status(action.id, ActionStatus.APPLIED)
            self._conflicts = []

        logger.info(
            "Auto-resolved %d of %d conflicts (%d actions)",
            len(resolvable),
            len(conflicts),
            len(actions),
        )
        if resolvable:
            self.store.bus.publish(
                ConflictsResolved(
                    conflict_ids=[c.conflict_id for c in resolvable],
                    action_ids=[a.id for a in actions],
                )
            )
        return resolvable
