"""AutoScheduler: one store plus every service that reads or writes it."""

from __future__ import annotations

from datetime import datetime

from autoscheduler.config import SchedulerSettings
from autoscheduler.domain.bus import EventBus
from autoscheduler.domain.energy import EnergyModel
from autoscheduler.domain.handlers import HandlerRegistry
from autoscheduler.domain.models import (
    ConflictResolution,
    EnergyPattern,
    EnergyPreference,
    FocusWindow,
    Frequency,
    HabitWindow,
    Priority,
    RescheduleAction,
    ScheduleBlock,
    ScheduleEfficiency,
    SlotCandidate,
)
from autoscheduler.repos.memory import ActionRepository, HistoryRepository, ScheduleStore
from autoscheduler.services.conflicts import detect_conflicts
from autoscheduler.services.efficiency import schedule_efficiency
from autoscheduler.services.focus import protect_focus_time
from autoscheduler.services.habits import schedule_habit
from autoscheduler.services.rescheduler import Rescheduler
from autoscheduler.services.slots import Clock, SlotFinder, local_now
from autoscheduler.services.tasks import auto_schedule_task


class AutoScheduler:
    """Library entry point.

    Read-then-decide operations (slot search followed by insert, conflict
    refresh followed by moves) run under the store lock, so a single
    instance may be shared between threads.
    """

    def __init__(
        self,
        settings: SchedulerSettings | None = None,
        energy: EnergyModel | None = None,
        clock: Clock = local_now,
    ) -> None:
        self.settings = settings or SchedulerSettings()
        self.clock = clock
        self.bus = EventBus()
        self.store = ScheduleStore(self.bus)
        self.action_repo = ActionRepository()
        self.history_repo = HistoryRepository()
        self.energy = energy or EnergyModel(required_hours=self.settings.search_hours)
        self.finder = SlotFinder(self.store, self.energy, self.settings, self.now)
        self.rescheduler = Rescheduler(self.store, self.action_repo)
        self.handlers = HandlerRegistry(
            bus=self.bus,
            store=self.store,
            action_repo=self.action_repo,
            history_repo=self.history_repo,
        )

    def now(self) -> datetime:
        # Looked up on every call so a replaced ``clock`` reaches the finder too.
        return self.clock()

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def add_block(self, block: ScheduleBlock) -> ScheduleBlock:
        return self.store.insert(block)

    def remove_block(self, block_id: str) -> ScheduleBlock | None:
        return self.store.remove(block_id)

    @property
    def blocks(self) -> list[ScheduleBlock]:
        return self.store.list_all()

    def subscribe(self, event_type: type, handler) -> None:
        self.store.subscribe(event_type, handler)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def find_optimal_slot(
        self,
        duration_minutes: int,
        priority: Priority | str,
        preferred_energy: EnergyPreference | str,
        deadline: datetime | None = None,
    ) -> SlotCandidate | None:
        return self.finder.find_optimal_slot(
            duration_minutes, priority, preferred_energy, deadline
        )

    def auto_schedule_task(
        self,
        title: str,
        duration_minutes: int,
        priority: Priority | str = Priority.MEDIUM,
        deadline: datetime | None = None,
    ) -> ScheduleBlock | None:
        with self.store.lock:
            return auto_schedule_task(
                title,
                duration_minutes,
                priority,
                finder=self.finder,
                store=self.store,
                settings=self.settings,
                deadline=deadline,
            )

    def protect_focus_time(
        self,
        hours_per_day: float | None = None,
        preferred_time: FocusWindow | str | None = None,
    ) -> list[ScheduleBlock]:
        if hours_per_day is None:
            hours_per_day = self.settings.focus_hours_per_day
        return protect_focus_time(
            self.store,
            self.now(),
            hours_per_day=hours_per_day,
            preferred_time=preferred_time or self.settings.focus_preferred_time,
            days=self.settings.focus_days,
        )

    def schedule_habit(
        self,
        title: str,
        duration_minutes: int,
        frequency: Frequency | str = Frequency.DAILY,
        preferred_time: HabitWindow | str = HabitWindow.MORNING,
        flexibility_score: int = 60,
    ) -> list[ScheduleBlock]:
        return schedule_habit(
            self.store,
            title,
            duration_minutes,
            self.now(),
            frequency=frequency,
            preferred_time=preferred_time,
            flexibility_score=flexibility_score,
            horizon_days=self.settings.habit_horizon_days,
        )

    # ------------------------------------------------------------------
    # Conflicts and rescheduling
    # ------------------------------------------------------------------

    def detect_conflicts(self) -> list[ConflictResolution]:
        """Refresh conflicts from the current schedule and register their actions."""
        return self.rescheduler.refresh_conflicts()

    @property
    def conflicts(self) -> list[ConflictResolution]:
        return self.rescheduler.conflicts

    @property
    def pending_actions(self) -> list[RescheduleAction]:
        return self.action_repo.list_pending()

    def apply_reschedule(self, action_id: str) -> RescheduleAction | None:
        return self.rescheduler.apply_reschedule(action_id)

    def reject_reschedule(self, action_id: str) -> RescheduleAction | None:
        return self.rescheduler.reject_reschedule(action_id)

    def auto_resolve_conflicts(self) -> list[ConflictResolution]:
        return self.rescheduler.auto_resolve_conflicts()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def schedule_efficiency(self) -> ScheduleEfficiency:
        blocks = self.store.snapshot()
        return schedule_efficiency(blocks, detect_conflicts(blocks), self.now().date())

    def get_energy_level(self, moment: datetime | None = None) -> EnergyPattern:
        return self.energy.pattern_for(moment or self.now())
