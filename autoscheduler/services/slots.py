"""Service for finding the best free hour slot for a piece of work."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, time, timedelta

from dateutil import tz

from autoscheduler.config import SchedulerSettings
from autoscheduler.domain.energy import EnergyModel
from autoscheduler.domain.models import (
    EnergyPreference,
    EnergyTier,
    Priority,
    SlotCandidate,
)
from autoscheduler.repos.memory import ScheduleStore
from autoscheduler.services.conflicts import find_conflicts

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

BASE_SCORE = 50.0
URGENCY_WINDOW_HOURS = 20

# preference -> (tiers that earn the bonus, bonus)
_ENERGY_BONUS: dict[EnergyPreference, tuple[frozenset[EnergyTier], float]] = {
    EnergyPreference.HIGH: (frozenset({EnergyTier.PEAK, EnergyTier.HIGH}), 30.0),
    EnergyPreference.MEDIUM: (frozenset({EnergyTier.MEDIUM}), 20.0),
    EnergyPreference.LOW: (frozenset({EnergyTier.LOW, EnergyTier.RECOVERY}), 25.0),
}


def local_now() -> datetime:
    """Wall-clock time in the host's local zone.

    The zone carries daylight-saving rules, so hours of day stay fixed when
    days are added across a transition.
    """
    return datetime.now(tz.tzlocal())


def score_slot(
    slot_start: datetime,
    now: datetime,
    tier: EnergyTier,
    priority: Priority,
    preferred_energy: EnergyPreference,
) -> float:
    """Score one candidate start time.

    Base 50, plus an energy bonus when the hour's tier suits the preferred
    energy, plus up to 20 points for urgent work that can start soon.
    """
    score = BASE_SCORE
    tiers, bonus = _ENERGY_BONUS[preferred_energy]
    if tier in tiers:
        score += bonus

    if priority.is_urgent:
        minutes_from_now = int((slot_start - now).total_seconds() // 60)
        score += max(0.0, URGENCY_WINDOW_HOURS - minutes_from_now / 60)
    return score


class SlotFinder:
    """Searches a bounded window for the highest-scoring free interval.

    Read-only with respect to the store. ``clock`` supplies "now" so the
    search is reproducible under test.
    """

    def __init__(
        self,
        store: ScheduleStore,
        energy: EnergyModel | None = None,
        settings: SchedulerSettings | None = None,
        clock: Clock = local_now,
    ) -> None:
        self.store = store
        self.settings = settings or SchedulerSettings()
        self.energy = energy or EnergyModel(required_hours=self.settings.search_hours)
        self.clock = clock

    def find_optimal_slot(
        self,
        duration_minutes: int,
        priority: Priority | str,
        preferred_energy: EnergyPreference | str,
        deadline: datetime | None = None,
    ) -> SlotCandidate | None:
        """Return the best free slot, or ``None`` when the window has no room.

        Candidates start on the hour for every searched hour of every date
        from today through the window end (the deadline, or the configured
        horizon). Candidates in the past, overlapping an existing block,
        ending after an explicit deadline, or starting after the horizon
        are skipped. Ties keep the earliest candidate.
        """
        if duration_minutes <= 0:
            raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")
        if deadline is not None and deadline.tzinfo is None:
            raise ValueError("deadline must be timezone-aware")
        priority = Priority(priority)
        preferred_energy = EnergyPreference(preferred_energy)

        now = self.clock()
        search_end = deadline or now + timedelta(days=self.settings.search_horizon_days)
        duration = timedelta(minutes=duration_minutes)
        blocks = self.store.snapshot()

        best: SlotCandidate | None = None
        current_day = now.date()
        last_day = search_end.astimezone(now.tzinfo).date()
        while current_day <= last_day:
            for hour in self.settings.search_hours:
                slot_start = datetime.combine(current_day, time(hour), tzinfo=now.tzinfo)
                slot_end = slot_start + duration

                if slot_start < now:
                    continue
                if deadline is not None:
                    if slot_end > deadline:
                        continue
                elif slot_start >= search_end:
                    continue
                if find_conflicts(slot_start, slot_end, blocks):
                    continue

                score = score_slot(
                    slot_start,
                    now,
                    self.energy.level_for_hour(hour),
                    priority,
                    preferred_energy,
                )
                if best is None or score > best.score:
                    best = SlotCandidate(start=slot_start, end=slot_end, score=score)

            current_day += timedelta(days=1)

        if best is None:
            logger.info(
                "No free %d-minute slot before %s", duration_minutes, search_end.isoformat()
            )
        return best
