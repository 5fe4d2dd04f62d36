"""Hour-of-day energy table used to bias slot scoring."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from autoscheduler.domain.models import EnergyPattern, EnergyTier

DEFAULT_ENERGY_PATTERNS: list[EnergyPattern] = [
    EnergyPattern(hour=6, level=EnergyTier.LOW, best_for=["routine", "light-tasks"]),
    EnergyPattern(hour=7, level=EnergyTier.MEDIUM, best_for=["planning", "emails"]),
    EnergyPattern(hour=8, level=EnergyTier.HIGH, best_for=["creative", "complex-tasks"]),
    EnergyPattern(hour=9, level=EnergyTier.PEAK, best_for=["deep-work", "decisions"]),
    EnergyPattern(hour=10, level=EnergyTier.PEAK, best_for=["deep-work", "meetings"]),
    EnergyPattern(hour=11, level=EnergyTier.HIGH, best_for=["collaboration", "meetings"]),
    EnergyPattern(hour=12, level=EnergyTier.LOW, best_for=["break", "light-tasks"]),
    EnergyPattern(hour=13, level=EnergyTier.RECOVERY, best_for=["admin", "routine"]),
    EnergyPattern(hour=14, level=EnergyTier.MEDIUM, best_for=["meetings", "collaboration"]),
    EnergyPattern(hour=15, level=EnergyTier.HIGH, best_for=["creative", "problem-solving"]),
    EnergyPattern(hour=16, level=EnergyTier.MEDIUM, best_for=["wrap-up", "planning"]),
    EnergyPattern(hour=17, level=EnergyTier.LOW, best_for=["admin", "emails"]),
    EnergyPattern(hour=18, level=EnergyTier.RECOVERY, best_for=["personal", "exercise"]),
]

# Hours missing from the table fall back to the lowest tier.
FALLBACK_TIER = EnergyTier.RECOVERY


class EnergyModel:
    """Read-only mapping from hour (0-23) to an energy tier.

    ``required_hours`` lists the hours a caller is going to look up during
    slot search; a table that leaves any of them uncovered is rejected.
    """

    def __init__(
        self,
        patterns: Iterable[EnergyPattern] | None = None,
        required_hours: Iterable[int] = range(8, 19),
    ) -> None:
        table: dict[int, EnergyPattern] = {}
        for pattern in DEFAULT_ENERGY_PATTERNS if patterns is None else patterns:
            if pattern.hour in table:
                raise ValueError(f"Duplicate energy pattern for hour {pattern.hour}")
            table[pattern.hour] = pattern

        missing = sorted(set(required_hours) - set(table))
        if missing:
            raise ValueError(f"Energy table does not cover hours {missing}")
        self._table = table

    @property
    def patterns(self) -> list[EnergyPattern]:
        return [self._table[h] for h in sorted(self._table)]

    def level_for_hour(self, hour: int) -> EnergyTier:
        pattern = self._table.get(hour)
        return pattern.level if pattern else FALLBACK_TIER

    def pattern_for(self, moment: datetime) -> EnergyPattern:
        """Return the pattern for the hour of ``moment``."""
        pattern = self._table.get(moment.hour)
        if pattern is None:
            return EnergyPattern(hour=moment.hour, level=FALLBACK_TIER)
        return pattern
