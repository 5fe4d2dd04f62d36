"""Engine configuration."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, model_validator

from autoscheduler.domain.models import FocusWindow, Priority

_ENV_PREFIX = "AUTOSCHEDULER_"


def _default_priority_flexibility() -> dict[Priority, int]:
    return {
        Priority.CRITICAL: 10,
        Priority.HIGH: 40,
        Priority.MEDIUM: 70,
        Priority.LOW: 70,
    }


class SchedulerSettings(BaseModel):
    focus_hours_per_day: int = Field(default=2, gt=0)
    focus_preferred_time: FocusWindow = FocusWindow.MORNING
    focus_days: int = Field(default=5, gt=0)
    habit_horizon_days: int = Field(default=14, gt=0)
    search_horizon_days: int = Field(default=7, gt=0)
    search_start_hour: int = Field(default=8, ge=0, le=23)
    search_end_hour: int = Field(default=18, ge=0, le=23)
    priority_flexibility: dict[Priority, int] = Field(
        default_factory=_default_priority_flexibility
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> SchedulerSettings:
        if self.search_end_hour < self.search_start_hour:
            raise ValueError("search_end_hour must not be before search_start_hour")
        missing = [p.value for p in Priority if p not in self.priority_flexibility]
        if missing:
            raise ValueError(f"priority_flexibility is missing {missing}")
        for priority, score in self.priority_flexibility.items():
            if not 0 <= score <= 100:
                raise ValueError(
                    f"flexibility score for {priority} must be within 0-100, got {score}"
                )
        return self

    @property
    def search_hours(self) -> range:
        return range(self.search_start_hour, self.search_end_hour + 1)


def load_settings(environ: dict[str, str] | None = None) -> SchedulerSettings:
    """Build settings from ``AUTOSCHEDULER_*`` environment variables.

    Only scalar settings are read from the environment; unset variables keep
    their defaults. ``AUTOSCHEDULER_SEARCH_HORIZON_DAYS=10`` sets
    ``search_horizon_days``.
    """
    env = os.environ if environ is None else environ
    values = {}
    for name in SchedulerSettings.model_fields:
        if name == "priority_flexibility":
            continue
        raw = env.get(_ENV_PREFIX + name.upper())
        if raw is not None and raw != "":
            values[name] = raw
    return SchedulerSettings(**values)
