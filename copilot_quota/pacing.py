"""Conservative per-period usage allowances until the quota resets.

Every figure is floored: a pacing number never suggests more usage than the
remaining quota can actually cover.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

SECONDS_PER_DAY = 24 * 60 * 60
WORKDAYS_PER_WEEK = 5
WORK_HOURS_PER_DAY = 8
COST_MULTIPLIERS = (0.33, 1, 3)


@dataclass(frozen=True)
class PacingResult:
    days_until_reset: int
    hours_until_reset: int
    total_days_until_reset: float

    @property
    def has_window(self) -> bool:
        return self.total_days_until_reset > 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "daysUntilReset": self.days_until_reset,
            "hoursUntilReset": self.hours_until_reset,
            "totalDaysUntilReset": self.total_days_until_reset,
        }


@dataclass(frozen=True)
class PacingBudget:
    per_day: int
    per_week: int
    working_days: int
    per_workday: Optional[int] = None
    per_work_hour: Optional[int] = None
    cost_projections: Dict[float, int] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "perDay": self.per_day,
            "perWeek": self.per_week,
            "workingDays": self.working_days,
            "perWorkday": self.per_workday,
            "perWorkHour": self.per_work_hour,
            "costProjections": {f"{multiplier:g}x": value for multiplier, value in self.cost_projections.items()},
        }


def calculate_pacing(reset_at: datetime, as_of: datetime) -> PacingResult:
    """Time left until `reset_at`, measured from `as_of`.

    `total_days_until_reset` is negative once the reset instant has passed.
    """
    total_days = (reset_at - as_of).total_seconds() / SECONDS_PER_DAY
    days = math.floor(total_days)
    hours = math.floor((total_days - days) * 24)
    return PacingResult(days_until_reset=days, hours_until_reset=hours, total_days_until_reset=total_days)


def pacing_budget(remaining: float, pacing: PacingResult) -> Optional[PacingBudget]:
    """Safe usage rates for `remaining` over the pacing window.

    Returns None when there is no window left to spread usage over.
    Over-quota (negative) remaining counts as nothing left to spend.
    """
    total_days = pacing.total_days_until_reset
    if total_days <= 0:
        return None

    remaining = max(0, remaining)
    weeks = max(1.0, total_days / 7)
    working_days = math.floor(total_days * WORKDAYS_PER_WEEK / 7)

    per_workday = None
    per_work_hour = None
    if working_days > 0:
        per_workday = math.floor(remaining / working_days)
        per_work_hour = math.floor(remaining / (working_days * WORK_HOURS_PER_DAY))

    return PacingBudget(
        per_day=math.floor(remaining / total_days),
        per_week=math.floor(remaining / weeks),
        working_days=working_days,
        per_workday=per_workday,
        per_work_hour=per_work_hour,
        cost_projections={
            multiplier: math.floor(remaining / multiplier / total_days) for multiplier in COST_MULTIPLIERS
        },
    )
