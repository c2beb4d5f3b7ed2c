"""Burn-rate trend: is recent consumption faster or slower than usual?"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from statistics import fmean
from typing import Any, Dict, Optional, Sequence

from .history import HistoryEntry
from .rates import daily_rates

MIN_HISTORY = 3
MIN_RATES = 2
MIN_RECENT_RATES = 2
STABLE_BAND = 0.10


class Trend(Enum):
    STABLE = "stable"
    ACCELERATING = "accelerating"
    SLOWING = "slowing"


@dataclass(frozen=True)
class TrendReport:
    recent_rate: float
    overall_rate: float
    trend: Trend
    deviation_percent: float
    samples: int

    @property
    def indicator(self) -> str:
        # int rounding so tiny negative deviations read "+0%", not "-0%"
        return f"{round(self.deviation_percent):+d}%"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "recentRate": round(self.recent_rate, 2),
            "overallRate": round(self.overall_rate, 2),
            "trend": self.trend.value,
            "indicator": self.indicator,
            "samples": self.samples,
        }


def analyze_trend(history: Sequence[HistoryEntry]) -> Optional[TrendReport]:
    """Compare the recent half of daily burn rates to the whole window.

    Returns None until there are at least 3 entries yielding 2 usable rates.
    """
    if len(history) < MIN_HISTORY:
        return None

    rates = daily_rates(history)
    if len(rates) < MIN_RATES:
        return None

    overall = fmean(rates)
    recent_count = max(MIN_RECENT_RATES, math.ceil(len(rates) / 2))
    recent = fmean(rates[:recent_count])

    deviation = (recent - overall) / overall
    if abs(deviation) < STABLE_BAND:
        trend = Trend.STABLE
    elif recent > overall:
        trend = Trend.ACCELERATING
    else:
        trend = Trend.SLOWING

    return TrendReport(
        recent_rate=recent,
        overall_rate=overall,
        trend=trend,
        deviation_percent=deviation * 100,
        samples=len(rates),
    )
