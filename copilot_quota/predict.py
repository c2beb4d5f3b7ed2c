"""Daily usage forecast and exhaustion projection."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from statistics import fmean
from typing import Any, Dict, Optional, Sequence, Tuple

from .history import HistoryEntry
from .pacing import calculate_pacing
from .rates import daily_rates
from .snapshot import QuotaSnapshot, round_half_up

MIN_DATA_POINTS = 2
HIGH_CONFIDENCE_POINTS = 7
MEDIUM_CONFIDENCE_POINTS = 3


class Confidence(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class PredictionReport:
    predicted_daily_usage: int
    confidence: Confidence
    confidence_reason: str
    data_points: int
    days_until_exhaustion: Optional[int] = None
    exhaustion_date: Optional[datetime] = None
    will_exhaust_before_reset: Optional[bool] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "predictedDailyUsage": self.predicted_daily_usage,
            "confidence": self.confidence.value,
            "confidenceReason": self.confidence_reason,
            "dataPoints": self.data_points,
            "daysUntilExhaustion": self.days_until_exhaustion,
            "exhaustionDate": self.exhaustion_date.isoformat() if self.exhaustion_date else None,
            "willExhaustBeforeReset": self.will_exhaust_before_reset,
        }


def confidence_for(data_points: int) -> Tuple[Confidence, str]:
    if data_points >= HIGH_CONFIDENCE_POINTS:
        return Confidence.HIGH, f"Based on {data_points} usage intervals"
    if data_points >= MEDIUM_CONFIDENCE_POINTS:
        return Confidence.MEDIUM, f"Based on {data_points} usage intervals; more history will sharpen this"
    return Confidence.LOW, f"Only {data_points} usage intervals so far; treat as a rough estimate"


def predict(
    history: Sequence[HistoryEntry],
    current: QuotaSnapshot,
    reset_at: Optional[datetime],
    as_of: Optional[datetime] = None,
) -> Optional[PredictionReport]:
    """Forecast daily usage and whether it runs the quota dry before reset.

    Needs at least 2 usable intervals, otherwise None. Exhaustion fields stay
    None when no positive rate can be computed.
    """
    rates = daily_rates(history)
    if len(rates) < MIN_DATA_POINTS:
        return None

    predicted = round_half_up(fmean(rates))
    confidence, reason = confidence_for(len(rates))
    report = PredictionReport(
        predicted_daily_usage=predicted,
        confidence=confidence,
        confidence_reason=reason,
        data_points=len(rates),
    )
    if predicted <= 0:
        return report

    as_of = as_of or current.observed_at or datetime.now(timezone.utc)
    remaining = max(0, current.remaining)
    days_left = remaining / predicted

    will_exhaust: Optional[bool] = None
    if reset_at is not None:
        pacing = calculate_pacing(reset_at, as_of)
        if pacing.has_window:
            will_exhaust = math.floor(days_left) < pacing.days_until_reset

    return PredictionReport(
        predicted_daily_usage=predicted,
        confidence=confidence,
        confidence_reason=reason,
        data_points=len(rates),
        days_until_exhaustion=math.floor(days_left),
        exhaustion_date=as_of + timedelta(days=days_left),
        will_exhaust_before_reset=will_exhaust,
    )
