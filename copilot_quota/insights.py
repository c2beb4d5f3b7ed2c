"""One refresh cycle: fold fetched quotas into history and analyse them."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .alerts import UsageAlertTracker
from .compare import Comparison, compare
from .history import HistoryStore
from .logging import get_logger
from .pacing import PacingBudget, PacingResult, calculate_pacing, pacing_budget
from .predict import PredictionReport, predict
from .snapshot import CopilotUsage, QuotaSnapshot
from .storage import JsonListStore
from .trend import TrendReport, analyze_trend

logger = get_logger(__name__)


@dataclass(frozen=True)
class QuotaReport:
    snapshot: QuotaSnapshot
    pacing: Optional[PacingResult] = None
    budget: Optional[PacingBudget] = None
    comparison: Comparison = Comparison()
    trend: Optional[TrendReport] = None
    prediction: Optional[PredictionReport] = None
    history_size: int = 0
    alert: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "snapshot": self.snapshot.as_dict(),
            "pacing": self.pacing.as_dict() if self.pacing else None,
            "budget": self.budget.as_dict() if self.budget else None,
            "comparison": self.comparison.as_dict(),
            "trend": self.trend.as_dict() if self.trend else None,
            "prediction": self.prediction.as_dict() if self.prediction else None,
            "historySize": self.history_size,
            "alert": self.alert,
        }


class QuotaInsights:
    """Holds one `HistoryStore` per quota id over a shared list store."""

    def __init__(self, store: JsonListStore, alerts: Optional[UsageAlertTracker] = None):
        self.store = store
        self.alerts = alerts
        self._histories: Dict[str, HistoryStore] = {}
        self._lock = threading.Lock()

    def history(self, quota_id: str) -> HistoryStore:
        with self._lock:
            if quota_id not in self._histories:
                self._histories[quota_id] = HistoryStore(self.store, quota_id)
            return self._histories[quota_id]

    def report(self, snapshot: QuotaSnapshot, reset_at: Optional[datetime], as_of: datetime, now: Optional[datetime] = None) -> QuotaReport:
        """Analyse one quota against its current history without recording."""
        if snapshot.unlimited:
            return QuotaReport(snapshot=snapshot)

        history = self.history(snapshot.quota_id).load()
        pacing = calculate_pacing(reset_at, as_of) if reset_at else None
        if pacing is not None and not pacing.has_window:
            logger.info("Reset for %s is already past (%s); pacing suppressed", snapshot.quota_id, reset_at)

        return QuotaReport(
            snapshot=snapshot,
            pacing=pacing,
            budget=pacing_budget(snapshot.remaining, pacing) if pacing else None,
            comparison=compare(history, now=now or as_of),
            trend=analyze_trend(history),
            prediction=predict(history, snapshot, reset_at, as_of=as_of),
            history_size=len(history),
            alert=self.alerts.check(snapshot, reset_at) if self.alerts else False,
        )

    def refresh(self, usage: CopilotUsage, quota_id: Optional[str] = None, now: Optional[datetime] = None) -> List[QuotaReport]:
        """Record each metered quota, then build its report.

        With `quota_id` only that quota is processed.
        """
        now = now or datetime.now(timezone.utc)
        as_of = usage.latest_observed_at or now
        reports: List[QuotaReport] = []
        for snapshot in usage.snapshots:
            if quota_id and snapshot.quota_id != quota_id:
                continue
            if not snapshot.unlimited:
                recorded = self.history(snapshot.quota_id).capture(snapshot)
                logger.debug("%s capture recorded=%s", snapshot.quota_id, recorded)
            reports.append(self.report(snapshot, usage.reset_at, as_of, now=now))
        return reports
