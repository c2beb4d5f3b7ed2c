from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .logging import get_logger
from .snapshot import QuotaSnapshot
from .storage import JsonListStore

DEFAULT_ALERT_THRESHOLD = 85
_ALERT_KEY = "usage-alert"

logger = get_logger(__name__)


@dataclass
class UsageAlertTracker:
    """Fires a high-usage alert at most once per quota reset period.

    The reset date of the last alert is persisted so restarts within the same
    period stay quiet.
    """

    store: JsonListStore
    threshold: int = DEFAULT_ALERT_THRESHOLD

    def _key(self, quota_id: str) -> str:
        return f"{_ALERT_KEY}-{quota_id}"

    def last_notified(self, quota_id: str) -> Optional[str]:
        items = self.store.load(self._key(quota_id))
        if not items:
            return None
        return items[0].get("reset")

    def _mark(self, quota_id: str, reset_marker: str) -> None:
        self.store.save(
            self._key(quota_id),
            [{"reset": reset_marker, "notified_at": datetime.now(timezone.utc).isoformat()}],
        )

    def check(self, snapshot: QuotaSnapshot, reset_at: Optional[datetime]) -> bool:
        """Return True when an alert should be shown for this snapshot."""
        if snapshot.unlimited or not snapshot.entitlement:
            return False

        reset_marker = reset_at.isoformat() if reset_at else ""
        last = self.last_notified(snapshot.quota_id)
        percent_used = snapshot.percent_used

        if percent_used >= self.threshold and last != reset_marker:
            logger.info(
                "%s usage at %d%% (threshold %d%%), alerting for reset %s",
                snapshot.quota_id,
                percent_used,
                self.threshold,
                reset_marker or "unknown",
            )
            self._mark(snapshot.quota_id, reset_marker)
            return True

        if last and last != reset_marker and percent_used < self.threshold:
            logger.debug("Clearing stale usage alert marker for %s", snapshot.quota_id)
            self.store.delete(self._key(snapshot.quota_id))
        return False
