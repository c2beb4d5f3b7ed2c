"""Short-horizon deltas between history entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Sequence

from .history import HistoryEntry

YESTERDAY = timedelta(hours=24)
MIN_YESTERDAY_AGE = timedelta(hours=12)


@dataclass(frozen=True)
class Comparison:
    # Positive values mean the quota went up (e.g. after a reset).
    since_last_refresh: Optional[int] = None
    since_yesterday: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"sinceLastRefresh": self.since_last_refresh, "sinceYesterday": self.since_yesterday}


def _delta(newer: HistoryEntry, older: HistoryEntry) -> int:
    return int(newer.remaining - older.remaining)


def _nearest_to_yesterday(history: Sequence[HistoryEntry], now: datetime) -> Optional[HistoryEntry]:
    target = now - YESTERDAY
    best: Optional[HistoryEntry] = None
    best_distance: Optional[timedelta] = None
    for entry in history:
        if now - entry.observed_at < MIN_YESTERDAY_AGE:
            continue
        distance = abs(entry.observed_at - target)
        if best_distance is None or distance < best_distance:
            best, best_distance = entry, distance
    return best


def compare(history: Sequence[HistoryEntry], now: Optional[datetime] = None) -> Comparison:
    """Change in remaining quota since the previous capture and since ~24h ago.

    The "yesterday" match is the nearest entry to now-24h among entries at
    least 12h old; there is no upper bound on how far off it may be.
    """
    if len(history) < 2:
        return Comparison()

    now = now or datetime.now(timezone.utc)
    head = history[0]
    yesterday = _nearest_to_yesterday(history, now)
    return Comparison(
        since_last_refresh=_delta(head, history[1]),
        since_yesterday=_delta(head, yesterday) if yesterday is not None else None,
    )
