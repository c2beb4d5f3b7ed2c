"""Bounded, newest-first history of local quota observations."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .logging import get_logger
from .snapshot import QuotaSnapshot, parse_timestamp
from .storage import JsonListStore

MAX_HISTORY_ENTRIES = 10

logger = get_logger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    observed_at: datetime
    remaining: float
    entitlement: float

    @classmethod
    def load(cls, content: Dict[str, Any]) -> "HistoryEntry":
        observed_at = parse_timestamp(content["timestamp"])
        if observed_at is None:
            raise ValueError(f"Invalid timestamp: {content['timestamp']!r}")
        return cls(
            observed_at=observed_at,
            remaining=content["remaining"],
            entitlement=content["entitlement"],
        )

    def dump(self) -> Dict[str, Any]:
        return {
            "timestamp": self.observed_at.astimezone(timezone.utc).isoformat(),
            "remaining": self.remaining,
            "entitlement": self.entitlement,
        }


History = Tuple[HistoryEntry, ...]


class HistoryStore:
    """Owns the persisted history of one quota.

    The list is only ever mutated by `record`: new observations are prepended
    and the tail is evicted past `max_entries`. Readers get an immutable
    tuple, newest first, in capture order.
    """

    def __init__(self, store: JsonListStore, key: str, max_entries: int = MAX_HISTORY_ENTRIES):
        self._store = store
        self.key = key
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: List[HistoryEntry] = self._read()

    def _read(self) -> List[HistoryEntry]:
        entries: List[HistoryEntry] = []
        for item in self._store.load(self.key):
            try:
                entries.append(HistoryEntry.load(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping malformed history entry for %s: %s", self.key, exc)
        return entries[: self.max_entries]

    def record(self, remaining: float, entitlement: float, observed_at: Optional[datetime] = None) -> bool:
        """Prepend an observation; return False when it was not stored.

        Callers filter unlimited quotas and non-positive `remaining` before
        calling; such values are ignored here rather than raised.
        """
        if remaining <= 0:
            logger.debug("Not recording %s: remaining=%s", self.key, remaining)
            return False

        with self._lock:
            if self._entries and self._entries[0].remaining == remaining:
                logger.debug("Not recording %s: remaining unchanged at %s", self.key, remaining)
                return False

            entry = HistoryEntry(
                observed_at=observed_at or datetime.now(timezone.utc),
                remaining=remaining,
                entitlement=entitlement,
            )
            entries = [entry] + self._entries
            evicted = len(entries) - self.max_entries
            self._entries = entries[: self.max_entries]
            self._store.save(self.key, [item.dump() for item in self._entries])

        logger.debug(
            "Recorded %s remaining=%s entitlement=%s (size=%d, evicted=%d)",
            self.key,
            remaining,
            entitlement,
            len(self._entries),
            max(0, evicted),
        )
        return True

    def capture(self, snapshot: QuotaSnapshot) -> bool:
        """Fold a fetched snapshot into history when it is a metered, positive reading."""
        if snapshot.unlimited or snapshot.remaining <= 0:
            return False
        return self.record(snapshot.remaining, snapshot.entitlement, snapshot.observed_at)

    def load(self) -> History:
        with self._lock:
            return tuple(self._entries)

    def size(self) -> int:
        return len(self._entries)

    def latest(self) -> Optional[HistoryEntry]:
        entries = self.load()
        return entries[0] if entries else None

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            self._store.delete(self.key)
