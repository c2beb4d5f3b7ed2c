"""Per-interval consumption rates from consecutive history entries."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Sequence

from .history import HistoryEntry

MIN_INTERVAL = timedelta(hours=1)
MAX_INTERVAL = timedelta(hours=72)


def daily_rates(history: Sequence[HistoryEntry]) -> List[float]:
    """Daily consumption rates, newest interval first.

    Each adjacent (newer, older) pair spanning 1h-72h with positive
    consumption yields one rate. Shorter intervals are too noisy and longer
    ones likely straddle a reset, so both are discarded rather than clamped.
    """
    rates: List[float] = []
    for newer, older in zip(history, history[1:]):
        elapsed = newer.observed_at - older.observed_at
        if elapsed < MIN_INTERVAL or elapsed > MAX_INTERVAL:
            continue
        consumed = older.remaining - newer.remaining
        if consumed <= 0:
            continue
        hours = elapsed.total_seconds() / 3600
        rates.append(consumed / hours * 24)
    return rates
