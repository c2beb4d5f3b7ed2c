"""Shared pytest configuration for the test suite."""
from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Tuple

import pytest

# Ensure the repository root (top-level scripts and ``copilot_quota``) is importable.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from copilot_quota import HistoryEntry, JsonListStore, QuotaSnapshot  # noqa: E402

NOW = datetime(2025, 6, 10, 12, 0, tzinfo=timezone.utc)


def make_history(points: Iterable[Tuple[float, float]], entitlement: float = 300, now: datetime = NOW):
    """Build a newest-first history from ``(hours_ago, remaining)`` pairs."""
    return tuple(
        HistoryEntry(observed_at=now - timedelta(hours=hours_ago), remaining=remaining, entitlement=entitlement)
        for hours_ago, remaining in points
    )


def make_snapshot(remaining: float, entitlement: float = 300, quota_id: str = "premium_interactions", **kwargs) -> QuotaSnapshot:
    kwargs.setdefault("observed_at", NOW)
    return QuotaSnapshot(quota_id=quota_id, entitlement=entitlement, remaining=remaining, **kwargs)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def list_store(tmp_path):
    return JsonListStore(tmp_path / "data", namespace="history")


@pytest.fixture
def api_payload():
    """Trimmed response of the Copilot user endpoint."""
    return {
        "copilot_plan": " individual_pro",
        "chat_enabled": True,
        "access_type_sku": "copilot_pro",
        "assigned_date": "2025-01-15T09:30:00Z",
        "organization_list": [{"login": "octo-org", "name": "Octo Org"}, {"login": "solo"}],
        "quota_reset_date": "2025-06-17",
        "quota_reset_date_utc": "2025-06-17T12:00:00Z",
        "quota_snapshots": {
            "premium_interactions": {
                "quota_id": "premium_interactions",
                "timestamp_utc": "2025-06-10T12:00:00Z",
                "entitlement": 300,
                "remaining": 210,
                "percent_remaining": 70.0,
                "unlimited": False,
                "overage_permitted": True,
                "overage_count": 0,
            },
            "chat": {
                "quota_id": "chat",
                "timestamp_utc": "2025-06-10T12:00:00Z",
                "entitlement": 0,
                "remaining": 0,
                "unlimited": True,
                "overage_permitted": False,
                "overage_count": 0,
            },
        },
    }
