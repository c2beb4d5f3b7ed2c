"""Quota snapshot records parsed from the Copilot user endpoint."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

STALE_AFTER = timedelta(hours=1)


class Status(Enum):
    """Usage health derived from percent remaining."""

    HEALTHY = "Healthy"
    WATCH = "Watch"
    RISK = "Risk"


class Mood(Enum):
    PLENTY = "Plenty of quota left"
    FINE = "You're fine"
    TIGHT = "Getting tight"
    DANGER = "Danger zone"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO8601 string (``Z`` suffix accepted) into an aware UTC datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def status_for(percent_remaining: int) -> Status:
    if percent_remaining > 50:
        return Status.HEALTHY
    if percent_remaining >= 20:
        return Status.WATCH
    return Status.RISK


def mood_for(percent_remaining: int) -> Mood:
    if percent_remaining > 75:
        return Mood.PLENTY
    if percent_remaining > 40:
        return Mood.FINE
    if percent_remaining > 15:
        return Mood.TIGHT
    return Mood.DANGER


def _number(value: Any, default: float = 0) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _whole(value: float) -> Any:
    return int(value) if float(value).is_integer() else value


@dataclass(frozen=True)
class QuotaSnapshot:
    """A single point-in-time reading of one quota."""

    quota_id: str
    observed_at: datetime
    entitlement: float
    remaining: float
    unlimited: bool = False
    overage_permitted: bool = False
    overage_count: float = 0

    @classmethod
    def from_api(cls, payload: Dict[str, Any], fallback_time: Optional[datetime] = None) -> "QuotaSnapshot":
        observed_at = parse_timestamp(payload.get("timestamp_utc")) or fallback_time or datetime.now(timezone.utc)
        return cls(
            quota_id=str(payload.get("quota_id", "")),
            observed_at=observed_at,
            entitlement=_whole(max(0.0, _number(payload.get("entitlement")))),
            remaining=_whole(_number(payload.get("remaining"))),
            unlimited=bool(payload.get("unlimited", False)),
            overage_permitted=bool(payload.get("overage_permitted", False)),
            overage_count=_whole(max(0.0, _number(payload.get("overage_count")))),
        )

    @property
    def display_name(self) -> str:
        return self.quota_id.replace("_", " ").title()

    @property
    def used(self) -> float:
        return self.entitlement - self.remaining

    @property
    def percent_remaining(self) -> int:
        if not self.entitlement:
            return 0
        return round_half_up(self.remaining / self.entitlement * 100)

    @property
    def percent_used(self) -> int:
        if not self.entitlement:
            return 0
        return round_half_up(self.used / self.entitlement * 100)

    @property
    def over_quota(self) -> bool:
        return not self.unlimited and self.remaining <= 0

    @property
    def status(self) -> Status:
        return status_for(self.percent_remaining)

    @property
    def mood(self) -> Mood:
        return mood_for(self.percent_remaining)

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now - self.observed_at > STALE_AFTER

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "quotaId": self.quota_id,
            "observedAt": self.observed_at.isoformat(),
            "unlimited": self.unlimited,
        }
        if not self.unlimited:
            data.update(
                {
                    "entitlement": self.entitlement,
                    "remaining": self.remaining,
                    "used": self.used,
                    "percentRemaining": self.percent_remaining,
                    "percentUsed": self.percent_used,
                    "status": self.status.value,
                    "overagePermitted": self.overage_permitted,
                    "overageCount": self.overage_count,
                }
            )
        return data


@dataclass(frozen=True)
class Organization:
    login: str
    name: str = ""

    @property
    def label(self) -> str:
        return self.name or self.login


def normalize_plan(plan: Any) -> str:
    value = plan.strip() if isinstance(plan, str) else ""
    if not value:
        return ""
    return value[0].upper() + value[1:]


@dataclass(frozen=True)
class CopilotUsage:
    """Parsed response of the Copilot user endpoint."""

    plan: str
    chat_enabled: bool
    access_type_sku: str
    assigned_date: Optional[datetime]
    reset_at: Optional[datetime]
    snapshots: Tuple[QuotaSnapshot, ...] = ()
    organizations: Tuple[Organization, ...] = field(default_factory=tuple)

    @classmethod
    def from_api(cls, payload: Dict[str, Any], now: Optional[datetime] = None) -> "CopilotUsage":
        now = now or datetime.now(timezone.utc)
        raw_snapshots = payload.get("quota_snapshots") or {}
        if isinstance(raw_snapshots, dict):
            raw_snapshots = list(raw_snapshots.values())
        snapshots = tuple(
            QuotaSnapshot.from_api(item, fallback_time=now) for item in raw_snapshots if isinstance(item, dict)
        )
        organizations = tuple(
            Organization(login=str(org.get("login", "")), name=str(org.get("name") or ""))
            for org in payload.get("organization_list") or []
            if isinstance(org, dict)
        )
        return cls(
            plan=normalize_plan(payload.get("copilot_plan")),
            chat_enabled=bool(payload.get("chat_enabled")),
            access_type_sku=str(payload.get("access_type_sku") or ""),
            assigned_date=parse_timestamp(payload.get("assigned_date")),
            reset_at=parse_timestamp(payload.get("quota_reset_date_utc") or payload.get("quota_reset_date")),
            snapshots=snapshots,
            organizations=organizations,
        )

    @property
    def latest_observed_at(self) -> Optional[datetime]:
        return self.snapshots[0].observed_at if self.snapshots else None

    def quota(self, quota_id: str) -> Optional[QuotaSnapshot]:
        for snapshot in self.snapshots:
            if snapshot.quota_id == quota_id:
                return snapshot
        return None

    def metered(self) -> List[QuotaSnapshot]:
        return [snapshot for snapshot in self.snapshots if not snapshot.unlimited]


def time_since(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """Humanised age of a timestamp, e.g. ``3 hours ago``."""
    now = now or datetime.now(timezone.utc)
    minutes = int((now - timestamp).total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} min{'s' if minutes > 1 else ''} ago"
    return "just now"
