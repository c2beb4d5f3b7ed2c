"""Local quota history and burn-rate analytics for GitHub Copilot quotas."""

from .alerts import UsageAlertTracker
from .compare import Comparison, compare
from .history import HistoryEntry, HistoryStore
from .insights import QuotaInsights, QuotaReport
from .logging import get_logger, setup_logging
from .pacing import PacingBudget, PacingResult, calculate_pacing, pacing_budget
from .predict import Confidence, PredictionReport, predict
from .snapshot import CopilotUsage, QuotaSnapshot, Status
from .storage import JsonListStore
from .trend import Trend, TrendReport, analyze_trend

__all__ = [
    "Comparison",
    "Confidence",
    "CopilotUsage",
    "HistoryEntry",
    "HistoryStore",
    "JsonListStore",
    "PacingBudget",
    "PacingResult",
    "PredictionReport",
    "QuotaInsights",
    "QuotaReport",
    "QuotaSnapshot",
    "Status",
    "Trend",
    "TrendReport",
    "UsageAlertTracker",
    "analyze_trend",
    "calculate_pacing",
    "compare",
    "get_logger",
    "pacing_budget",
    "predict",
    "setup_logging",
]
