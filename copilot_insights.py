#!/usr/bin/env python3
"""
GitHub Copilot Quota Insights

Fetches Copilot quota snapshots, keeps a small local history per quota and
reports pacing, recent deltas, burn-rate trend and an exhaustion forecast.
"""

import argparse
import json
import os
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from copilot_client import CopilotApiError, fetch_copilot_usage
from copilot_quota import CopilotUsage, JsonListStore, QuotaInsights, QuotaReport, UsageAlertTracker, get_logger, setup_logging
from copilot_quota.alerts import DEFAULT_ALERT_THRESHOLD
from copilot_quota.snapshot import time_since
from github_auth import AuthenticationError, get_github_token

DEFAULT_DATA_DIR = os.path.join(os.path.expanduser("~"), ".copilot_insights")


logger = get_logger(__name__)


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%b %d, %Y") if value else "Unknown"


def _fmt_delta(value: Optional[int]) -> str:
    if value is None:
        return "n/a"
    return f"{value:+d}"


def load_usage(args: argparse.Namespace) -> CopilotUsage:
    """Fetch usage from GitHub, or read a saved API payload with --from-json."""
    if args.from_json:
        with open(args.from_json, "r", encoding="utf-8") as f:
            return CopilotUsage.from_api(json.load(f))
    token = args.token or get_github_token(interactive=not args.non_interactive)
    return fetch_copilot_usage(token, url=args.api_url)


def print_report(usage: CopilotUsage, reports: List[QuotaReport], now: Optional[datetime] = None) -> None:
    now = now or datetime.now(timezone.utc)
    print(f"Copilot plan: {usage.plan or 'Unknown'} | chat {'enabled' if usage.chat_enabled else 'disabled'} | resets {_fmt_date(usage.reset_at)}")
    if usage.latest_observed_at:
        stale = " (stale)" if usage.snapshots[0].is_stale(now) else ""
        print(f"Data as of {time_since(usage.latest_observed_at, now)}{stale}")
    print("-" * 80)
    for report in reports:
        snap = report.snapshot
        if snap.unlimited:
            print(f"{snap.display_name:<28} Unlimited")
            continue
        print(f"{snap.display_name:<28} {snap.remaining:>8,.0f} / {snap.entitlement:,.0f}  {snap.percent_remaining}% left  [{snap.status.value}] {snap.mood.value}")
        if report.pacing and report.budget:
            budget = report.budget
            print(f"  Reset in {report.pacing.days_until_reset}d {report.pacing.hours_until_reset}h: <= {budget.per_day}/day, <= {budget.per_week}/week")
            if budget.per_workday is not None:
                print(f"  Working days ({budget.working_days}): <= {budget.per_workday}/workday, <= {budget.per_work_hour}/work hour")
            projections = ", ".join(f"{value}/day at {multiplier:g}x" for multiplier, value in budget.cost_projections.items())
            print(f"  By model cost: {projections}")
        elif report.pacing:
            print("  Reset date has passed; no pacing window")
        comparison = report.comparison
        print(f"  Change: {_fmt_delta(comparison.since_last_refresh)} since last refresh, {_fmt_delta(comparison.since_yesterday)} since yesterday")
        if report.trend:
            trend = report.trend
            print(f"  Burn rate: {trend.recent_rate:.1f}/day recent vs {trend.overall_rate:.1f}/day overall ({trend.trend.value}, {trend.indicator})")
        if report.prediction:
            prediction = report.prediction
            line = f"  Forecast: ~{prediction.predicted_daily_usage}/day ({prediction.confidence.value} confidence)"
            if prediction.days_until_exhaustion is not None:
                line += f", runs out in {prediction.days_until_exhaustion}d"
                if prediction.will_exhaust_before_reset:
                    line += " BEFORE reset"
            print(line)
        else:
            print(f"  Forecast: collecting history ({report.history_size} observations)")
        if snap.overage_permitted:
            print(f"  Overage permitted ({snap.overage_count:,.0f} used)")
        if report.alert:
            print(f"  ⚠ {snap.display_name} is at {snap.percent_used}% of its quota")
    print("-" * 80)


def build_json(usage: CopilotUsage, reports: List[QuotaReport]) -> Dict[str, Any]:
    return {
        "plan": usage.plan,
        "chatEnabled": usage.chat_enabled,
        "accessTypeSku": usage.access_type_sku,
        "resetAt": usage.reset_at.isoformat() if usage.reset_at else None,
        "organizations": [org.login for org in usage.organizations],
        "quotas": [report.as_dict() for report in reports],
    }


def write_json(usage: CopilotUsage, reports: List[QuotaReport], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(build_json(usage, reports), f, ensure_ascii=False, indent=2)


def render_markdown(usage: CopilotUsage, reports: List[QuotaReport], now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    lines = ["# GitHub Copilot Insights", "", f"**Generated:** {now.strftime('%Y-%m-%d %H:%M UTC')}", ""]
    lines += [
        "## Plan Details",
        "",
        f"- **Plan:** {usage.plan or 'Unknown'}",
        f"- **Chat:** {'Enabled' if usage.chat_enabled else 'Disabled'}",
        f"- **Access/SKU:** {usage.access_type_sku or 'Unknown'}",
        f"- **Assigned:** {_fmt_date(usage.assigned_date)}",
        "",
    ]

    if reports:
        lines += ["## Quotas", ""]
    for report in reports:
        snap = report.snapshot
        lines += [f"### {snap.display_name}", ""]
        if snap.unlimited:
            lines += ["- **Status:** Unlimited", ""]
            continue
        lines += [
            f"- **Status:** {snap.status.value} ({snap.percent_remaining}% remaining)",
            f"- **Remaining:** {snap.remaining:,.0f}",
            f"- **Used:** {snap.used:,.0f}",
            f"- **Total:** {snap.entitlement:,.0f}",
        ]
        if report.pacing and report.budget:
            lines += [
                f"- **To last until reset:** <= {report.budget.per_day}/day",
                f"- **Reset in:** {report.pacing.days_until_reset}d {report.pacing.hours_until_reset}h",
                f"- **Reset Date:** {_fmt_date(usage.reset_at)}",
            ]
        if report.trend:
            lines.append(f"- **Burn rate trend:** {report.trend.trend.value} ({report.trend.indicator})")
        if report.prediction:
            lines.append(
                f"- **Forecast:** ~{report.prediction.predicted_daily_usage}/day, {report.prediction.confidence.value} confidence"
            )
        if snap.overage_permitted:
            suffix = f" ({snap.overage_count:,.0f} used)" if snap.overage_count > 0 else ""
            lines.append(f"- **Overage:** Permitted{suffix}")
        lines.append("")

    if usage.organizations:
        lines += ["## Organizations with Copilot Access", ""]
        lines += [f"- **{org.label}** (@{org.login})" for org in usage.organizations]
        lines.append("")

    lines += ["---", "*Data fetched from GitHub Copilot API*", ""]
    return "\n".join(lines)


def write_markdown(usage: CopilotUsage, reports: List[QuotaReport], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_markdown(usage, reports))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Track GitHub Copilot quota usage: pacing, burn-rate trend and exhaustion forecast.",
    )
    parser.add_argument("--quota", default=os.getenv("COPILOT_QUOTA"), help="Only report this quota id, e.g. premium_interactions (env: COPILOT_QUOTA)")
    parser.add_argument("--token", default=None, help="GitHub token (default: GITHUB_TOKEN / cached login)")
    parser.add_argument("--api-url", default=os.getenv("COPILOT_API_URL"), help="Copilot user endpoint (env: COPILOT_API_URL)")
    parser.add_argument("--data-dir", default=os.getenv("COPILOT_HISTORY_DIR", DEFAULT_DATA_DIR), help="History directory (env: COPILOT_HISTORY_DIR)")
    parser.add_argument("--alert-threshold", type=int, default=int(os.getenv("COPILOT_ALERT_THRESHOLD", str(DEFAULT_ALERT_THRESHOLD))), help="Percent used that triggers an alert (env: COPILOT_ALERT_THRESHOLD)")
    parser.add_argument("--from-json", default=None, help="Read a saved API response instead of calling GitHub")
    parser.add_argument("--json", dest="json_out", default=os.getenv("COPILOT_JSON_PATH"), help="JSON path (env: COPILOT_JSON_PATH)")
    parser.add_argument("--md", default=os.getenv("COPILOT_MD_PATH"), help="Markdown path (env: COPILOT_MD_PATH)")
    parser.add_argument("--watch", type=int, default=int(os.getenv("COPILOT_WATCH_SECONDS", "0")), help="Refresh every N seconds (env: COPILOT_WATCH_SECONDS)")
    parser.add_argument("--non-interactive", action="store_true", help="Never prompt for a token")
    parser.add_argument("--clear-history", action="store_true", help="Clear local quota history before running")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"), help="Logging level (env: LOG_LEVEL)")
    return parser.parse_args(argv)


def run_once(args: argparse.Namespace, insights: QuotaInsights) -> int:
    try:
        usage = load_usage(args)
    except (AuthenticationError, CopilotApiError) as exc:
        raise SystemExit(f"Failed to load Copilot data: {exc}") from exc

    reports = insights.refresh(usage, quota_id=args.quota)
    if not reports:
        print("No quota snapshots found.")
        return 0

    print_report(usage, reports)

    if args.json_out:
        write_json(usage, reports, args.json_out)
        print(f"Wrote JSON: {args.json_out}")
    if args.md:
        write_markdown(usage, reports, args.md)
        print(f"Wrote Markdown: {args.md}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.log_level.upper())

    history_store = JsonListStore(args.data_dir, namespace="history")
    if args.clear_history:
        history_store.clear()
        logger.info("History cleared")

    alerts = UsageAlertTracker(JsonListStore(args.data_dir, namespace="alerts"), threshold=args.alert_threshold)
    insights = QuotaInsights(history_store, alerts=alerts)

    if args.watch <= 0:
        return run_once(args, insights)

    logger.info("Watching Copilot quota every %d seconds (Ctrl+C to stop)", args.watch)
    try:
        while True:
            try:
                run_once(args, insights)
            except SystemExit as exc:
                logger.warning("%s", exc)
            time.sleep(args.watch)
    except KeyboardInterrupt:
        logger.info("Stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
