#!/usr/bin/env python3
"""
GitHub Copilot quota client.

Fetches the signed-in user's Copilot plan and quota snapshots. The response
is parsed into `copilot_quota.CopilotUsage`; no analytics happen here.
"""

import os
from typing import Any, Dict, Optional, Tuple

import requests
from requests import Response

from copilot_quota import CopilotUsage, get_logger

COPILOT_API_URL = "https://api.github.com/copilot_internal/user"
USER_AGENT = "copilot-quota-insights"
DEFAULT_TIMEOUT_SECONDS = 30

logger = get_logger(__name__)


class CopilotApiError(RuntimeError):
    """Raised when the Copilot endpoint cannot be read."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _build_headers(access_token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {access_token}",
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }


def parse_api_error(resp: Optional[Response]) -> Tuple[str, str]:
    """Extract message and documentation hint from a GitHub API error response."""
    if resp is None:
        return ("Unknown response", "")
    try:
        payload = resp.json()
        message = payload.get("message") or str(resp.text)
        return message, payload.get("documentation_url", "")
    except ValueError:
        return (f"HTTP {resp.status_code} {resp.reason}", "")


def fetch_raw_usage(access_token: str, url: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Dict[str, Any]:
    url = url or os.getenv("COPILOT_API_URL", COPILOT_API_URL)
    logger.debug("GET %s", url)
    try:
        response = requests.get(url, headers=_build_headers(access_token), timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.HTTPError as exc:
        message, docs = parse_api_error(exc.response)
        status = exc.response.status_code if exc.response is not None else None
        hint = f" (see {docs})" if docs else ""
        raise CopilotApiError(f"GitHub API returned {status}: {message}{hint}", status_code=status) from exc
    except requests.exceptions.RequestException as exc:
        raise CopilotApiError(f"Could not reach GitHub API: {exc}") from exc

    try:
        data = response.json()
    except ValueError as exc:
        raise CopilotApiError("GitHub API returned a non-JSON body") from exc
    if not isinstance(data, dict):
        raise CopilotApiError("GitHub API returned an unexpected payload")
    return data


def fetch_copilot_usage(access_token: str, url: Optional[str] = None) -> CopilotUsage:
    """Fetch and parse the Copilot plan and quota snapshots."""
    data = fetch_raw_usage(access_token, url=url)
    usage = CopilotUsage.from_api(data)
    logger.info(
        "Fetched Copilot usage: plan=%s quotas=%d reset=%s",
        usage.plan or "unknown",
        len(usage.snapshots),
        usage.reset_at.isoformat() if usage.reset_at else "unknown",
    )
    return usage
