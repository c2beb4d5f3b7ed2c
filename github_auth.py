#!/usr/bin/env python3
"""
GitHub Token Manager
Resolves the token used to read Copilot quota data.

Lookup order: GITHUB_TOKEN / GH_TOKEN (environment or .env), then the token
cached by a previous interactive login, then an interactive prompt.
"""

import getpass
import json
import os
import sys
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv

from copilot_quota import get_logger

GLOBAL_CACHE_DIR = os.path.expanduser(os.getenv("COPILOT_INSIGHTS_HOME", "~/.copilot_insights"))
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")

logger = get_logger(__name__)


class AuthenticationError(RuntimeError):
    """Raised when no GitHub token can be resolved."""


class GitHubAuth:
    def __init__(self, cache_dir: str = GLOBAL_CACHE_DIR):
        self.cache_dir = cache_dir
        self.token_file = os.path.join(self.cache_dir, "token.json")

    def get_env_token(self) -> Optional[str]:
        """Get token from environment (after loading .env)."""
        load_dotenv()
        for name in TOKEN_ENV_VARS:
            token = os.getenv(name)
            if token:
                logger.debug("Using token from %s", name)
                return token.strip()
        return None

    def get_cached_token(self) -> Optional[str]:
        """Get token saved by a previous login."""
        if not os.path.exists(self.token_file):
            return None
        try:
            with open(self.token_file, "r", encoding="utf-8") as f:
                token_data = json.load(f)
            return token_data["access_token"] or None
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.debug("Error reading token cache: %s", e)
        return None

    def save_token(self, access_token: str) -> None:
        os.makedirs(self.cache_dir, exist_ok=True)
        with open(self.token_file, "w", encoding="utf-8") as f:
            json.dump({
                "access_token": access_token,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }, f)
        os.chmod(self.token_file, 0o600)

    def get_token(self, interactive: bool = True) -> str:
        """Get GitHub token (environment, cache, or prompt)."""
        token = self.get_env_token() or self.get_cached_token()
        if token:
            return token

        if not interactive or not sys.stdin.isatty():
            raise AuthenticationError(
                "No GitHub token found. Set GITHUB_TOKEN (or GH_TOKEN) or run: python github_auth.py --login"
            )

        print("🔐 GitHub authentication required")
        print("Create a token at https://github.com/settings/tokens (scope: user:email)")
        token = getpass.getpass("Paste GitHub token: ").strip()
        if not token:
            raise AuthenticationError("No token provided")
        self.save_token(token)
        print("✓ Token saved")
        return token

    def clear_session(self) -> None:
        """Clear cached token."""
        if os.path.exists(self.token_file):
            os.remove(self.token_file)
            print("✓ Cached GitHub token cleared")


# Global instance
auth = GitHubAuth()


def get_github_token(interactive: bool = True) -> str:
    """Get GitHub token (main entry point)."""
    return auth.get_token(interactive=interactive)


def clear_github_session() -> None:
    auth.clear_session()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="GitHub Token Manager")
    parser.add_argument("--clear", action="store_true", help="Clear cached token")
    parser.add_argument("--login", action="store_true", help="Prompt for a token and cache it")

    args = parser.parse_args()

    if args.clear:
        clear_github_session()
    elif args.login:
        try:
            token = get_github_token()
        except AuthenticationError as exc:
            raise SystemExit(str(exc)) from exc
        print(f"✓ Got token: {token[:8]}...")
    else:
        print("Usage: python github_auth.py --clear | --login")
