"""End-to-end CLI runs against a saved API payload."""

import json

import pytest

import copilot_insights
import github_auth
from github_auth import AuthenticationError, GitHubAuth


@pytest.fixture
def payload_file(tmp_path, api_payload):
    path = tmp_path / "usage.json"
    path.write_text(json.dumps(api_payload), encoding="utf-8")
    return path


def run(tmp_path, payload_file, *extra):
    argv = ["--from-json", str(payload_file), "--data-dir", str(tmp_path / "data"), "--log-level", "WARNING", *extra]
    return copilot_insights.main(argv)


def test_prints_report(tmp_path, payload_file, capsys):
    assert run(tmp_path, payload_file) == 0
    out = capsys.readouterr().out
    assert "Premium Interactions" in out
    assert "<= 30/day" in out
    assert "Chat" in out and "Unlimited" in out
    assert "collecting history (1 observations)" in out


def test_writes_json_and_markdown(tmp_path, payload_file):
    json_path = tmp_path / "out.json"
    md_path = tmp_path / "out.md"
    run(tmp_path, payload_file, "--json", str(json_path), "--md", str(md_path))

    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert data["plan"] == "Individual_pro"
    assert data["quotas"][0]["snapshot"]["remaining"] == 210
    assert data["quotas"][0]["historySize"] == 1

    markdown = md_path.read_text(encoding="utf-8")
    assert markdown.startswith("# GitHub Copilot Insights")
    assert "- **To last until reset:** <= 30/day" in markdown
    assert "- **Overage:** Permitted" in markdown
    assert "- **Octo Org** (@octo-org)" in markdown


def test_repeat_runs_do_not_duplicate_history(tmp_path, payload_file):
    json_path = tmp_path / "out.json"
    run(tmp_path, payload_file)
    run(tmp_path, payload_file, "--json", str(json_path))
    assert json.loads(json_path.read_text(encoding="utf-8"))["quotas"][0]["historySize"] == 1


def test_clear_history(tmp_path, payload_file):
    json_path = tmp_path / "out.json"
    run(tmp_path, payload_file)
    run(tmp_path, payload_file, "--clear-history", "--json", str(json_path))
    assert json.loads(json_path.read_text(encoding="utf-8"))["quotas"][0]["historySize"] == 1


def test_quota_filter(tmp_path, payload_file, capsys):
    run(tmp_path, payload_file, "--quota", "chat")
    out = capsys.readouterr().out
    assert "Premium Interactions" not in out


def test_missing_token_exits(tmp_path, monkeypatch):
    monkeypatch.setattr(copilot_insights, "load_dotenv", lambda *a, **k: False)
    monkeypatch.setattr(github_auth, "auth", GitHubAuth(cache_dir=str(tmp_path / "auth")))
    monkeypatch.setattr(github_auth, "load_dotenv", lambda *a, **k: False)
    for name in github_auth.TOKEN_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(SystemExit, match="No GitHub token"):
        copilot_insights.main(["--data-dir", str(tmp_path / "data"), "--non-interactive", "--log-level", "WARNING"])


class TestGitHubAuth:
    def test_env_token_wins(self, tmp_path, monkeypatch):
        monkeypatch.setattr(github_auth, "load_dotenv", lambda *a, **k: False)
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GH_TOKEN", " gh-token ")
        assert GitHubAuth(cache_dir=str(tmp_path)).get_token(interactive=False) == "gh-token"

    def test_cached_token_round_trip(self, tmp_path, monkeypatch):
        monkeypatch.setattr(github_auth, "load_dotenv", lambda *a, **k: False)
        for name in github_auth.TOKEN_ENV_VARS:
            monkeypatch.delenv(name, raising=False)
        manager = GitHubAuth(cache_dir=str(tmp_path))
        manager.save_token("cached-token")
        assert manager.get_token(interactive=False) == "cached-token"

        manager.clear_session()
        with pytest.raises(AuthenticationError):
            manager.get_token(interactive=False)
