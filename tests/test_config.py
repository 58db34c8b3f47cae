# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from reaction_stats.config import Settings

_VARS = [
    "REACTIONS_SLACK_TOKEN",
    "SLACK_TOKEN",
    "REACTIONS_SEARCH_CONCURRENCY",
    "REACTIONS_REACTIONS_CONCURRENCY",
    "REACTIONS_RETRY_COOLDOWN_SECONDS",
    "REACTIONS_MAX_FAILED_WAVES",
    "REACTIONS_DATA_DIR",
    "REACTIONS_SLACK_BASE_URL",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_rate_limit_tuning() -> None:
    s = Settings.from_env()

    assert s.slack_token is None
    assert s.slack_base_url == "https://slack.com/api"
    assert s.search_concurrency == 10
    assert s.reactions_concurrency == 25
    assert s.retry_cooldown_seconds == 15.0
    assert s.max_failed_waves is None
    assert s.lookback_days == 90
    assert s.data_dir == Path(".local/reaction-stats")


def test_env_overrides_and_fallbacks(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SLACK_TOKEN", "xoxp-generic")
    monkeypatch.setenv("REACTIONS_SEARCH_CONCURRENCY", "3")
    monkeypatch.setenv("REACTIONS_REACTIONS_CONCURRENCY", "not-a-number")
    monkeypatch.setenv("REACTIONS_RETRY_COOLDOWN_SECONDS", "2.5")
    monkeypatch.setenv("REACTIONS_MAX_FAILED_WAVES", "4")
    monkeypatch.setenv("REACTIONS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("REACTIONS_SLACK_BASE_URL", "https://slack.test/api/")

    s = Settings.from_env()

    assert s.slack_token == "xoxp-generic"
    assert s.search_concurrency == 3
    assert s.reactions_concurrency == 25
    assert s.retry_cooldown_seconds == 2.5
    assert s.max_failed_waves == 4
    assert s.data_dir == tmp_path
    assert s.slack_base_url == "https://slack.test/api"


def test_prefixed_token_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLACK_TOKEN", "xoxp-generic")
    monkeypatch.setenv("REACTIONS_SLACK_TOKEN", "xoxp-prefixed")

    assert Settings.from_env().slack_token == "xoxp-prefixed"


def test_non_positive_values_are_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REACTIONS_SEARCH_CONCURRENCY", "0")
    monkeypatch.setenv("REACTIONS_MAX_FAILED_WAVES", "-1")

    s = Settings.from_env()

    assert s.search_concurrency == 1
    assert s.max_failed_waves is None


def test_with_overrides_skips_none(settings: Settings) -> None:
    s = settings.with_overrides(search_concurrency=2, reactions_concurrency=None, max_failed_waves=0)

    assert s.search_concurrency == 2
    assert s.reactions_concurrency == settings.reactions_concurrency
    assert s.max_failed_waves is None
    assert settings.with_overrides(max_failed_waves=5).max_failed_waves == 5
