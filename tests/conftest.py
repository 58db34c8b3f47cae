# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from reaction_stats.config import Settings

from .fakes import SleepRecorder


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Settings built directly rather than from the environment,
    to keep unit tests isolated and deterministic.

    Cooldown is zero so retry paths do not slow the suite down.
    """
    return Settings(
        app_name="reaction-stats-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        slack_token="xoxp-test",
        slack_base_url="https://slack.test/api",
        http_timeout_seconds=5.0,
        lookback_days=90,
        search_page_size=100,
        search_concurrency=10,
        reactions_concurrency=25,
        retry_cooldown_seconds=0.0,
        max_failed_waves=None,
    )


@pytest.fixture()
def sleep() -> SleepRecorder:
    return SleepRecorder()
