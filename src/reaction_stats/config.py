# src/reaction_stats/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the token is only needed to talk to the API).
- CLI flags override env values via Settings.with_overrides().
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

ENV_PREFIX = "REACTIONS"


class ConfigurationError(RuntimeError):
    """Required configuration (token, URL, ...) is missing or invalid."""


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _positive_or_none(value: int | None) -> int | None:
    if value is None or value <= 0:
        return None
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Slack Web API ----
    slack_token: Optional[str]
    slack_base_url: str
    http_timeout_seconds: float

    # ---- Search window ----
    lookback_days: int
    search_page_size: int

    # ---- Scheduler tuning ----
    search_concurrency: int
    reactions_concurrency: int
    retry_cooldown_seconds: float
    max_failed_waves: Optional[int]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "reaction-stats")
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/reaction-stats"))

        # Accept the generic SLACK_TOKEN too, it is what most Slack tooling exports.
        slack_token = _first_env(_k("SLACK_TOKEN"), "SLACK_TOKEN", default=None)
        slack_base_url = _env(_k("SLACK_BASE_URL"), "https://slack.com/api").rstrip("/")
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 30.0)

        lookback_days = _env_int(_k("LOOKBACK_DAYS"), 90)
        search_page_size = _env_int(_k("SEARCH_PAGE_SIZE"), 100)

        # Search is rate-limited more loosely than reactions.get, hence the different defaults.
        search_concurrency = _env_int(_k("SEARCH_CONCURRENCY"), 10)
        reactions_concurrency = _env_int(_k("REACTIONS_CONCURRENCY"), 25)
        retry_cooldown_seconds = _env_float(_k("RETRY_COOLDOWN_SECONDS"), 15.0)
        max_failed_waves = _positive_or_none(_env_int(_k("MAX_FAILED_WAVES"), 0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            slack_token=slack_token,
            slack_base_url=slack_base_url,
            http_timeout_seconds=http_timeout_seconds,
            lookback_days=max(1, lookback_days),
            search_page_size=max(1, search_page_size),
            search_concurrency=max(1, search_concurrency),
            reactions_concurrency=max(1, reactions_concurrency),
            retry_cooldown_seconds=max(0.0, retry_cooldown_seconds),
            max_failed_waves=max_failed_waves,
        )

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied (CLI flags)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "max_failed_waves" in changes:
            changes["max_failed_waves"] = _positive_or_none(changes["max_failed_waves"])
        return dataclasses.replace(self, **changes)


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        # Real env vars win over .env entries.
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
