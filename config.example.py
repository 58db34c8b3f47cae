# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real tokens. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "REACTIONS_APP_NAME": "App display name (default: reaction-stats).",
    "REACTIONS_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    "REACTIONS_DATA_DIR": "Local data directory for logs (default: .local/reaction-stats).",
    # Slack
    "REACTIONS_SLACK_TOKEN": "Slack user token with search:read, reactions:read, emoji:read (SLACK_TOKEN also works).",
    "REACTIONS_SLACK_BASE_URL": "Slack Web API base URL (default: https://slack.com/api).",
    "REACTIONS_HTTP_TIMEOUT_SECONDS": "Per-request HTTP timeout (default: 30).",
    # Search window
    "REACTIONS_LOOKBACK_DAYS": "Only count messages newer than this many days (default: 90).",
    "REACTIONS_SEARCH_PAGE_SIZE": "Matches per search page (default: 100).",
    # Scheduler tuning
    "REACTIONS_SEARCH_CONCURRENCY": "Search pages fetched per wave (default: 10).",
    "REACTIONS_REACTIONS_CONCURRENCY": "reactions.get calls per wave (default: 25).",
    "REACTIONS_RETRY_COOLDOWN_SECONDS": "Pause after a wave with failures (default: 15).",
    "REACTIONS_MAX_FAILED_WAVES": "Give up after N waves with failures (default: 0 = retry forever).",
}
