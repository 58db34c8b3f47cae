# src/reaction_stats/cli/main.py

"""
CLI entrypoint.

Initializes logging, resolves settings (env + flags), runs the aggregation
and prints the ranked report as JSON on stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence

from ..cli.bootstrap import ensure_local_dirs, run_report
from ..config import ConfigurationError, Settings, get_settings
from ..logging_setup import setup_logging
from ..slack.client import friendly_error_message
from ..tasks.scheduler import RetryBudgetExhausted

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reaction-stats",
        description="Count the reactions a user's messages received over a lookback window.",
    )
    parser.add_argument("--user", required=True, help="Slack user ID whose messages are searched (e.g. U0123ABCD).")
    parser.add_argument("--token", default=None, help="Slack user token (default: REACTIONS_SLACK_TOKEN).")
    parser.add_argument("--offline", action="store_true", help="Use built-in demo data instead of Slack.")
    parser.add_argument("--days", type=int, default=None, help="Lookback window in days (default: 90).")
    parser.add_argument("--search-concurrency", type=int, default=None, help="Concurrent search page requests.")
    parser.add_argument("--reactions-concurrency", type=int, default=None, help="Concurrent reactions requests.")
    parser.add_argument("--cooldown", type=float, default=None, help="Seconds to wait after a wave with failures.")
    parser.add_argument(
        "--max-failed-waves",
        type=int,
        default=None,
        help="Give up after this many waves with failures (0 = retry forever).",
    )
    parser.add_argument("--indent", type=int, default=None, help="Pretty-print JSON with this indent.")
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    base = base or get_settings()
    for flag in ("days", "search_concurrency", "reactions_concurrency"):
        value = getattr(args, flag)
        if value is not None and value < 1:
            raise ValueError(f"--{flag.replace('_', '-')} must be a positive integer")
    if args.cooldown is not None and args.cooldown < 0:
        raise ValueError("--cooldown must not be negative")

    return base.with_overrides(
        lookback_days=args.days,
        search_concurrency=args.search_concurrency,
        reactions_concurrency=args.reactions_concurrency,
        retry_cooldown_seconds=args.cooldown,
        max_failed_waves=args.max_failed_waves,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = resolve_settings(args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    ensure_local_dirs(settings)
    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s for user %s...", settings.app_name, args.user)

    try:
        report = asyncio.run(run_report(args.user, settings=settings, offline=args.offline, token=args.token))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return EXIT_INTERRUPTED
    except RetryBudgetExhausted as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except ConfigurationError as e:
        # e.g. no token configured
        logger.error("%s", e)
        print(f"error: {friendly_error_message(e)}", file=sys.stderr)
        return EXIT_CONFIG
    except Exception as e:
        logger.exception("Aggregation failed.")
        print(f"error: {friendly_error_message(e)} (details in {log_file})", file=sys.stderr)
        return EXIT_FAILURE

    json.dump([row.to_dict() for row in report], sys.stdout, ensure_ascii=False, indent=args.indent)
    sys.stdout.write("\n")
    logger.info("Done: %d distinct reactions.", len(report))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
