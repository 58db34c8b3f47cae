# src/reaction_stats/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- ensures the local (gitignored) data directory exists,
- picks the concrete MessagingAPI (Slack or offline demo),
- runs the aggregation with the resolved settings.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

from ..config import Settings, get_settings
from ..core.models import ReactionCount
from ..core.ports import MessagingAPI
from ..slack.client import SlackWebClient
from ..slack.offline import OfflineMessagingClient
from ..stats.aggregator import aggregate_user_reactions

logger = logging.getLogger(__name__)


def ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


@contextlib.asynccontextmanager
async def open_messaging_api(
        settings: Settings,
        *,
        offline: bool = False,
        token: str | None = None,
) -> AsyncIterator[MessagingAPI]:
    """
    Yield the MessagingAPI to use for this run and close it afterwards.

    Offline mode never touches the network. Otherwise a token is required
    (RuntimeError from SlackWebClient if none is configured).
    """
    if offline:
        logger.info("Offline demo mode: using built-in sample data")
        yield OfflineMessagingClient()
        return

    async with SlackWebClient.from_settings(settings, token=token) as client:
        yield client


async def run_report(
        user_id: str,
        *,
        settings: Settings | None = None,
        offline: bool = False,
        token: str | None = None,
) -> list[ReactionCount]:
    """
    Build the reaction report for `user_id`.

    Keeping settings injectable makes this easy to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    async with open_messaging_api(settings, offline=offline, token=token) as api:
        return await aggregate_user_reactions(api, user_id, settings)
