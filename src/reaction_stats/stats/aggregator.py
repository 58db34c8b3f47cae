# src/reaction_stats/stats/aggregator.py

"""
Per-user reaction aggregation.

Flow:
1. fetch the workspace's custom emoji (name -> image URL)
2. fetch search page 1 to learn how many pages there are
3. fan out pages 2..N through the wave scheduler (search concurrency)
4. fan out reactions.get for every message (reactions concurrency)
5. fold skin-tone variants, sum counts, sort by count descending
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from functools import partial

from ..config import Settings
from ..core.models import MessagePage, MessageRef, Reaction, ReactionCount
from ..core.ports import AsyncTask, MessagingAPI
from ..tasks.scheduler import DEFAULT_COOLDOWN_SECONDS, run_concurrent

logger = logging.getLogger(__name__)

SKIN_TONE_SEPARATOR = "::"


def lookback_date(days: int, *, now: datetime | None = None) -> str:
    """ISO date (YYYY-MM-DD, UTC) `days` before `now`; used as the search `after:` filter."""
    now = now or datetime.now(timezone.utc)
    return (now - timedelta(days=days)).date().isoformat()


def base_reaction_name(name: str) -> str:
    """'+1::skin-tone-3' -> '+1'."""
    return name.split(SKIN_TONE_SEPARATOR, 1)[0]


async def collect_messages(
        api: MessagingAPI,
        user_id: str,
        *,
        after: str,
        page_size: int = 100,
        concurrency: int = 10,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        max_failed_waves: int | None = None,
) -> list[MessageRef]:
    """Collect every message of `user_id` that has reactions, page 1 first."""
    search = partial(api.search_messages, user_id, after=after, count=page_size)

    first_pages: list[MessagePage] = await run_concurrent(
        [partial(search, 1)],
        1,
        cooldown_seconds=cooldown_seconds,
        max_failed_waves=max_failed_waves,
    )
    first = first_pages[0]
    messages = list(first.messages)

    if first.total_pages > 1:
        logger.info("Search returned %d pages; fetching the rest", first.total_pages)
        page_tasks: list[AsyncTask[MessagePage]] = [
            partial(search, page) for page in range(2, first.total_pages + 1)
        ]
        pages = await run_concurrent(
            page_tasks,
            concurrency,
            cooldown_seconds=cooldown_seconds,
            max_failed_waves=max_failed_waves,
        )
        for page in pages:
            messages.extend(page.messages)

    return messages


async def collect_reactions(
        api: MessagingAPI,
        messages: Iterable[MessageRef],
        *,
        concurrency: int = 25,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        max_failed_waves: int | None = None,
) -> list[Reaction]:
    """Fetch reactions for every message and flatten them into one list."""
    tasks: list[AsyncTask[list[Reaction]]] = [
        partial(api.get_reactions, m.channel, m.timestamp) for m in messages
    ]
    per_message = await run_concurrent(
        tasks,
        concurrency,
        cooldown_seconds=cooldown_seconds,
        max_failed_waves=max_failed_waves,
    )
    return [r for reactions in per_message for r in reactions]


def tally_reactions(reactions: Iterable[Reaction]) -> dict[str, int]:
    totals: dict[str, int] = {}
    for r in reactions:
        key = base_reaction_name(r.name)
        totals[key] = totals.get(key, 0) + r.count
    return totals


def build_report(totals: dict[str, int], custom_emoji: dict[str, str] | None = None) -> list[ReactionCount]:
    custom_emoji = custom_emoji or {}
    # sorted() is stable, so equal counts keep first-appearance order.
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return [ReactionCount(name=name, count=count, emoji_url=custom_emoji.get(name)) for name, count in ranked]


async def aggregate_user_reactions(
        api: MessagingAPI,
        user_id: str,
        settings: Settings,
        *,
        now: datetime | None = None,
) -> list[ReactionCount]:
    """Run the whole pipeline for one user and return the ranked report."""
    after = lookback_date(settings.lookback_days, now=now)
    retry = {
        "cooldown_seconds": settings.retry_cooldown_seconds,
        "max_failed_waves": settings.max_failed_waves,
    }

    (custom_emoji,) = await run_concurrent([api.list_custom_emoji], 1, **retry)

    messages = await collect_messages(
        api,
        user_id,
        after=after,
        page_size=settings.search_page_size,
        concurrency=settings.search_concurrency,
        **retry,
    )
    logger.info("%d messages with reactions found since %s", len(messages), after)

    reactions = await collect_reactions(api, messages, concurrency=settings.reactions_concurrency, **retry)
    totals = tally_reactions(reactions)
    logger.info("%d total reactions aggregated (%d distinct)", sum(totals.values()), len(totals))

    return build_report(totals, custom_emoji)
