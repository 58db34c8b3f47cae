# tests/test_aggregator.py

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from reaction_stats.config import Settings
from reaction_stats.core.models import MessageRef, Reaction, ReactionCount
from reaction_stats.slack.offline import OfflineMessagingClient
from reaction_stats.stats.aggregator import (
    aggregate_user_reactions,
    base_reaction_name,
    build_report,
    collect_messages,
    collect_reactions,
    lookback_date,
    tally_reactions,
)
from reaction_stats.tasks.scheduler import RetryBudgetExhausted

from .fakes import FakeMessagingAPI

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def _msgs(page: int, n: int) -> list[MessageRef]:
    return [MessageRef(channel=f"C{page}", timestamp=f"{page}00.{i}") for i in range(n)]


def test_lookback_date_is_iso_day_in_utc() -> None:
    assert lookback_date(90, now=NOW) == "2024-04-01"
    assert lookback_date(1, now=NOW) == "2024-06-29"


def test_base_reaction_name_strips_skin_tone() -> None:
    assert base_reaction_name("+1::skin-tone-3") == "+1"
    assert base_reaction_name("wave") == "wave"


def test_tally_folds_variants_and_sums() -> None:
    totals = tally_reactions(
        [
            Reaction("+1", 2),
            Reaction("tada", 1),
            Reaction("+1::skin-tone-2", 3),
            Reaction("tada", 4),
        ]
    )
    assert totals == {"+1": 5, "tada": 5}
    assert list(totals) == ["+1", "tada"]


def test_build_report_sorts_desc_and_keeps_tie_order() -> None:
    report = build_report(
        {"eyes": 1, "party-parrot": 3, "heart": 3, "+1": 7},
        {"party-parrot": "https://emoji.test/pp.gif"},
    )
    assert report == [
        ReactionCount("+1", 7, None),
        ReactionCount("party-parrot", 3, "https://emoji.test/pp.gif"),
        ReactionCount("heart", 3, None),
        ReactionCount("eyes", 1, None),
    ]
    assert report[1].to_dict() == {"name": "party-parrot", "count": 3, "emoji_url": "https://emoji.test/pp.gif"}


@pytest.mark.asyncio
async def test_collect_messages_single_page_makes_one_call() -> None:
    api = FakeMessagingAPI({1: _msgs(1, 3)}, {})

    messages = await collect_messages(api, "U1", after="2024-01-01", page_size=50, cooldown_seconds=0)

    assert messages == _msgs(1, 3)
    assert api.search_calls == [("U1", 1, "2024-01-01", 50)]


@pytest.mark.asyncio
async def test_collect_messages_fans_out_remaining_pages() -> None:
    pages = {p: _msgs(p, 2) for p in range(1, 6)}
    api = FakeMessagingAPI(pages, {}, search_failures={3: 1})

    messages = await collect_messages(api, "U1", after="2024-01-01", concurrency=2, cooldown_seconds=0)

    # page 3 failed once and was retried after pages 4 and 5
    expected = pages[1] + pages[2] + pages[4] + pages[5] + pages[3]
    assert messages == expected
    assert api.max_in_flight <= 2
    assert [c[1] for c in api.search_calls].count(3) == 2


@pytest.mark.asyncio
async def test_collect_messages_retries_first_page() -> None:
    api = FakeMessagingAPI({1: _msgs(1, 1)}, {}, search_failures={1: 2})

    messages = await collect_messages(api, "U1", after="2024-01-01", cooldown_seconds=0)

    assert messages == _msgs(1, 1)
    assert len(api.search_calls) == 3


@pytest.mark.asyncio
async def test_collect_reactions_flattens_and_bounds_concurrency() -> None:
    messages = _msgs(1, 6)
    reactions = {(m.channel, m.timestamp): [Reaction("+1", 1), Reaction("eyes", 2)] for m in messages}
    flaky = (messages[0].channel, messages[0].timestamp)
    api = FakeMessagingAPI({1: messages}, reactions, reaction_failures={flaky: 1})

    result = await collect_reactions(api, messages, concurrency=4, cooldown_seconds=0)

    assert len(result) == 12
    assert tally_reactions(result) == {"+1": 6, "eyes": 12}
    assert api.max_in_flight <= 4
    assert api.reaction_calls.count(flaky) == 2


@pytest.mark.asyncio
async def test_collect_reactions_honours_retry_budget() -> None:
    messages = _msgs(1, 2)
    broken = (messages[1].channel, messages[1].timestamp)
    api = FakeMessagingAPI({1: messages}, {}, reaction_failures={broken: 10})

    with pytest.raises(RetryBudgetExhausted):
        await collect_reactions(api, messages, cooldown_seconds=0, max_failed_waves=2)


@pytest.mark.asyncio
async def test_aggregate_user_reactions_end_to_end(settings: Settings) -> None:
    pages = {1: _msgs(1, 2), 2: _msgs(2, 1)}
    reactions = {
        ("C1", "100.0"): [Reaction("+1", 2), Reaction("party-parrot", 1)],
        ("C1", "100.1"): [Reaction("+1::skin-tone-5", 1)],
        ("C2", "200.0"): [Reaction("party-parrot", 2), Reaction("eyes", 1)],
    }
    api = FakeMessagingAPI(
        pages,
        reactions,
        custom_emoji={"party-parrot": "https://emoji.test/pp.gif"},
        reaction_failures={("C2", "200.0"): 1},
    )

    report = await aggregate_user_reactions(api, "U42", settings, now=NOW)

    assert report == [
        ReactionCount("+1", 3, None),
        ReactionCount("party-parrot", 3, "https://emoji.test/pp.gif"),
        ReactionCount("eyes", 1, None),
    ]
    assert {c[2] for c in api.search_calls} == {"2024-04-01"}
    assert {c[3] for c in api.search_calls} == {settings.search_page_size}


@pytest.mark.asyncio
async def test_aggregate_with_offline_client(settings: Settings) -> None:
    report = await aggregate_user_reactions(OfflineMessagingClient(), "U1", replace(settings, reactions_concurrency=4))

    assert [(r.name, r.count) for r in report] == [
        ("+1", 18),
        ("party-parrot", 12),
        ("tada", 6),
        ("heart", 6),
        ("joy", 6),
        ("eyes", 3),
    ]
    assert report[1].emoji_url == "https://emoji.example/party-parrot.gif"


@pytest.mark.asyncio
async def test_custom_emoji_listing_is_retried(settings: Settings) -> None:
    api = FakeMessagingAPI(
        {1: _msgs(1, 1)},
        {("C1", "100.0"): [Reaction("party-parrot", 2)]},
        custom_emoji={"party-parrot": "https://emoji.test/pp.gif"},
        emoji_failures=1,
    )

    report = await aggregate_user_reactions(api, "U42", settings, now=NOW)

    assert report == [ReactionCount("party-parrot", 2, "https://emoji.test/pp.gif")]
    assert api.emoji_calls == 2


@pytest.mark.asyncio
async def test_custom_emoji_listing_honours_retry_budget(settings: Settings) -> None:
    api = FakeMessagingAPI({1: _msgs(1, 1)}, {}, emoji_failures=10)

    with pytest.raises(RetryBudgetExhausted):
        await aggregate_user_reactions(api, "U42", replace(settings, max_failed_waves=2), now=NOW)

    assert api.emoji_calls == 2
