# src/reaction_stats/slack/offline.py

from __future__ import annotations

from ..core.models import MessagePage, MessageRef, Reaction

_DEMO_REACTIONS: list[list[Reaction]] = [
    [Reaction("+1", 4), Reaction("tada", 2)],
    [Reaction("+1::skin-tone-3", 1), Reaction("party-parrot", 3)],
    [Reaction("eyes", 1)],
    [Reaction("heart", 2), Reaction("+1", 1)],
    [Reaction("party-parrot", 1), Reaction("joy", 2)],
]


class OfflineMessagingClient:
    """
    Offline deterministic messaging API used for demos when no Slack token is configured.

    Behavior:
    - `messages_per_page` messages on each of `pages` search pages
    - reactions cycle through a fixed demo set
    - one custom emoji (party-parrot) so the report shows an emoji_url
    """

    def __init__(self, *, pages: int = 3, messages_per_page: int = 5) -> None:
        self.pages = max(1, pages)
        self.messages_per_page = max(0, messages_per_page)

    async def search_messages(
            self,
            user_id: str,
            page: int,
            *,
            after: str,
            count: int = 100,
    ) -> MessagePage:
        per_page = min(self.messages_per_page, count)
        messages = [
            MessageRef(channel="C0DEMO", timestamp=f"{page}.{i:06d}")
            for i in range(per_page)
        ] if 1 <= page <= self.pages else []
        return MessagePage(messages=messages, total_pages=self.pages)

    async def get_reactions(self, channel: str, timestamp: str) -> list[Reaction]:
        page_s, _, idx_s = timestamp.partition(".")
        idx = (int(page_s) * self.messages_per_page + int(idx_s)) if idx_s else 0
        return list(_DEMO_REACTIONS[idx % len(_DEMO_REACTIONS)])

    async def list_custom_emoji(self) -> dict[str, str]:
        return {"party-parrot": "https://emoji.example/party-parrot.gif"}
