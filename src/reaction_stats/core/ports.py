# src/reaction_stats/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the pipeline.

The aggregation code depends on Protocols instead of concrete API clients.
This keeps the messaging platform swappable and makes testing easier.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

from .models import MessagePage, Reaction

T = TypeVar("T")

AsyncTask = Callable[[], Awaitable[T]]
# Zero-argument async operation handed to the scheduler; e.g. lambda: api.get_reactions(ch, ts).


class MessagingAPI(Protocol):
    """
    Remote platform port: the three calls the aggregation pipeline needs.

    Implementations raise on any failure (rate limiting included); the caller's
    scheduler decides whether and when to retry.
    """

    async def search_messages(
            self,
            user_id: str,
            page: int,
            *,
            after: str,
            count: int = 100,
    ) -> MessagePage: ...

    async def get_reactions(self, channel: str, timestamp: str) -> list[Reaction]: ...

    async def list_custom_emoji(self) -> dict[str, str]: ...
