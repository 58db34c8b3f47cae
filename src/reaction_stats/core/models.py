# src/reaction_stats/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class MessageRef:
    """A message known to carry reactions (channel id + message timestamp)."""

    channel: str
    timestamp: str


@dataclass(slots=True, frozen=True)
class MessagePage:
    messages: list[MessageRef] = field(default_factory=list)
    total_pages: int = 1


@dataclass(slots=True, frozen=True)
class Reaction:
    name: str
    count: int


@dataclass(slots=True, frozen=True)
class ReactionCount:
    """
    One row of the final report.

    Notes:
    - name is the platform's reaction name with skin-tone variants folded in
    - emoji_url is set only for custom (workspace-uploaded) emoji
    """

    name: str
    count: int
    emoji_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "count": self.count, "emoji_url": self.emoji_url}
