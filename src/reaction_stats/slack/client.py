# src/reaction_stats/slack/client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import ConfigurationError, Settings
from ..core.models import MessagePage, MessageRef, Reaction

logger = logging.getLogger(__name__)

_AUTH_ERRORS = {
    "not_authed",
    "invalid_auth",
    "account_inactive",
    "token_revoked",
    "token_expired",
    "no_permission",
    "missing_scope",
}


class SlackAPIError(Exception):
    """Slack answered with ok=false (or a non-JSON / non-2xx response)."""

    def __init__(self, method: str, error: str, *, status_code: int | None = None) -> None:
        super().__init__(f"{method} failed: {error}")
        self.method = method
        self.error = error
        self.status_code = status_code

    @property
    def is_auth_error(self) -> bool:
        return self.error in _AUTH_ERRORS


class SlackRateLimitedError(SlackAPIError):
    """
    The call was rejected by Slack's rate limiter.

    Rate-limited calls are never retried here; they bubble up so the wave
    scheduler can cool down and retry the whole batch.
    """

    def __init__(self, method: str, *, retry_after: float | None = None) -> None:
        super().__init__(method, "ratelimited", status_code=429)
        self.retry_after = retry_after


def _parse_retry_after(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw.strip())
    except ValueError:
        return None


class SlackWebClient:
    """
    Minimal async Slack Web API client (search.messages, reactions.get, emoji.list).

    IMPORTANT:
    - The token is supplied by the caller; obtaining it is not this class's job.
    - No automatic retries: failures are raised immediately.
    - Use as an async context manager, or call aclose() when done.
    """

    def __init__(
            self,
            token: str,
            *,
            base_url: str = "https://slack.com/api",
            timeout: float = 30.0,
            http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token or not token.strip():
            raise ConfigurationError("Slack token is not set. Set REACTIONS_SLACK_TOKEN in your .env or pass --token.")

        self._token = token.strip()
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)))

    @classmethod
    def from_settings(cls, settings: Settings, *, token: str | None = None) -> "SlackWebClient":
        return cls(
            token or settings.slack_token or "",
            base_url=settings.slack_base_url,
            timeout=settings.http_timeout_seconds,
        )

    async def __aenter__(self) -> "SlackWebClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = await self._http.get(
            f"{self._base_url}/{method}",
            params=params or {},
            headers={"Authorization": f"Bearer {self._token}"},
        )

        if response.status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.debug("%s: rate limited (retry_after=%s)", method, retry_after)
            raise SlackRateLimitedError(method, retry_after=retry_after)

        if response.status_code >= 400:
            raise SlackAPIError(method, f"http_{response.status_code}", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise SlackAPIError(method, "invalid_json", status_code=response.status_code) from e

        if not isinstance(data, dict):
            raise SlackAPIError(method, "invalid_json", status_code=response.status_code)

        if not data.get("ok"):
            error = str(data.get("error") or "unknown_error")
            if error == "ratelimited":
                raise SlackRateLimitedError(method)
            raise SlackAPIError(method, error, status_code=response.status_code)

        return data

    async def search_messages(
            self,
            user_id: str,
            page: int,
            *,
            after: str,
            count: int = 100,
    ) -> MessagePage:
        data = await self._call(
            "search.messages",
            {
                "query": f"from:{user_id} has:reaction after:{after}",
                "count": count,
                "page": page,
            },
        )
        messages = data.get("messages") or {}
        matches = messages.get("matches") or []
        refs = [
            MessageRef(channel=str(m["channel"]["id"]), timestamp=str(m["ts"]))
            for m in matches
        ]
        paging = messages.get("paging") or {}
        total_pages = int(paging.get("pages") or 1)
        return MessagePage(messages=refs, total_pages=max(1, total_pages))

    async def get_reactions(self, channel: str, timestamp: str) -> list[Reaction]:
        data = await self._call("reactions.get", {"channel": channel, "timestamp": timestamp})
        message = data.get("message") or {}
        return [
            Reaction(name=str(r["name"]), count=int(r.get("count") or 0))
            for r in message.get("reactions") or []
        ]

    async def list_custom_emoji(self) -> dict[str, str]:
        data = await self._call("emoji.list")
        emoji = data.get("emoji") or {}
        return {str(k): str(v) for k, v in emoji.items()}


def friendly_error_message(err: BaseException) -> str:
    msg = str(err).strip() or err.__class__.__name__
    if isinstance(err, SlackRateLimitedError):
        return "Slack is rate-limiting requests. Try again later or lower the concurrency."
    if isinstance(err, SlackAPIError) and err.is_auth_error:
        return f"Slack rejected the token ({err.error}). Check REACTIONS_SLACK_TOKEN and its scopes."
    if isinstance(err, httpx.TransportError):
        return f"Network error while talking to Slack: {msg}"
    return msg
