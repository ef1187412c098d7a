"""
Discord webhook notification channel.
"""
import aiohttp
import asyncio
from typing import Awaitable, Callable, Dict, Any

from core import constants
from core.config import Settings
from core.exceptions import ChannelFatalError, ChannelRateLimited
from core.logger import get_logger
from core.utils import parse_retry_after
from services.notification.base import NotificationChannel

logger = get_logger(__name__)


class DiscordWebhookNotifier(NotificationChannel):
    """Posts plain-text messages to a Discord webhook, honouring 429s."""

    def __init__(
        self,
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.webhook_url = settings.DISCORD_WEBHOOK_URL
        self.max_attempts = settings.DISCORD_MAX_ATTEMPTS
        self.retry_margin = settings.DISCORD_RETRY_MARGIN
        self.sleep = sleep

    @property
    def channel_name(self) -> str:
        return "discord"

    def is_enabled(self) -> bool:
        return bool(self.webhook_url)

    def build_payload(self, content: str, mention_roles: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"content": content}
        payload["allowed_mentions"] = {"parse": ["roles"] if mention_roles else []}
        return payload

    async def send_message(
        self,
        session: aiohttp.ClientSession,
        content: str,
        mention_roles: bool = False,
    ) -> None:
        """
        Posts content, sleeping out any 429 (server hint plus margin) and
        resending the identical payload. Any other failure is fatal at once.
        """
        payload = self.build_payload(content, mention_roles)

        for attempt in range(1, self.max_attempts + 1):
            try:
                await self._post(session, payload)
                return
            except ChannelRateLimited as e:
                if attempt == self.max_attempts:
                    raise ChannelFatalError(
                        f"Discord still rate limited after {attempt} attempts",
                        {"retry_after": e.retry_after},
                    ) from e
                wait = e.retry_after + self.retry_margin
                logger.warning(
                    f"[NOTIFIER] Discord 429 (Too Many Requests). Waiting {wait:.2f}s...",
                    context={"attempt": attempt},
                )
                await self.sleep(wait)

    async def _post(self, session: aiohttp.ClientSession, payload: Dict[str, Any]) -> None:
        try:
            async with session.post(self.webhook_url, json=payload) as resp:
                if 200 <= resp.status < 300:
                    return

                if resp.status == 429:
                    raise ChannelRateLimited(
                        "Discord rate limited", retry_after=await self._retry_after(resp)
                    )

                body = await resp.text()
                raise ChannelFatalError(
                    f"Discord webhook failed: {resp.status}",
                    {"status": resp.status, "body": body[:200]},
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ChannelFatalError(
                "Discord webhook request failed", {"error": f"{type(e).__name__}: {e}"}
            ) from e

    async def _retry_after(self, resp: aiohttp.ClientResponse) -> float:
        """Seconds to wait: JSON `retry_after` first, then the Retry-After header."""
        try:
            data = await resp.json(content_type=None)
        except ValueError:
            data = None

        if isinstance(data, dict):
            seconds = parse_retry_after(data.get("retry_after"))
            if seconds is not None:
                return seconds

        header = parse_retry_after(resp.headers.get("Retry-After"))
        if header is not None:
            return header
        return constants.DEFAULT_DISCORD_RETRY_AFTER
