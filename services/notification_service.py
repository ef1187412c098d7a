"""
Notification dispatcher: formats new works and delivers them in order.
"""
import aiohttp
import asyncio
from typing import Awaitable, Callable, List, Optional

from core.config import Settings
from core.logger import get_logger
from models.entry import EnrichmentMap, Entry
from services.notification.base import NotificationChannel
from services.notification.discord import DiscordWebhookNotifier
from services.notification.formatters import (
    format_batch_messages,
    format_empty_listing_alert,
    format_entry_line,
)

logger = get_logger(__name__)


class NotificationDispatcher:
    """
    Delivers new works oldest-first over a single channel, strictly one
    message at a time. Small deltas go out one message per work; larger
    ones are merged into numbered batches.
    """

    def __init__(
        self,
        settings: Settings,
        channel: Optional[NotificationChannel] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.channel = channel or DiscordWebhookNotifier(settings, sleep=sleep)
        self.item_base_url = settings.ITEM_BASE_URL
        self.batch_threshold = settings.DISCORD_BATCH_THRESHOLD
        self.max_lines = settings.DISCORD_MAX_LINES_PER_MESSAGE
        self.message_delay = settings.DISCORD_MESSAGE_DELAY
        self.admin_role_id = settings.DISCORD_ADMIN_ROLE_ID
        self.sleep = sleep

    def build_messages(
        self, entries: List[Entry], details: Optional[EnrichmentMap] = None
    ) -> List[str]:
        """Messages in send order for entries already sorted oldest-first."""
        details = details or {}
        lines = [
            format_entry_line(entry, self.item_base_url, details.get(entry.id))
            for entry in entries
        ]
        if len(lines) > self.batch_threshold:
            return format_batch_messages(lines, self.max_lines)
        return lines

    async def dispatch(
        self,
        session: aiohttp.ClientSession,
        entries: List[Entry],
        details: Optional[EnrichmentMap] = None,
    ) -> int:
        """
        Sends every message and returns how many were sent.
        A ChannelFatalError aborts the remaining messages and propagates.
        """
        messages = self.build_messages(entries, details)
        logger.info(
            f"[NOTIFIER] Sending {len(entries)} works in {len(messages)} message(s) "
            f"via {self.channel.channel_name}"
        )

        for idx, message in enumerate(messages):
            if idx > 0:
                await self.sleep(self.message_delay)
            await self.channel.send_message(session, message)

        return len(messages)

    async def send_empty_listing_alert(self, session: aiohttp.ClientSession) -> None:
        message = format_empty_listing_alert(self.admin_role_id)
        logger.warning("[NOTIFIER] Listing parsed to zero works, sending alert")
        await self.channel.send_message(
            session, message, mention_roles=bool(self.admin_role_id)
        )
