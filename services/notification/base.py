"""
Notification System - Strategy Pattern Implementation

This module defines the abstract interface for notification channels.
"""
from abc import ABC, abstractmethod

import aiohttp


class NotificationChannel(ABC):
    """
    Abstract base class for notification channels (Strategy Pattern).

    Usage:
        class SlackChannel(NotificationChannel):
            async def send_message(self, session, content, mention_roles=False):
                # Slack-specific implementation
                pass
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Returns the name of this notification channel (e.g., 'discord')."""
        pass

    @abstractmethod
    async def send_message(
        self,
        session: aiohttp.ClientSession,
        content: str,
        mention_roles: bool = False,
    ) -> None:
        """
        Deliver one text message.

        Args:
            session: aiohttp client session
            content: Message text
            mention_roles: Allow role mentions in content to ping

        Raises:
            ChannelFatalError: delivery failed and will not be retried
        """
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """True if this channel has the configuration it needs to send."""
        pass
