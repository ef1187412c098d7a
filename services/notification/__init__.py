"""
Notification package: formatters plus the Discord webhook channel.
"""

from services.notification import formatters
from services.notification.discord import DiscordWebhookNotifier

__all__ = ["formatters", "DiscordWebhookNotifier"]
