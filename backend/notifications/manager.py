"""Notification Manager — central dispatcher for all notification channels."""

import logging
from typing import Optional

from notifications.channels import (
    BaseChannel,
    DeliveryResult,
    InAppChannel,
    Notification,
    NotificationChannel,
    NotificationLevel,
    SlackChannel,
    WebhookChannel,
)

logger = logging.getLogger(__name__)


class NotificationManager:
    """Central notification dispatcher.

    Manages channel registration and routes each notification to the
    channel it names. Singleton — use get_notification_manager().
    """

    def __init__(self):
        self._channels: dict[NotificationChannel, BaseChannel] = {}
        self._initialized = False

    def register_channel(self, channel: BaseChannel) -> None:
        """Register a notification channel, replacing any of the same type."""
        self._channels[channel.channel_type] = channel
        logger.info("Notification channel registered: %s", channel.channel_type.value)

    def get_channel(self, channel: NotificationChannel) -> Optional[BaseChannel]:
        return self._channels.get(NotificationChannel(channel))

    def configure_channels(self, config: dict) -> None:
        """Configure channels from app settings.

        Args:
            config: Dict with channel configs, as produced by
                ``Settings.notification_channels``:
                {
                    "in_app": {},
                    "slack": {"webhook_url": ...},
                    "webhook": {"url": ...},
                }
        """
        if "in_app" in config:
            self.register_channel(InAppChannel(config["in_app"]))

        if "slack" in config:
            self.register_channel(SlackChannel(config["slack"]))

        if "webhook" in config:
            self.register_channel(WebhookChannel(config["webhook"]))

        self._initialized = True

    async def send(self, notification: Notification) -> DeliveryResult:
        """Send a notification through the channel it names."""
        channel = self._channels.get(notification.channel)
        if not channel:
            return DeliveryResult(
                success=False,
                channel=notification.channel,
                recipient=notification.recipient,
                error=f"Channel not configured: {notification.channel.value}",
            )

        result = await channel.send(notification)

        if result.success:
            logger.info(
                "Notification sent via %s to %s", notification.channel.value, notification.recipient
            )
        else:
            logger.warning(
                "Notification failed via %s: %s", notification.channel.value, result.error
            )

        return result

    async def send_multi(
        self,
        title: str,
        message: str,
        channel: NotificationChannel,
        recipients: list[str],
        level: NotificationLevel = NotificationLevel.INFO,
        metadata: dict = None,
    ) -> list[DeliveryResult]:
        """Send the same notification to several recipients on one channel.

        Returns:
            List of DeliveryResults, one per recipient, in order
        """
        results = []
        for recipient in recipients:
            notification = Notification(
                title=title,
                message=message,
                channel=channel,
                recipient=recipient,
                level=level,
                metadata=metadata or {},
            )
            results.append(await self.send(notification))
        return results

    def get_status(self) -> dict:
        """Get notification manager status."""
        return {
            "initialized": self._initialized,
            "channels": [ch.value for ch in self._channels.keys()],
        }


# ─── Singleton ─────────────────────────────────────────────────

_manager: Optional[NotificationManager] = None


def get_notification_manager() -> NotificationManager:
    """Get or create the singleton NotificationManager."""
    global _manager
    if _manager is None:
        _manager = NotificationManager()
    return _manager
