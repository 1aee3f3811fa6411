"""Adapter exposing the NotificationManager as the engine's notification sink."""

from typing import Any, Optional

from notifications.channels import NotificationChannel, NotificationLevel
from notifications.manager import NotificationManager, get_notification_manager
from workflow.interfaces import DeliveryReceipt, NotificationSink


class ManagerNotificationSink(NotificationSink):
    def __init__(self, manager: Optional[NotificationManager] = None):
        self._manager = manager or get_notification_manager()

    async def notify(
        self,
        recipients: list[str],
        title: str,
        message: str,
        channel: str = "in_app",
        level: str = "info",
        metadata: Optional[dict[str, Any]] = None,
    ) -> list[DeliveryReceipt]:
        try:
            target = NotificationChannel(channel)
        except ValueError:
            return [
                DeliveryReceipt(recipient=r, success=False, channel=channel,
                                error=f"Unknown channel: {channel}")
                for r in recipients
            ]
        try:
            notification_level = NotificationLevel(level)
        except ValueError:
            notification_level = NotificationLevel.INFO

        results = await self._manager.send_multi(
            title=title,
            message=message,
            channel=target,
            recipients=recipients,
            level=notification_level,
            metadata=metadata,
        )
        return [
            DeliveryReceipt(
                recipient=result.recipient or recipient,
                success=result.success,
                channel=result.channel.value,
                error=result.error,
            )
            for recipient, result in zip(recipients, results)
        ]
