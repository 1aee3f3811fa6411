"""Notification channel implementations.

Each channel handles delivery for one transport (in-app inbox, Slack,
webhook). The NotificationManager dispatches to the appropriate channel.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


# ─── Data Types ────────────────────────────────────────────────

class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationChannel(str, Enum):
    IN_APP = "in_app"
    SLACK = "slack"
    WEBHOOK = "webhook"


@dataclass
class Notification:
    """A notification to be delivered to one recipient."""
    title: str
    message: str
    channel: NotificationChannel
    recipient: str = ""  # user id, Slack channel or webhook URL
    level: NotificationLevel = NotificationLevel.INFO
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "message": self.message,
            "channel": self.channel.value,
            "recipient": self.recipient,
            "level": self.level.value,
            "metadata": self.metadata,
            "created_at": self.created_at,
        }


@dataclass
class DeliveryResult:
    """Result of a notification delivery attempt."""
    success: bool
    channel: NotificationChannel
    recipient: str
    message: str = ""
    error: Optional[str] = None
    delivered_at: Optional[str] = None


# ─── Base Channel ──────────────────────────────────────────────

class BaseChannel(ABC):
    """Abstract base for notification channels."""

    channel_type: NotificationChannel

    @abstractmethod
    async def send(self, notification: Notification) -> DeliveryResult:
        """Send a notification through this channel."""
        ...

    @abstractmethod
    async def validate_config(self, config: dict) -> tuple[bool, Optional[str]]:
        """Validate channel-specific configuration."""
        ...

    def _delivered(self, recipient: str, message: str) -> DeliveryResult:
        return DeliveryResult(
            success=True,
            channel=self.channel_type,
            recipient=recipient,
            message=message,
            delivered_at=datetime.now(timezone.utc).isoformat(),
        )

    def _failed(self, recipient: str, error: str) -> DeliveryResult:
        return DeliveryResult(
            success=False, channel=self.channel_type, recipient=recipient, error=error
        )


# ─── In-App Channel ────────────────────────────────────────────

class InAppChannel(BaseChannel):
    """Keep notifications in a per-recipient inbox in memory."""

    channel_type = NotificationChannel.IN_APP

    def __init__(self, config: dict = None):
        self.config = config or {}
        self._inbox: dict[str, list[Notification]] = defaultdict(list)

    async def send(self, notification: Notification) -> DeliveryResult:
        if not notification.recipient:
            return self._failed("", "No recipient")
        self._inbox[notification.recipient].append(notification)
        return self._delivered(notification.recipient, "Stored in inbox")

    def inbox(self, recipient: str) -> list[Notification]:
        return list(self._inbox.get(recipient, []))

    def clear(self) -> None:
        self._inbox.clear()

    async def validate_config(self, config: dict) -> tuple[bool, Optional[str]]:
        return True, None


# ─── Slack Channel ─────────────────────────────────────────────

class SlackChannel(BaseChannel):
    """Send notifications to Slack through an incoming webhook.

    Config:
        webhook_url: Slack incoming webhook
        timeout: request timeout in seconds
    """

    channel_type = NotificationChannel.SLACK

    LEVEL_EMOJI = {
        NotificationLevel.INFO: "",
        NotificationLevel.SUCCESS: ":white_check_mark:",
        NotificationLevel.WARNING: ":warning:",
        NotificationLevel.ERROR: ":rotating_light:",
    }

    def __init__(self, config: dict = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or {}
        self._transport = transport

    def build_payload(self, notification: Notification) -> dict:
        emoji = self.LEVEL_EMOJI.get(notification.level, "")
        payload: dict[str, Any] = {
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": f"{emoji} {notification.title}".strip()},
                },
                {"type": "section", "text": {"type": "mrkdwn", "text": notification.message}},
            ],
        }
        if notification.recipient:
            payload["channel"] = notification.recipient
        fields = [
            {"type": "mrkdwn", "text": f"*{key}:*\n{value}"}
            for key, value in list(notification.metadata.items())[:10]
            if value
        ]
        if fields:
            payload["blocks"].append({"type": "section", "fields": fields})
        return payload

    async def send(self, notification: Notification) -> DeliveryResult:
        webhook_url = self.config.get("webhook_url")
        if not webhook_url:
            return self._failed(notification.recipient, "No Slack webhook URL configured")
        try:
            async with httpx.AsyncClient(
                timeout=self.config.get("timeout", 10), transport=self._transport
            ) as client:
                response = await client.post(webhook_url, json=self.build_payload(notification))
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Slack send failed: %s", e)
            return self._failed(notification.recipient, str(e))
        return self._delivered(notification.recipient, "Slack message sent")

    async def validate_config(self, config: dict) -> tuple[bool, Optional[str]]:
        if not config.get("webhook_url"):
            return False, "Missing webhook_url"
        return True, None


# ─── Webhook Channel ──────────────────────────────────────────

class WebhookChannel(BaseChannel):
    """POST notifications as JSON to an HTTP endpoint.

    Config:
        url: Target URL (used when the recipient is not itself a URL)
        headers: Additional headers
        timeout: request timeout in seconds
    """

    channel_type = NotificationChannel.WEBHOOK

    def __init__(self, config: dict = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or {}
        self._transport = transport

    async def send(self, notification: Notification) -> DeliveryResult:
        recipient = notification.recipient
        url = recipient if recipient.startswith(("http://", "https://")) else self.config.get("url")
        if not url:
            return self._failed(recipient, "No webhook URL")

        headers = {
            "Content-Type": "application/json",
            "X-Workflow-Event": "notification",
            **self.config.get("headers", {}),
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.config.get("timeout", 15), transport=self._transport
            ) as client:
                response = await client.post(url, json=notification.to_dict(), headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Webhook send failed: %s", e)
            return self._failed(recipient, str(e))
        return self._delivered(recipient, f"Webhook delivered (HTTP {response.status_code})")

    async def validate_config(self, config: dict) -> tuple[bool, Optional[str]]:
        if not config.get("url"):
            return False, "Missing url"
        return True, None
