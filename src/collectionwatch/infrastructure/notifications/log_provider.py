"""Notification provider that delivers by writing a log line.

Hey future me - this is the default (and test) channel. Real delivery (SMTP,
push, ...) plugs in as another INotificationProvider; the sweep doesn't care.
The last `history_size` deliveries are kept in memory so an operator (or a test)
can see what the sweep would have sent.
"""

import logging
from collections import deque

from collectionwatch.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationChannel,
    NotificationResult,
)

logger = logging.getLogger(__name__)


class LogNotificationProvider(INotificationProvider):
    """Deliver notifications of one channel to the application log."""

    def __init__(
        self,
        channel: NotificationChannel = NotificationChannel.IN_APP,
        history_size: int = 100,
    ) -> None:
        self._channel = channel
        self.sent: deque[Notification] = deque(maxlen=history_size)

    @property
    def name(self) -> str:
        return f"log:{self._channel.value}"

    @property
    def channel(self) -> NotificationChannel:
        return self._channel

    async def send(self, notification: Notification) -> NotificationResult:
        logger.info(
            f"[NOTIFICATION] {notification.type.value} → moderator "
            f"{notification.recipient_id}: {notification.title} - {notification.message}",
            extra={
                "channel": self._channel.value,
                "recipient_id": notification.recipient_id,
                **notification.data,
            },
        )
        self.sent.append(notification)
        return NotificationResult(
            success=True,
            provider_name=self.name,
            notification_type=notification.type,
        )


def default_providers() -> list[INotificationProvider]:
    """One log provider per channel."""
    return [LogNotificationProvider(channel) for channel in NotificationChannel]
