"""Notification provider interface for the release notification sweep.

Hey future me - this is the PORT that notification channels implement. The sweep
(NotificationSweepService) builds Notification objects and hands them to every
provider that supports the type. Providers decide how to deliver (log line,
email, ...); the sweep never knows about SMTP or HTTP.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Types of notifications the sweep produces."""

    UPCOMING_RELEASE = "upcoming_release"
    NEW_RELEASE = "new_release"


class NotificationChannel(str, Enum):
    """Delivery channel requested by the collection's preferences."""

    EMAIL = "email"
    IN_APP = "in_app"


@dataclass
class Notification:
    """Notification payload passed to providers.

    Example:
        notif = Notification(
            type=NotificationType.UPCOMING_RELEASE,
            title="Upcoming release",
            message="Artist - Album (2026-11-01)",
            recipient_id=42,
            data={"collection_id": 7, "release_id": 123},
        )
    """

    type: NotificationType
    title: str
    message: str
    recipient_id: int
    channels: frozenset[NotificationChannel] = frozenset({NotificationChannel.IN_APP})
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime | None = None

    def __post_init__(self) -> None:
        if self.timestamp is None:
            self.timestamp = datetime.now(UTC)


@dataclass
class NotificationResult:
    """Result of handing a notification to one provider."""

    success: bool
    provider_name: str
    notification_type: NotificationType
    error: str | None = None


class INotificationProvider(ABC):
    """Interface for notification channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique provider name, e.g. "log" or "email"."""

    @property
    @abstractmethod
    def channel(self) -> NotificationChannel:
        """Channel this provider delivers on."""

    @abstractmethod
    async def send(self, notification: Notification) -> NotificationResult:
        """Deliver a notification."""

    def accepts(self, notification: Notification) -> bool:
        """Check if the notification asked for this provider's channel."""
        return self.channel in notification.channels


__all__ = [
    "INotificationProvider",
    "Notification",
    "NotificationChannel",
    "NotificationResult",
    "NotificationType",
]
