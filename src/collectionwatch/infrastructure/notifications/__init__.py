"""Notification provider implementations."""

from collectionwatch.infrastructure.notifications.log_provider import (
    LogNotificationProvider,
    default_providers,
)

__all__ = ["LogNotificationProvider", "default_providers"]
