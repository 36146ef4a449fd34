"""Configuration module for collectionwatch."""

from .settings import (
    DatabaseSettings,
    NotificationSettings,
    ObservabilitySettings,
    Settings,
    WebServiceSettings,
    get_settings,
)

__all__ = [
    "DatabaseSettings",
    "NotificationSettings",
    "ObservabilitySettings",
    "Settings",
    "WebServiceSettings",
    "get_settings",
]
