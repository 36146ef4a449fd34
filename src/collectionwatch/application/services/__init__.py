"""Application services."""

from collectionwatch.application.services.collection_service import CollectionService
from collectionwatch.application.services.notification_policy import (
    ReleaseNotificationPolicy,
    SkipReason,
)
from collectionwatch.application.services.notification_sweep_service import (
    NotificationSweepService,
    SweepResult,
)
from collectionwatch.application.services.tag_service import TagService, TagWeight

__all__ = [
    "CollectionService",
    "NotificationSweepService",
    "ReleaseNotificationPolicy",
    "SkipReason",
    "SweepResult",
    "TagService",
    "TagWeight",
]
