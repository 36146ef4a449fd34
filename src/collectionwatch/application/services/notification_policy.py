"""Decides which releases a collection gets notified about."""

from collections.abc import Collection
from datetime import datetime, timedelta
from enum import Enum

from collectionwatch.domain.entities import (
    CollectionInfo,
    ReleaseCandidate,
    ensure_utc_aware,
)


class SkipReason(str, Enum):
    """Why a release candidate produced no notification."""

    IGNORED_RELEASE = "ignored_release"
    ALREADY_OWNED = "already_owned"
    IGNORED_ATTRIBUTE = "ignored_attribute"
    IN_IGNORE_TIME_RANGE = "in_ignore_time_range"
    NO_RELEASE_DATE = "no_release_date"
    ALREADY_COVERED = "already_covered"
    TOO_FAR_AHEAD = "too_far_ahead"


# Hey future me, the notification WINDOW is (last_checked + lead, now + lead]. The previous
# sweep at time t0 already covered everything up to t0 + lead and then set last_checked = t0,
# so starting the window at last_checked + lead never notifies the same release twice.
class ReleaseNotificationPolicy:
    """Filters release candidates against a collection's preferences."""

    def skip_reason(
        self,
        collection: CollectionInfo,
        release: ReleaseCandidate,
        *,
        now: datetime,
        ignored_release_ids: Collection[int] = (),
        owned_release_ids: Collection[int] = (),
    ) -> SkipReason | None:
        """Return why release must not be notified, or None if it should be."""
        if release.release_id in ignored_release_ids:
            return SkipReason.IGNORED_RELEASE
        if release.release_id in owned_release_ids:
            return SkipReason.ALREADY_OWNED
        if collection.ignores_any(release.attributes):
            return SkipReason.IGNORED_ATTRIBUTE
        if release.release_date is None:
            return SkipReason.NO_RELEASE_DATE

        release_date = ensure_utc_aware(release.release_date)
        if collection.ignore_time_range and collection.ignore_time_range.contains(
            release_date
        ):
            return SkipReason.IN_IGNORE_TIME_RANGE

        lead = timedelta(days=collection.notification_lead_days)
        if release_date <= collection.last_checked + lead:
            return SkipReason.ALREADY_COVERED
        if release_date > ensure_utc_aware(now) + lead:
            return SkipReason.TOO_FAR_AHEAD
        return None

    def should_notify(
        self,
        collection: CollectionInfo,
        release: ReleaseCandidate,
        *,
        now: datetime,
        ignored_release_ids: Collection[int] = (),
        owned_release_ids: Collection[int] = (),
    ) -> bool:
        """Check if release produces a notification for collection at now."""
        return (
            self.skip_reason(
                collection,
                release,
                now=now,
                ignored_release_ids=ignored_release_ids,
                owned_release_ids=owned_release_ids,
            )
            is None
        )
