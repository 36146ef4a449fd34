"""Release notification sweep over due collections.

Hey future me - this is the CONSUMER of list_due_collections(). One run:

1. snapshot the due collections (one query)
2. per collection: claim it by moving last_checked from the snapshot value to `now`
   in one conditional UPDATE
3. per claimed collection: load watched artists, their releases, the ignore/owned link rows
4. filter releases through ReleaseNotificationPolicy, using the snapshot last_checked
5. hand each notification to every provider whose channel it asked for
   (in-app always, email only if the collection has email_notifications on)

If another sweep moved last_checked first, the claim matches no row. That collection
is counted as skipped, nothing is sent for it, and the run goes on with the next one.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from collectionwatch.application.services.collection_service import CollectionService
from collectionwatch.application.services.notification_policy import (
    ReleaseNotificationPolicy,
)
from collectionwatch.config import NotificationSettings
from collectionwatch.domain.entities import (
    CollectionInfo,
    ReleaseCandidate,
    ensure_utc_aware,
)
from collectionwatch.domain.ports import ICatalogRepository
from collectionwatch.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationChannel,
    NotificationResult,
    NotificationType,
)
from collectionwatch.infrastructure.persistence.repositories import CatalogRepository

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Summary of one sweep run."""

    started_at: datetime
    collections_checked: int = 0
    collections_skipped: int = 0
    notifications_sent: int = 0
    delivery_failures: int = 0
    processed_collection_ids: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "started_at": self.started_at.isoformat(),
            "collections_checked": self.collections_checked,
            "collections_skipped": self.collections_skipped,
            "notifications_sent": self.notifications_sent,
            "delivery_failures": self.delivery_failures,
        }


class NotificationSweepService:
    """Runs the release notification sweep."""

    def __init__(
        self,
        session: AsyncSession,
        providers: Sequence[INotificationProvider],
        notification_settings: NotificationSettings | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        *,
        collection_service: CollectionService | None = None,
        catalog: ICatalogRepository | None = None,
        policy: ReleaseNotificationPolicy | None = None,
    ) -> None:
        self.settings = notification_settings or NotificationSettings()
        self.collections = collection_service or CollectionService(
            session, self.settings, clock
        )
        self.catalog = catalog or CatalogRepository(session)
        self.policy = policy or ReleaseNotificationPolicy()
        self.providers = list(providers)
        self.clock = clock

    def _build_notification(
        self,
        collection: CollectionInfo,
        release: ReleaseCandidate,
        release_date: datetime,
        now: datetime,
    ) -> Notification:
        release_date = ensure_utc_aware(release_date)
        upcoming = release_date > now
        channels = {NotificationChannel.IN_APP}
        if collection.email_notifications:
            channels.add(NotificationChannel.EMAIL)
        return Notification(
            type=(
                NotificationType.UPCOMING_RELEASE
                if upcoming
                else NotificationType.NEW_RELEASE
            ),
            title="Upcoming release" if upcoming else "New release",
            message=f"{release.name} ({release_date.date().isoformat()})",
            recipient_id=collection.owner_id,
            channels=frozenset(channels),
            data={
                "collection_id": collection.id,
                "release_id": release.release_id,
                "artist_id": release.artist_id,
                "release_date": release_date.isoformat(),
            },
            timestamp=now,
        )

    async def _send_to_provider(
        self, provider: INotificationProvider, notification: Notification
    ) -> NotificationResult:
        # One broken channel must not stop delivery on the others
        try:
            return await provider.send(notification)
        except Exception as e:
            logger.error(f"[NOTIFICATION] Provider {provider.name} error: {e}")
            return NotificationResult(
                success=False,
                provider_name=provider.name,
                notification_type=notification.type,
                error=str(e),
            )

    async def dispatch(self, notification: Notification) -> list[NotificationResult]:
        """Send a notification to every provider that accepts it, in parallel."""
        targets = [p for p in self.providers if p.accepts(notification)]
        if not targets:
            logger.debug("[NOTIFICATION] No provider accepts %s", notification.channels)
            return []
        return list(
            await asyncio.gather(
                *(self._send_to_provider(p, notification) for p in targets)
            )
        )

    async def notifications_for(
        self, collection: CollectionInfo, now: datetime
    ) -> list[Notification]:
        """Build the notifications one due collection gets at now."""
        collection_id = collection.require_id()
        artist_ids = await self.collections.list_watched_artists(collection_id)
        if not artist_ids:
            return []
        ignored = set(await self.collections.list_ignored_releases(collection_id))
        owned = set(await self.collections.list_owned_releases(collection_id))
        releases = await self.catalog.list_releases_by_artists(artist_ids)
        notifications: list[Notification] = []
        for release in releases:
            if release.release_date is None or not self.policy.should_notify(
                collection,
                release,
                now=now,
                ignored_release_ids=ignored,
                owned_release_ids=owned,
            ):
                continue
            notifications.append(
                self._build_notification(collection, release, release.release_date, now)
            )
        return notifications

    async def run(self, now: datetime | None = None) -> SweepResult:
        """Process every collection due at now (at most sweep_batch_size of them)."""
        now = ensure_utc_aware(now or self.clock())
        result = SweepResult(started_at=now)

        due = [c async for c in self.collections.list_due_collections(now)]
        batch = due[: self.settings.sweep_batch_size]
        logger.info(
            f"Notification sweep: {len(due)} collection(s) due, processing {len(batch)}",
            extra={"due": len(due), "batch": len(batch)},
        )

        for collection in batch:
            collection_id = collection.require_id()
            # Claim before sending: a sweep that loses the claim sends nothing
            if not await self.collections.claim_for_sweep(collection, now):
                logger.warning(
                    f"Collection {collection_id} was claimed by another sweep, skipping",
                    extra={"collection_id": collection_id},
                )
                result.collections_skipped += 1
                continue
            for notification in await self.notifications_for(collection, now):
                outcomes = await self.dispatch(notification)
                result.notifications_sent += sum(1 for o in outcomes if o.success)
                result.delivery_failures += sum(1 for o in outcomes if not o.success)
            result.collections_checked += 1
            result.processed_collection_ids.append(collection_id)

        logger.info("Notification sweep finished", extra=result.to_dict())
        return result
