"""Collection service for release tracking collections."""

import logging
from collections.abc import AsyncIterator, Callable, Iterable
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from collectionwatch.config import NotificationSettings
from collectionwatch.domain.entities import (
    CollectionInfo,
    CollectionLinks,
    IgnoreTimeRange,
    ensure_utc_aware,
)
from collectionwatch.domain.exceptions import (
    EntityNotFoundException,
    ValidationException,
)
from collectionwatch.domain.ports import ICatalogRepository, ICollectionRepository
from collectionwatch.domain.value_objects import (
    DEFAULT_IGNORED_ATTRIBUTES,
    CollectionLinkType,
    parse_attributes,
)
from collectionwatch.infrastructure.persistence.repositories import (
    CatalogRepository,
    CollectionRepository,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CollectionService:
    """Service for managing collections and their link rows.

    Every public method is one unit of work: it only stages changes in the
    session, and the caller's transaction scope commits or rolls back.
    """

    # Hey future me, `clock` is injectable so tests can pin "now" - creation defaults
    # (last_checked = now - 7 days) are otherwise impossible to assert exactly.
    def __init__(
        self,
        session: AsyncSession,
        notification_settings: NotificationSettings | None = None,
        clock: Callable[[], datetime] = _utc_now,
        *,
        collections: ICollectionRepository | None = None,
        catalog: ICatalogRepository | None = None,
    ) -> None:
        """Initialize collection service.

        Args:
            session: Database session
            notification_settings: Defaults for new collections
            clock: Returns the current time
            collections: Collection repository override (tests)
            catalog: Catalog repository override (tests)
        """
        self.repository = collections or CollectionRepository(session)
        self.catalog = catalog or CatalogRepository(session)
        self.notification_settings = notification_settings or NotificationSettings()
        self.clock = clock

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def _require_collection(self, collection_id: int) -> None:
        if not await self.repository.exists(collection_id):
            raise EntityNotFoundException("Collection", collection_id)

    async def _require_target(self, link_type: CollectionLinkType, target_id: int) -> None:
        if link_type.target_type == "Artist":
            found = await self.catalog.artist_exists(target_id)
        else:
            found = await self.catalog.release_exists(target_id)
        if not found:
            raise EntityNotFoundException(link_type.target_type, target_id)

    async def get_collection(self, collection_id: int) -> CollectionInfo:
        """Get a collection.

        Raises:
            EntityNotFoundException: If the collection does not exist
        """
        collection = await self.repository.get_by_id(collection_id)
        if collection is None:
            raise EntityNotFoundException("Collection", collection_id)
        return collection

    async def list_collections_for_owner(self, owner_id: int) -> list[CollectionInfo]:
        """List an owner's collections."""
        return await self.repository.list_by_owner(owner_id)

    async def list_public_collections(
        self, limit: int = 100, offset: int = 0
    ) -> list[CollectionInfo]:
        """List public collections."""
        return await self.repository.list_public(limit, offset)

    async def get_links(self, collection_id: int) -> CollectionLinks:
        """Load all link rows of a collection as id lists."""
        await self._require_collection(collection_id)
        return CollectionLinks(
            collection_id=collection_id,
            watched_artist_ids=await self.repository.list_link_targets(
                CollectionLinkType.WATCH_ARTIST, collection_id
            ),
            discography_artist_ids=await self.repository.list_link_targets(
                CollectionLinkType.DISCOGRAPHY_ARTIST, collection_id
            ),
            owned_release_ids=await self.repository.list_link_targets(
                CollectionLinkType.HAS_RELEASE, collection_id
            ),
            ignored_release_ids=await self.repository.list_link_targets(
                CollectionLinkType.IGNORE_RELEASE, collection_id
            ),
        )

    # -------------------------------------------------------------------------
    # Create / update / delete
    # -------------------------------------------------------------------------

    async def create_collection(
        self,
        owner_id: int,
        is_public: bool,
        *,
        email_notifications: bool = True,
        notification_lead_days: int | None = None,
        ignored_attributes: Iterable[int] | None = None,
    ) -> CollectionInfo:
        """Create a collection for an existing owner.

        New collections start with last_checked one lookback window in the past,
        so the first notification sweep after creation already covers recent
        releases.

        Raises:
            EntityNotFoundException: If the owner does not exist
            ValidationException: On negative lead days or unknown attribute codes
        """
        if not await self.catalog.moderator_exists(owner_id):
            raise EntityNotFoundException("Moderator", owner_id)

        attributes = (
            DEFAULT_IGNORED_ATTRIBUTES
            if ignored_attributes is None
            else parse_attributes(ignored_attributes)
        )
        lead_days = (
            self.notification_settings.default_lead_days
            if notification_lead_days is None
            else notification_lead_days
        )
        collection = CollectionInfo.create(
            owner_id=owner_id,
            is_public=is_public,
            now=self.clock(),
            email_notifications=email_notifications,
            notification_lead_days=lead_days,
            ignored_attributes=attributes,
            lookback_days=self.notification_settings.initial_lookback_days,
        )
        await self.repository.add(collection)
        logger.info(
            f"Created collection {collection.id} for moderator {owner_id}",
            extra={"collection_id": collection.id, "owner_id": owner_id},
        )
        return collection

    async def update_preferences(
        self,
        collection_id: int,
        *,
        is_public: bool | None = None,
        email_notifications: bool | None = None,
        notification_lead_days: int | None = None,
        ignored_attributes: Iterable[int] | None = None,
    ) -> CollectionInfo:
        """Partially update a collection's preferences. None means "unchanged"."""
        collection = await self.get_collection(collection_id)

        if notification_lead_days is not None:
            if notification_lead_days < 0:
                raise ValidationException("Notification lead days must not be negative")
            collection.notification_lead_days = notification_lead_days
        if ignored_attributes is not None:
            collection.ignored_attributes = parse_attributes(ignored_attributes)
        if is_public is not None:
            collection.is_public = is_public
        if email_notifications is not None:
            collection.email_notifications = email_notifications

        await self.repository.update_preferences(collection)
        logger.info(f"Updated preferences of collection {collection_id}")
        return collection

    async def delete_collection(self, collection_id: int) -> None:
        """Delete a collection and all of its link rows.

        Raises:
            EntityNotFoundException: If the collection does not exist
        """
        if not await self.repository.delete(collection_id):
            raise EntityNotFoundException("Collection", collection_id)
        logger.info(f"Deleted collection {collection_id}")

    # -------------------------------------------------------------------------
    # Link rows
    # -------------------------------------------------------------------------

    async def _add_link(
        self, link_type: CollectionLinkType, collection_id: int, target_id: int
    ) -> bool:
        await self._require_collection(collection_id)
        await self._require_target(link_type, target_id)
        added = await self.repository.add_link(link_type, collection_id, target_id)
        if added:
            logger.debug(
                f"Linked {link_type.value} {target_id} to collection {collection_id}"
            )
        return added

    async def _remove_link(
        self, link_type: CollectionLinkType, collection_id: int, target_id: int
    ) -> bool:
        await self._require_collection(collection_id)
        await self._require_target(link_type, target_id)
        return await self.repository.remove_link(link_type, collection_id, target_id)

    async def _list_links(
        self, link_type: CollectionLinkType, collection_id: int
    ) -> list[int]:
        await self._require_collection(collection_id)
        return await self.repository.list_link_targets(link_type, collection_id)

    async def add_watch_artist(self, collection_id: int, artist_id: int) -> bool:
        """Watch an artist for upcoming releases. Returns False if already watched."""
        return await self._add_link(CollectionLinkType.WATCH_ARTIST, collection_id, artist_id)

    async def remove_watch_artist(self, collection_id: int, artist_id: int) -> bool:
        return await self._remove_link(
            CollectionLinkType.WATCH_ARTIST, collection_id, artist_id
        )

    async def add_discography_artist(self, collection_id: int, artist_id: int) -> bool:
        """Track an artist's complete discography. Returns False if already tracked."""
        return await self._add_link(
            CollectionLinkType.DISCOGRAPHY_ARTIST, collection_id, artist_id
        )

    async def remove_discography_artist(self, collection_id: int, artist_id: int) -> bool:
        return await self._remove_link(
            CollectionLinkType.DISCOGRAPHY_ARTIST, collection_id, artist_id
        )

    async def mark_release_owned(self, collection_id: int, release_id: int) -> bool:
        """Record that the collection owns a release."""
        return await self._add_link(CollectionLinkType.HAS_RELEASE, collection_id, release_id)

    async def unmark_release_owned(self, collection_id: int, release_id: int) -> bool:
        return await self._remove_link(
            CollectionLinkType.HAS_RELEASE, collection_id, release_id
        )

    async def ignore_release(self, collection_id: int, release_id: int) -> bool:
        """Never notify this collection about a release."""
        return await self._add_link(
            CollectionLinkType.IGNORE_RELEASE, collection_id, release_id
        )

    async def unignore_release(self, collection_id: int, release_id: int) -> bool:
        return await self._remove_link(
            CollectionLinkType.IGNORE_RELEASE, collection_id, release_id
        )

    async def list_watched_artists(self, collection_id: int) -> list[int]:
        return await self._list_links(CollectionLinkType.WATCH_ARTIST, collection_id)

    async def list_discography_artists(self, collection_id: int) -> list[int]:
        return await self._list_links(CollectionLinkType.DISCOGRAPHY_ARTIST, collection_id)

    async def list_owned_releases(self, collection_id: int) -> list[int]:
        return await self._list_links(CollectionLinkType.HAS_RELEASE, collection_id)

    async def list_ignored_releases(self, collection_id: int) -> list[int]:
        return await self._list_links(CollectionLinkType.IGNORE_RELEASE, collection_id)

    # -------------------------------------------------------------------------
    # Ignore time range
    # -------------------------------------------------------------------------

    async def set_ignore_time_range(
        self, collection_id: int, range_start: datetime, range_end: datetime
    ) -> IgnoreTimeRange:
        """Attach an ignore time range, reusing a stored range with the same bounds.

        Raises:
            EntityNotFoundException: If the collection does not exist
            ValidationException: If range_start is after range_end
        """
        await self._require_collection(collection_id)
        time_range = await self.repository.get_or_create_time_range(range_start, range_end)
        await self.repository.set_time_range(collection_id, time_range.id)
        logger.info(
            f"Collection {collection_id} ignores releases between "
            f"{time_range.range_start.isoformat()} and {time_range.range_end.isoformat()}"
        )
        return time_range

    async def clear_ignore_time_range(self, collection_id: int) -> None:
        """Detach the ignore time range. The shared range row itself is kept."""
        await self._require_collection(collection_id)
        await self.repository.set_time_range(collection_id, None)

    # -------------------------------------------------------------------------
    # Notification bookkeeping
    # -------------------------------------------------------------------------

    async def advance_last_checked(self, collection_id: int, timestamp: datetime) -> None:
        """Move last_checked forward to timestamp.

        Equal timestamps are accepted, so a retried sweep is harmless.

        Raises:
            EntityNotFoundException: If the collection does not exist
            ValidationException: If timestamp is older than the stored value
        """
        timestamp = ensure_utc_aware(timestamp)
        if await self.repository.compare_and_set_last_checked(collection_id, timestamp):
            return
        # Nothing matched - tell "no such collection" apart from "timestamp too old"
        if not await self.repository.exists(collection_id):
            raise EntityNotFoundException("Collection", collection_id)
        raise ValidationException(
            f"last_checked of collection {collection_id} cannot move backwards "
            f"to {timestamp.isoformat()}"
        )

    async def claim_for_sweep(self, collection: CollectionInfo, now: datetime) -> bool:
        """Advance last_checked from the value in `collection` to now.

        Returns False when another sweep already moved last_checked away from
        the value this snapshot was read with. The caller must not notify then.
        """
        collection_id = collection.require_id()
        return await self.repository.claim_last_checked(
            collection_id, collection.last_checked, ensure_utc_aware(now)
        )

    async def list_due_collections(
        self, now: datetime | None = None
    ) -> AsyncIterator[CollectionInfo]:
        """Yield every collection with last_checked + lead days <= now."""
        async for collection in self.repository.iter_due(now or self.clock()):
            yield collection
