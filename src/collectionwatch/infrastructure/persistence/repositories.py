"""Repository implementations for domain entities."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from collectionwatch.domain.entities import (
    CollectionInfo,
    IgnoreTimeRange,
    ReleaseCandidate,
    TagCount,
    TagVote,
    ensure_utc_aware,
)
from collectionwatch.domain.exceptions import ValidationException
from collectionwatch.domain.ports import (
    ICatalogRepository,
    ICollectionRepository,
    ITagVoteRepository,
)
from collectionwatch.domain.value_objects import (
    CollectionLinkType,
    ReleaseAttribute,
    TagTarget,
    parse_attributes,
)

from .models import (
    ArtistModel,
    ArtistTagRawModel,
    CollectionInfoModel,
    DiscographyArtistLinkModel,
    HasReleaseLinkModel,
    IgnoreReleaseLinkModel,
    IgnoreTimeRangeModel,
    LabelTagRawModel,
    LinkModel,
    ModeratorModel,
    ReleaseModel,
    ReleaseTagRawModel,
    TagRawModel,
    TrackTagRawModel,
    WatchArtistLinkModel,
)

logger = logging.getLogger(__name__)

LINK_MODELS: dict[CollectionLinkType, type[LinkModel]] = {
    CollectionLinkType.WATCH_ARTIST: WatchArtistLinkModel,
    CollectionLinkType.DISCOGRAPHY_ARTIST: DiscographyArtistLinkModel,
    CollectionLinkType.IGNORE_RELEASE: IgnoreReleaseLinkModel,
    CollectionLinkType.HAS_RELEASE: HasReleaseLinkModel,
}

TAG_RAW_MODELS: dict[TagTarget, type[TagRawModel]] = {
    TagTarget.ARTIST: ArtistTagRawModel,
    TagTarget.RELEASE: ReleaseTagRawModel,
    TagTarget.TRACK: TrackTagRawModel,
    TagTarget.LABEL: LabelTagRawModel,
}


def _to_utc(dt: datetime) -> datetime:
    # Hey future me - SQLite drops tzinfo on the way in AND out. Normalizing every bound
    # parameter to UTC keeps the stored strings comparable in SQL (lastcheck <= :ts).
    return ensure_utc_aware(dt)


class CollectionRepository(ICollectionRepository):
    """SQLAlchemy implementation of the collection repository."""

    # Hey future me, the session is injected and NEVER committed here! We only stage
    # (add/flush/execute). The request scope or Database.session_scope() commits, so a
    # service call that touches the collection and two join tables is all-or-nothing.
    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    # populate_existing: the bulk UPDATEs below skip the identity map, so a row loaded
    # earlier in the same session would otherwise come back with stale values.
    def _select_with_range(self) -> Select[Any]:
        return (
            select(CollectionInfoModel, IgnoreTimeRangeModel)
            .outerjoin(
                IgnoreTimeRangeModel,
                CollectionInfoModel.ignore_time_range_id == IgnoreTimeRangeModel.id,
            )
            .execution_options(populate_existing=True)
        )

    @staticmethod
    def _to_time_range(model: IgnoreTimeRangeModel | None) -> IgnoreTimeRange | None:
        if model is None:
            return None
        return IgnoreTimeRange(
            id=model.id,
            range_start=ensure_utc_aware(model.range_start),
            range_end=ensure_utc_aware(model.range_end),
        )

    def _to_entity(
        self, model: CollectionInfoModel, range_model: IgnoreTimeRangeModel | None
    ) -> CollectionInfo:
        return CollectionInfo(
            id=model.id,
            owner_id=model.owner_id,
            is_public=model.is_public,
            last_checked=ensure_utc_aware(model.last_checked),
            email_notifications=model.email_notifications,
            notification_lead_days=model.notification_lead_days,
            ignored_attributes=parse_attributes(model.ignored_attributes or []),
            ignore_time_range=self._to_time_range(range_model),
        )

    async def add(self, collection: CollectionInfo) -> CollectionInfo:
        """Insert a collection and assign its id."""
        model = CollectionInfoModel(
            owner_id=collection.owner_id,
            is_public=collection.is_public,
            last_checked=_to_utc(collection.last_checked),
            email_notifications=collection.email_notifications,
            notification_lead_days=collection.notification_lead_days,
            ignored_attributes=sorted(int(a) for a in collection.ignored_attributes),
            ignore_time_range_id=(
                collection.ignore_time_range.id if collection.ignore_time_range else None
            ),
        )
        self.session.add(model)
        await self.session.flush()
        collection.id = model.id
        return collection

    async def get_by_id(self, collection_id: int) -> CollectionInfo | None:
        """Get a collection by id."""
        stmt = self._select_with_range().where(CollectionInfoModel.id == collection_id)
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return self._to_entity(row[0], row[1])

    async def exists(self, collection_id: int) -> bool:
        """Check if a collection exists."""
        stmt = select(CollectionInfoModel.id).where(
            CollectionInfoModel.id == collection_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_by_owner(self, owner_id: int) -> list[CollectionInfo]:
        """List the collections of one owner, oldest first."""
        stmt = (
            self._select_with_range()
            .where(CollectionInfoModel.owner_id == owner_id)
            .order_by(CollectionInfoModel.id)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model, rng) for model, rng in result.all()]

    async def list_public(self, limit: int = 100, offset: int = 0) -> list[CollectionInfo]:
        """List publicly visible collections."""
        stmt = (
            self._select_with_range()
            .where(CollectionInfoModel.is_public.is_(True))
            .order_by(CollectionInfoModel.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model, rng) for model, rng in result.all()]

    async def update_preferences(self, collection: CollectionInfo) -> None:
        """Persist the preference fields of a collection.

        last_checked is deliberately NOT written here - it only moves through
        compare_and_set_last_checked().
        """
        stmt = (
            update(CollectionInfoModel)
            .where(CollectionInfoModel.id == collection.id)
            .values(
                {
                    CollectionInfoModel.is_public: collection.is_public,
                    CollectionInfoModel.email_notifications: collection.email_notifications,
                    CollectionInfoModel.notification_lead_days: (
                        collection.notification_lead_days
                    ),
                    CollectionInfoModel.ignored_attributes: sorted(
                        int(a) for a in collection.ignored_attributes
                    ),
                }
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def delete(self, collection_id: int) -> bool:
        """Delete a collection together with all of its link rows."""
        if not await self.exists(collection_id):
            return False
        for model in LINK_MODELS.values():
            await self.session.execute(
                delete(model).where(model.collection_id == collection_id)
            )
        await self.session.execute(
            delete(CollectionInfoModel).where(CollectionInfoModel.id == collection_id)
        )
        logger.debug("Deleted collection %s and its links", collection_id)
        return True

    # -------------------------------------------------------------------------
    # Link rows
    # -------------------------------------------------------------------------

    # Yo, add_link is idempotent: an existing pair returns False and writes nothing.
    # The unique constraint on (collection_info, target) backs this up if two requests
    # race - the loser gets an IntegrityError and its transaction rolls back.
    async def add_link(
        self, link_type: CollectionLinkType, collection_id: int, target_id: int
    ) -> bool:
        """Add a link row unless the pair already exists."""
        model = LINK_MODELS[link_type]
        stmt = select(model.id).where(
            model.collection_id == collection_id, model.target_id == target_id
        )
        result = await self.session.execute(stmt)
        if result.scalar_one_or_none() is not None:
            return False
        self.session.add(model(collection_id=collection_id, target_id=target_id))
        await self.session.flush()
        return True

    async def remove_link(
        self, link_type: CollectionLinkType, collection_id: int, target_id: int
    ) -> bool:
        """Remove a link row."""
        model = LINK_MODELS[link_type]
        stmt = delete(model).where(
            model.collection_id == collection_id, model.target_id == target_id
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)

    async def list_link_targets(
        self, link_type: CollectionLinkType, collection_id: int
    ) -> list[int]:
        """List target ids linked to a collection, ascending."""
        model = LINK_MODELS[link_type]
        stmt = (
            select(model.target_id)
            .where(model.collection_id == collection_id)
            .order_by(model.target_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Ignore time ranges
    # -------------------------------------------------------------------------

    async def get_or_create_time_range(
        self, range_start: datetime, range_end: datetime
    ) -> IgnoreTimeRange:
        """Return the shared range with these exact bounds, creating it if missing."""
        # Validates start <= end before anything touches the database
        candidate = IgnoreTimeRange(range_start=range_start, range_end=range_end)
        start, end = _to_utc(candidate.range_start), _to_utc(candidate.range_end)

        stmt = select(IgnoreTimeRangeModel).where(
            IgnoreTimeRangeModel.range_start == start,
            IgnoreTimeRangeModel.range_end == end,
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            model = IgnoreTimeRangeModel(range_start=start, range_end=end)
            self.session.add(model)
            await self.session.flush()
            logger.debug("Created ignore time range %s", model.id)
        return IgnoreTimeRange(id=model.id, range_start=start, range_end=end)

    async def set_time_range(self, collection_id: int, range_id: int | None) -> None:
        """Point a collection at a range, or clear it with None."""
        stmt = (
            update(CollectionInfoModel)
            .where(CollectionInfoModel.id == collection_id)
            .values({CollectionInfoModel.ignore_time_range_id: range_id})
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    # -------------------------------------------------------------------------
    # Notification sweep
    # -------------------------------------------------------------------------

    # Hey future me, this is a COMPARE-AND-SET! The WHERE lastcheck <= :ts makes the
    # monotonic check and the write one statement, so two sweeps racing on the same
    # collection can't move lastcheck backwards - the slower one simply matches 0 rows.
    async def compare_and_set_last_checked(
        self, collection_id: int, timestamp: datetime
    ) -> bool:
        """Set last_checked to timestamp if the stored value is not newer."""
        ts = _to_utc(timestamp)
        stmt = (
            update(CollectionInfoModel)
            .where(
                CollectionInfoModel.id == collection_id,
                CollectionInfoModel.last_checked <= ts,
            )
            .values({CollectionInfoModel.last_checked: ts})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    # Listen up, the sweep claims a collection with THIS one, not the <= variant above.
    # Matching the exact value it read means only one of two racing sweeps gets the row,
    # even when both use the same `now`.
    async def claim_last_checked(
        self, collection_id: int, expected: datetime, timestamp: datetime
    ) -> bool:
        """Set last_checked to timestamp if it still holds the expected value."""
        ts = _to_utc(timestamp)
        stmt = (
            update(CollectionInfoModel)
            .where(
                CollectionInfoModel.id == collection_id,
                CollectionInfoModel.last_checked == _to_utc(expected),
            )
            .values({CollectionInfoModel.last_checked: ts})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    # Listen up, the SQL pre-filter is lastcheck <= now (lead days are never negative,
    # so that's a necessary condition). The exact lastcheck + lead_days <= now test runs
    # in Python - per-row interval arithmetic differs between SQLite and PostgreSQL.
    # Rows are fetched by ONE query, so the sweep sees a point-in-time snapshot even if
    # it advances last_checked while iterating.
    async def iter_due(self, now: datetime) -> AsyncIterator[CollectionInfo]:
        """Yield collections with last_checked + notification_lead_days <= now."""
        now = _to_utc(now)
        stmt = (
            self._select_with_range()
            .where(CollectionInfoModel.last_checked <= now)
            .order_by(CollectionInfoModel.last_checked, CollectionInfoModel.id)
        )
        result = await self.session.execute(stmt)
        for model, range_model in result.all():
            collection = self._to_entity(model, range_model)
            if collection.is_due(now):
                yield collection


class CatalogRepository(ICatalogRepository):
    """Read-only access to catalog moderators, artists and releases."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def _exists(self, model: type, entity_id: int) -> bool:
        stmt = select(model.id).where(model.id == entity_id)  # type: ignore[attr-defined]
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def moderator_exists(self, moderator_id: int) -> bool:
        return await self._exists(ModeratorModel, moderator_id)

    async def artist_exists(self, artist_id: int) -> bool:
        return await self._exists(ArtistModel, artist_id)

    async def release_exists(self, release_id: int) -> bool:
        return await self._exists(ReleaseModel, release_id)

    async def list_releases_by_artists(
        self, artist_ids: list[int]
    ) -> list[ReleaseCandidate]:
        """List releases credited to any of the given artists."""
        if not artist_ids:
            return []
        stmt = (
            select(ReleaseModel)
            .where(ReleaseModel.artist_id.in_(artist_ids))
            .order_by(ReleaseModel.release_date, ReleaseModel.id)
        )
        result = await self.session.execute(stmt)
        candidates = []
        for model in result.scalars().all():
            try:
                attributes = parse_attributes(model.attributes or [])
            except ValidationException:
                # Catalog rows are not ours to reject; drop unknown codes and keep going.
                logger.warning(
                    "Release %s has unknown attribute codes %s",
                    model.id,
                    model.attributes,
                    extra={"release_id": model.id},
                )
                known = {attr.value for attr in ReleaseAttribute}
                attributes = parse_attributes(
                    code for code in model.attributes if code in known
                )
            candidates.append(
                ReleaseCandidate(
                    release_id=model.id,
                    artist_id=model.artist_id,
                    name=model.name,
                    release_date=(
                        ensure_utc_aware(model.release_date)
                        if model.release_date
                        else None
                    ),
                    attributes=attributes,
                )
            )
        return candidates


class TagVoteRepository(ITagVoteRepository):
    """SQLAlchemy implementation of raw tag vote storage."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _model_for(target: TagTarget) -> type[TagRawModel]:
        return TAG_RAW_MODELS[TagTarget(target)]

    async def add_vote(self, vote: TagVote) -> bool:
        """Record a vote; a repeated (entity, tag, voter) triple is a no-op."""
        model = self._model_for(vote.target)
        existing = await self.session.get(
            model, (vote.entity_id, vote.tag_id, vote.moderator_id)
        )
        if existing is not None:
            return False
        self.session.add(
            model(
                entity_id=vote.entity_id,
                tag_id=vote.tag_id,
                moderator_id=vote.moderator_id,
            )
        )
        await self.session.flush()
        return True

    async def remove_vote(self, vote: TagVote) -> bool:
        """Withdraw a vote."""
        model = self._model_for(vote.target)
        stmt = delete(model).where(
            model.entity_id == vote.entity_id,
            model.tag_id == vote.tag_id,
            model.moderator_id == vote.moderator_id,
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)

    async def tag_counts(
        self, target: TagTarget, entity_id: int, limit: int | None = None
    ) -> list[TagCount]:
        """Fold raw votes into (tag, count) pairs, most votes first then tag id."""
        model = self._model_for(target)
        votes = func.count().label("votes")
        stmt = (
            select(model.tag_id, votes)
            .where(model.entity_id == entity_id)
            .group_by(model.tag_id)
            .order_by(votes.desc(), model.tag_id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [TagCount(tag_id=tag_id, count=count) for tag_id, count in result.all()]
