"""Tests for CollectionRepository and CatalogRepository against SQLite."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from collectionwatch.domain.entities import CollectionInfo
from collectionwatch.domain.exceptions import ValidationException
from collectionwatch.domain.value_objects import CollectionLinkType, ReleaseAttribute
from collectionwatch.infrastructure.persistence import (
    CatalogRepository,
    CollectionRepository,
    WatchArtistLinkModel,
)


@pytest.fixture
def repo(session: AsyncSession) -> CollectionRepository:
    return CollectionRepository(session)


async def _add(
    repo: CollectionRepository,
    owner_id: int,
    now: datetime,
    *,
    last_checked: datetime | None = None,
    lead_days: int = 7,
    is_public: bool = False,
) -> CollectionInfo:
    collection = CollectionInfo.create(
        owner_id=owner_id,
        is_public=is_public,
        now=now,
        notification_lead_days=lead_days,
    )
    if last_checked is not None:
        collection.last_checked = last_checked
    return await repo.add(collection)


class TestCollectionRows:
    async def test_add_and_get(self, repo, catalog, now) -> None:
        created = await _add(repo, catalog.alice, now, is_public=True)
        assert created.id is not None

        loaded = await repo.get_by_id(created.id)

        assert loaded is not None
        assert loaded.owner_id == catalog.alice
        assert loaded.is_public is True
        assert loaded.last_checked == now - timedelta(days=7)
        assert loaded.last_checked.tzinfo is not None
        assert ReleaseAttribute.LIVE in loaded.ignored_attributes
        assert loaded.ignore_time_range is None

    async def test_get_missing(self, repo, catalog) -> None:
        assert await repo.get_by_id(999) is None
        assert await repo.exists(999) is False

    async def test_list_by_owner_and_public(self, repo, catalog, now) -> None:
        first = await _add(repo, catalog.alice, now, is_public=True)
        second = await _add(repo, catalog.alice, now)
        third = await _add(repo, catalog.bob, now, is_public=True)

        owned = await repo.list_by_owner(catalog.alice)
        public = await repo.list_public()

        assert [c.id for c in owned] == [first.id, second.id]
        assert [c.id for c in public] == [first.id, third.id]
        assert [c.id for c in await repo.list_public(limit=1, offset=1)] == [third.id]

    async def test_update_preferences_leaves_last_checked(
        self, repo, catalog, now
    ) -> None:
        collection = await _add(repo, catalog.alice, now)
        collection.is_public = True
        collection.notification_lead_days = 2
        collection.ignored_attributes = frozenset({ReleaseAttribute.BOOTLEG})
        collection.last_checked = now + timedelta(days=100)

        await repo.update_preferences(collection)
        loaded = await repo.get_by_id(collection.id)

        assert loaded.is_public is True
        assert loaded.notification_lead_days == 2
        assert loaded.ignored_attributes == frozenset({ReleaseAttribute.BOOTLEG})
        assert loaded.last_checked == now - timedelta(days=7)


class TestLinks:
    async def test_add_link_is_idempotent(self, repo, session, catalog, now) -> None:
        collection = await _add(repo, catalog.alice, now)

        assert await repo.add_link(
            CollectionLinkType.WATCH_ARTIST, collection.id, catalog.radiohead
        )
        assert not await repo.add_link(
            CollectionLinkType.WATCH_ARTIST, collection.id, catalog.radiohead
        )

        count = await session.scalar(
            select(func.count()).select_from(WatchArtistLinkModel)
        )
        assert count == 1

    async def test_link_namespaces_are_independent(self, repo, catalog, now) -> None:
        collection = await _add(repo, catalog.alice, now)

        await repo.add_link(CollectionLinkType.WATCH_ARTIST, collection.id, catalog.radiohead)

        assert await repo.list_link_targets(
            CollectionLinkType.DISCOGRAPHY_ARTIST, collection.id
        ) == []
        assert await repo.add_link(
            CollectionLinkType.DISCOGRAPHY_ARTIST, collection.id, catalog.radiohead
        )

    async def test_list_is_sorted(self, repo, catalog, now) -> None:
        collection = await _add(repo, catalog.alice, now)
        for release_id in (catalog.third, catalog.kid_a, catalog.dummy):
            await repo.add_link(CollectionLinkType.HAS_RELEASE, collection.id, release_id)

        assert await repo.list_link_targets(
            CollectionLinkType.HAS_RELEASE, collection.id
        ) == [catalog.kid_a, catalog.third, catalog.dummy]

    async def test_remove_link(self, repo, catalog, now) -> None:
        collection = await _add(repo, catalog.alice, now)
        await repo.add_link(CollectionLinkType.IGNORE_RELEASE, collection.id, catalog.kid_a)

        assert await repo.remove_link(
            CollectionLinkType.IGNORE_RELEASE, collection.id, catalog.kid_a
        )
        assert not await repo.remove_link(
            CollectionLinkType.IGNORE_RELEASE, collection.id, catalog.kid_a
        )

    async def test_delete_removes_links(self, repo, session, catalog, now) -> None:
        collection = await _add(repo, catalog.alice, now)
        other = await _add(repo, catalog.bob, now)
        await repo.add_link(CollectionLinkType.WATCH_ARTIST, collection.id, catalog.radiohead)
        await repo.add_link(CollectionLinkType.WATCH_ARTIST, other.id, catalog.radiohead)

        assert await repo.delete(collection.id)
        assert not await repo.delete(collection.id)

        assert await repo.get_by_id(collection.id) is None
        remaining = await session.scalars(select(WatchArtistLinkModel.collection_id))
        assert list(remaining) == [other.id]


class TestTimeRanges:
    async def test_ranges_are_shared(self, repo, catalog, now) -> None:
        start, end = now, now + timedelta(days=10)

        first = await repo.get_or_create_time_range(start, end)
        second = await repo.get_or_create_time_range(start, end)

        assert first.id == second.id

    async def test_reversed_range_rejected(self, repo, catalog, now) -> None:
        with pytest.raises(ValidationException):
            await repo.get_or_create_time_range(now, now - timedelta(days=1))

    async def test_set_and_clear(self, repo, catalog, now) -> None:
        collection = await _add(repo, catalog.alice, now)
        time_range = await repo.get_or_create_time_range(now, now + timedelta(days=1))

        await repo.set_time_range(collection.id, time_range.id)
        loaded = await repo.get_by_id(collection.id)
        assert loaded.ignore_time_range == time_range

        await repo.set_time_range(collection.id, None)
        assert (await repo.get_by_id(collection.id)).ignore_time_range is None


class TestLastChecked:
    async def test_compare_and_set(self, repo, catalog, now) -> None:
        collection = await _add(repo, catalog.alice, now, last_checked=now)

        assert not await repo.compare_and_set_last_checked(
            collection.id, now - timedelta(seconds=1)
        )
        assert await repo.compare_and_set_last_checked(collection.id, now)
        assert await repo.compare_and_set_last_checked(
            collection.id, now + timedelta(hours=1)
        )

        loaded = await repo.get_by_id(collection.id)
        assert loaded.last_checked == now + timedelta(hours=1)

    async def test_missing_collection(self, repo, catalog, now) -> None:
        assert not await repo.compare_and_set_last_checked(999, now)

    async def test_claim_needs_the_value_that_was_read(self, repo, catalog, now) -> None:
        start = now - timedelta(days=7)
        collection = await _add(repo, catalog.alice, now, last_checked=start)

        assert await repo.claim_last_checked(collection.id, start, now)
        # Same expected value again: the row moved on, so a second claimer loses
        assert not await repo.claim_last_checked(collection.id, start, now)
        assert (await repo.get_by_id(collection.id)).last_checked == now

    async def test_claim_missing_collection(self, repo, catalog, now) -> None:
        assert not await repo.claim_last_checked(999, now, now)

    async def test_iter_due_is_exact(self, repo, catalog, now) -> None:
        due_exactly = await _add(
            repo, catalog.alice, now, last_checked=now - timedelta(days=3), lead_days=3
        )
        await _add(
            repo,
            catalog.alice,
            now,
            last_checked=now - timedelta(days=3) + timedelta(seconds=1),
            lead_days=3,
        )
        long_overdue = await _add(
            repo, catalog.bob, now, last_checked=now - timedelta(days=30), lead_days=7
        )
        await _add(repo, catalog.bob, now, last_checked=now + timedelta(days=1), lead_days=0)

        due = [c.id async for c in repo.iter_due(now)]

        assert due == [long_overdue.id, due_exactly.id]


class TestCatalog:
    async def test_existence_checks(self, session, catalog) -> None:
        repo = CatalogRepository(session)

        assert await repo.moderator_exists(catalog.alice)
        assert not await repo.moderator_exists(999)
        assert await repo.artist_exists(catalog.radiohead)
        assert not await repo.artist_exists(catalog.kid_a)
        assert await repo.release_exists(catalog.kid_a)

    async def test_releases_by_artists(self, session, catalog, now) -> None:
        repo = CatalogRepository(session)

        releases = await repo.list_releases_by_artists([catalog.radiohead])

        assert {r.release_id for r in releases} == {catalog.kid_a, catalog.live_set}
        kid_a = next(r for r in releases if r.release_id == catalog.kid_a)
        assert kid_a.release_date == now + timedelta(days=3)
        assert kid_a.attributes == frozenset(
            {ReleaseAttribute.ALBUM, ReleaseAttribute.OFFICIAL}
        )

    async def test_no_artists(self, session, catalog) -> None:
        assert await CatalogRepository(session).list_releases_by_artists([]) == []
