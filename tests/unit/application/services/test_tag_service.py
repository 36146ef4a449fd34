"""Tests for TagService."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from collectionwatch.application.services import TagService, TagWeight
from collectionwatch.domain.exceptions import (
    EntityNotFoundException,
    ValidationException,
)


@pytest.fixture
def service(session: AsyncSession) -> TagService:
    return TagService(session)


class TestVoting:
    async def test_vote_and_withdraw(self, service, catalog) -> None:
        assert await service.vote("artist", catalog.radiohead, 1, catalog.alice)
        assert not await service.vote("artist", catalog.radiohead, 1, catalog.alice)

        assert await service.withdraw_vote("artist", catalog.radiohead, 1, catalog.alice)
        assert not await service.withdraw_vote(
            "artist", catalog.radiohead, 1, catalog.alice
        )

    async def test_unknown_target(self, service, catalog) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await service.vote("genre", 1, 1, catalog.alice)
        assert "artist, release, track, label" in exc_info.value.message

    async def test_unknown_voter(self, service, catalog) -> None:
        with pytest.raises(EntityNotFoundException):
            await service.vote("artist", catalog.radiohead, 1, 999)

    async def test_unknown_artist_or_release(self, service, catalog) -> None:
        with pytest.raises(EntityNotFoundException):
            await service.vote("artist", 999, 1, catalog.alice)
        with pytest.raises(EntityNotFoundException):
            await service.vote("release", 999, 1, catalog.alice)

    async def test_tracks_and_labels_are_not_checked(self, service, catalog) -> None:
        assert await service.vote("track", 12345, 1, catalog.alice)
        assert await service.vote("label", 12345, 1, catalog.alice)


class TestTagCloud:
    async def test_weights_relative_to_top_tag(self, service, catalog) -> None:
        release = catalog.kid_a
        await service.vote("release", release, 8, catalog.alice)
        await service.vote("release", release, 8, catalog.bob)
        await service.vote("release", release, 3, catalog.bob)

        cloud = await service.tag_cloud("release", release)

        assert cloud == [
            TagWeight(tag_id=8, count=2, weight=1.0),
            TagWeight(tag_id=3, count=1, weight=0.5),
        ]

    async def test_limit(self, service, catalog) -> None:
        for tag_id in (1, 2, 3):
            await service.vote("artist", catalog.portishead, tag_id, catalog.alice)

        cloud = await service.tag_cloud("artist", catalog.portishead, limit=2)

        assert [t.tag_id for t in cloud] == [1, 2]

    async def test_empty(self, service, catalog) -> None:
        assert await service.tag_cloud("label", 1) == []
