"""Shared fixtures.

Hey future me - every test gets its OWN SQLite file under tmp_path. In-memory SQLite
would give each pooled connection a separate empty database, and the API tests talk
to the DB from TestClient's event loop thread, not from the test's loop.
"""

import asyncio
from collections.abc import AsyncGenerator, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from collectionwatch.config import DatabaseSettings, Settings
from collectionwatch.domain.ports.notification import NotificationChannel
from collectionwatch.domain.value_objects import ReleaseAttribute
from collectionwatch.infrastructure.notifications import LogNotificationProvider
from collectionwatch.infrastructure.persistence import (
    ArtistModel,
    Database,
    ModeratorModel,
    ReleaseModel,
)
from collectionwatch.main import create_app

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

ALBUM_OFFICIAL = [int(ReleaseAttribute.ALBUM), int(ReleaseAttribute.OFFICIAL)]
LIVE_OFFICIAL = [int(ReleaseAttribute.LIVE), int(ReleaseAttribute.OFFICIAL)]


@dataclass(frozen=True)
class Catalog:
    """Ids of the seeded catalog rows."""

    alice: int = 1
    bob: int = 2
    radiohead: int = 10
    portishead: int = 11
    massive_attack: int = 12
    kid_a: int = 100  # album, in 3 days
    live_set: int = 101  # live, in 2 days
    third: int = 102  # album, in 30 days
    dummy: int = 103  # album, released yesterday
    mezzanine: int = 104  # album, no release date


async def seed_catalog(session: AsyncSession) -> Catalog:
    catalog = Catalog()
    session.add_all(
        [
            ModeratorModel(id=catalog.alice, name="alice"),
            ModeratorModel(id=catalog.bob, name="bob"),
            ArtistModel(id=catalog.radiohead, name="Radiohead"),
            ArtistModel(id=catalog.portishead, name="Portishead"),
            ArtistModel(id=catalog.massive_attack, name="Massive Attack"),
        ]
    )
    await session.flush()
    session.add_all(
        [
            ReleaseModel(
                id=catalog.kid_a,
                name="Kid A",
                artist_id=catalog.radiohead,
                release_date=NOW + timedelta(days=3),
                attributes=ALBUM_OFFICIAL,
            ),
            ReleaseModel(
                id=catalog.live_set,
                name="Live Set",
                artist_id=catalog.radiohead,
                release_date=NOW + timedelta(days=2),
                attributes=LIVE_OFFICIAL,
            ),
            ReleaseModel(
                id=catalog.third,
                name="Third",
                artist_id=catalog.portishead,
                release_date=NOW + timedelta(days=30),
                attributes=ALBUM_OFFICIAL,
            ),
            ReleaseModel(
                id=catalog.dummy,
                name="Dummy",
                artist_id=catalog.portishead,
                release_date=NOW - timedelta(days=1),
                attributes=ALBUM_OFFICIAL,
            ),
            ReleaseModel(
                id=catalog.mezzanine,
                name="Mezzanine",
                artist_id=catalog.massive_attack,
                release_date=None,
                attributes=ALBUM_OFFICIAL,
            ),
        ]
    )
    await session.flush()
    return catalog


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"),
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[Database, None]:
    database = Database(settings)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
async def session(db: Database) -> AsyncGenerator[AsyncSession, None]:
    async with db.session_scope() as s:
        yield s


@pytest.fixture
async def catalog(session: AsyncSession) -> Catalog:
    return await seed_catalog(session)


@pytest.fixture
def catalog_ids() -> Catalog:
    """Seeded ids for tests that go through the API instead of a session."""
    return Catalog()


@pytest.fixture
async def seeded_db(db: Database) -> Database:
    """Database with the catalog committed, for tests that open their own scopes."""
    async with db.session_scope() as s:
        await seed_catalog(s)
    return db


async def _prepare_database(settings: Settings) -> None:
    database = Database(settings)
    try:
        await database.create_tables()
        async with database.session_scope() as s:
            await seed_catalog(s)
    finally:
        await database.close()


@pytest.fixture
def providers() -> list[LogNotificationProvider]:
    return [LogNotificationProvider(channel) for channel in NotificationChannel]


@pytest.fixture
def client(
    settings: Settings, clock, providers: list[LogNotificationProvider]
) -> Iterator[TestClient]:
    """TestClient over a fresh database with the catalog already seeded."""
    asyncio.run(_prepare_database(settings))
    app = create_app(settings, clock=clock, notification_providers=list(providers))
    with TestClient(app) as test_client:
        yield test_client
