"""Repository ports (interfaces) for the domain layer.

Hey future me - these are the CONTRACTS the application services depend on.
The SQLAlchemy implementations live in infrastructure/persistence/repositories.py.
Repositories only STAGE changes in the session; the transaction boundary is owned
by the caller (request scope or session_scope), so one service call is atomic.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from datetime import datetime

from collectionwatch.domain.entities import (
    CollectionInfo,
    IgnoreTimeRange,
    ReleaseCandidate,
    TagCount,
    TagVote,
)
from collectionwatch.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationResult,
    NotificationType,
)
from collectionwatch.domain.ports.serializer import ISerializer
from collectionwatch.domain.value_objects import CollectionLinkType, TagTarget


class ICollectionRepository(ABC):
    """Storage for collections, their link rows and ignore time ranges."""

    @abstractmethod
    async def add(self, collection: CollectionInfo) -> CollectionInfo:
        """Insert a collection and return it with its id assigned."""

    @abstractmethod
    async def get_by_id(self, collection_id: int) -> CollectionInfo | None:
        """Get a collection by id."""

    @abstractmethod
    async def exists(self, collection_id: int) -> bool:
        """Check if a collection exists."""

    @abstractmethod
    async def list_by_owner(self, owner_id: int) -> list[CollectionInfo]:
        """List the collections of one owner."""

    @abstractmethod
    async def list_public(self, limit: int = 100, offset: int = 0) -> list[CollectionInfo]:
        """List publicly visible collections."""

    @abstractmethod
    async def update_preferences(self, collection: CollectionInfo) -> None:
        """Persist the preference fields of a collection."""

    @abstractmethod
    async def delete(self, collection_id: int) -> bool:
        """Delete a collection and all its link rows."""

    @abstractmethod
    async def add_link(
        self, link_type: CollectionLinkType, collection_id: int, target_id: int
    ) -> bool:
        """Add a link row. Returns False if the pair already existed."""

    @abstractmethod
    async def remove_link(
        self, link_type: CollectionLinkType, collection_id: int, target_id: int
    ) -> bool:
        """Remove a link row. Returns False if there was nothing to remove."""

    @abstractmethod
    async def list_link_targets(
        self, link_type: CollectionLinkType, collection_id: int
    ) -> list[int]:
        """List target ids linked to a collection."""

    @abstractmethod
    async def get_or_create_time_range(
        self, range_start: datetime, range_end: datetime
    ) -> IgnoreTimeRange:
        """Return the range with these exact bounds, creating it if missing."""

    @abstractmethod
    async def set_time_range(self, collection_id: int, range_id: int | None) -> None:
        """Point a collection at a range (or at none)."""

    @abstractmethod
    async def compare_and_set_last_checked(
        self, collection_id: int, timestamp: datetime
    ) -> bool:
        """Set last_checked only if the stored value is <= timestamp."""

    @abstractmethod
    async def claim_last_checked(
        self, collection_id: int, expected: datetime, timestamp: datetime
    ) -> bool:
        """Set last_checked to timestamp only if it still equals expected."""

    @abstractmethod
    def iter_due(self, now: datetime) -> AsyncIterator[CollectionInfo]:
        """Yield collections due for a notification check at `now`."""


class ICatalogRepository(ABC):
    """Read access to the catalog entities collections point at."""

    @abstractmethod
    async def moderator_exists(self, moderator_id: int) -> bool:
        """Check if a moderator (user) exists."""

    @abstractmethod
    async def artist_exists(self, artist_id: int) -> bool:
        """Check if an artist exists."""

    @abstractmethod
    async def release_exists(self, release_id: int) -> bool:
        """Check if a release exists."""

    @abstractmethod
    async def list_releases_by_artists(
        self, artist_ids: list[int]
    ) -> list[ReleaseCandidate]:
        """List releases credited to any of the given artists."""


class ITagVoteRepository(ABC):
    """Storage for raw (entity, tag, voter) tag votes."""

    @abstractmethod
    async def add_vote(self, vote: TagVote) -> bool:
        """Record a vote. Returns False if the voter already voted this tag."""

    @abstractmethod
    async def remove_vote(self, vote: TagVote) -> bool:
        """Withdraw a vote. Returns False if there was none."""

    @abstractmethod
    async def tag_counts(
        self, target: TagTarget, entity_id: int, limit: int | None = None
    ) -> list[TagCount]:
        """Aggregate raw votes into per-tag counts, most voted first."""


__all__ = [
    "ICatalogRepository",
    "ICollectionRepository",
    "INotificationProvider",
    "ISerializer",
    "ITagVoteRepository",
    "Notification",
    "NotificationResult",
    "NotificationType",
]
