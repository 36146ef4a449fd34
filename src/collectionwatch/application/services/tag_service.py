"""Tag vote service and tag cloud aggregation."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from collectionwatch.domain.entities import TagVote
from collectionwatch.domain.exceptions import (
    EntityNotFoundException,
    ValidationException,
)
from collectionwatch.domain.ports import ICatalogRepository, ITagVoteRepository
from collectionwatch.domain.value_objects import TagTarget
from collectionwatch.infrastructure.persistence.repositories import (
    CatalogRepository,
    TagVoteRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagWeight:
    """One entry of a tag cloud."""

    tag_id: int
    count: int
    weight: float


def _parse_target(target: str | TagTarget) -> TagTarget:
    try:
        return TagTarget(target)
    except ValueError as e:
        valid = ", ".join(t.value for t in TagTarget)
        raise ValidationException(
            f"Unknown tag target '{target}' (valid values are {valid})"
        ) from e


class TagService:
    """Records raw tag votes and folds them into tag clouds."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        votes: ITagVoteRepository | None = None,
        catalog: ICatalogRepository | None = None,
    ) -> None:
        self.votes = votes or TagVoteRepository(session)
        self.catalog = catalog or CatalogRepository(session)

    async def vote(
        self, target: str | TagTarget, entity_id: int, tag_id: int, moderator_id: int
    ) -> bool:
        """Record a vote. Returns False if this voter already tagged the entity so.

        Raises:
            ValidationException: If target is not a taggable entity kind
            EntityNotFoundException: If the voter does not exist
        """
        kind = _parse_target(target)
        if not await self.catalog.moderator_exists(moderator_id):
            raise EntityNotFoundException("Moderator", moderator_id)
        # Tracks and labels live outside our schema, only artists and releases are checked
        if kind is TagTarget.ARTIST and not await self.catalog.artist_exists(entity_id):
            raise EntityNotFoundException("Artist", entity_id)
        if kind is TagTarget.RELEASE and not await self.catalog.release_exists(entity_id):
            raise EntityNotFoundException("Release", entity_id)
        added = await self.votes.add_vote(TagVote(kind, entity_id, tag_id, moderator_id))
        if added:
            logger.debug(f"Moderator {moderator_id} tagged {kind.value} {entity_id} with {tag_id}")
        return added

    async def withdraw_vote(
        self, target: str | TagTarget, entity_id: int, tag_id: int, moderator_id: int
    ) -> bool:
        """Remove a vote. Returns False if there was none."""
        kind = _parse_target(target)
        return await self.votes.remove_vote(TagVote(kind, entity_id, tag_id, moderator_id))

    # Hey future me, weights are RELATIVE to the most voted tag (which gets 1.0), so a
    # cloud looks the same whether the entity has 3 voters or 3000.
    async def tag_cloud(
        self, target: str | TagTarget, entity_id: int, limit: int | None = 30
    ) -> list[TagWeight]:
        """Aggregate raw votes into weighted tags, most voted first."""
        kind = _parse_target(target)
        counts = await self.votes.tag_counts(kind, entity_id, limit)
        if not counts:
            return []
        top = max(c.count for c in counts)
        return [
            TagWeight(tag_id=c.tag_id, count=c.count, weight=round(c.count / top, 4))
            for c in counts
        ]
