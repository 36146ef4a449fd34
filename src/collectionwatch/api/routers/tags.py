"""Raw tag vote endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from collectionwatch.api.dependencies import get_tag_service
from collectionwatch.application.services import TagService

router = APIRouter(prefix="/tags")


class TagVoteRequest(BaseModel):
    moderator_id: int


class TagVoteResponse(BaseModel):
    target: str
    entity_id: int
    tag_id: int
    changed: bool


@router.put("/{target}/{entity_id}/{tag_id}")
async def add_tag_vote(
    target: str,
    entity_id: int,
    tag_id: int,
    request: TagVoteRequest,
    service: TagService = Depends(get_tag_service),
) -> TagVoteResponse:
    """Vote for a tag on an entity. Voting twice is a no-op (changed=false)."""
    changed = await service.vote(target, entity_id, tag_id, request.moderator_id)
    return TagVoteResponse(target=target, entity_id=entity_id, tag_id=tag_id, changed=changed)


@router.delete("/{target}/{entity_id}/{tag_id}")
async def remove_tag_vote(
    target: str,
    entity_id: int,
    tag_id: int,
    moderator_id: int,
    service: TagService = Depends(get_tag_service),
) -> TagVoteResponse:
    """Withdraw a tag vote."""
    changed = await service.withdraw_vote(target, entity_id, tag_id, moderator_id)
    return TagVoteResponse(target=target, entity_id=entity_id, tag_id=tag_id, changed=changed)
