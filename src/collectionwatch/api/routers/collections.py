"""Collection endpoints.

Hey future me - plain JSON API for managing collections. The negotiated XML/JSON
output lives under /ws/1 (see webservice.py); this router always speaks JSON.
Every endpoint runs in ONE request-scoped transaction (get_db_session), so e.g. a
failed link add never leaves a half-written row behind.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Response, status

from collectionwatch.api.dependencies import get_collection_service
from collectionwatch.api.schemas import (
    CollectionLinksResponse,
    CollectionListResponse,
    CollectionResponse,
    CreateCollectionRequest,
    IgnoreTimeRangeRequest,
    IgnoreTimeRangeResponse,
    LastCheckedRequest,
    LinkChangeResponse,
    UpdateCollectionRequest,
)
from collectionwatch.application.services import CollectionService

router = APIRouter(prefix="/collections")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_collection(
    request: CreateCollectionRequest,
    service: CollectionService = Depends(get_collection_service),
) -> CollectionResponse:
    """Create a collection for an existing moderator."""
    collection = await service.create_collection(
        owner_id=request.owner_id,
        is_public=request.is_public,
        email_notifications=request.email_notifications,
        notification_lead_days=request.notification_lead_days,
        ignored_attributes=request.ignored_attributes,
    )
    return CollectionResponse.from_entity(collection)


@router.get("")
async def list_collections(
    owner_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
    service: CollectionService = Depends(get_collection_service),
) -> CollectionListResponse:
    """List an owner's collections, or public collections if no owner is given."""
    if owner_id is not None:
        collections = await service.list_collections_for_owner(owner_id)
    else:
        collections = await service.list_public_collections(limit, offset)
    return CollectionListResponse(
        collections=[CollectionResponse.from_entity(c) for c in collections],
        total=len(collections),
    )


# Must stay above /{collection_id} routes, "due" is not an id
@router.get("/due")
async def list_due_collections(
    now: datetime | None = None,
    service: CollectionService = Depends(get_collection_service),
) -> CollectionListResponse:
    """List collections due for a notification check at `now` (default: current time)."""
    collections = [c async for c in service.list_due_collections(now)]
    return CollectionListResponse(
        collections=[CollectionResponse.from_entity(c) for c in collections],
        total=len(collections),
    )


@router.get("/{collection_id}")
async def get_collection(
    collection_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> CollectionResponse:
    """Get one collection."""
    return CollectionResponse.from_entity(await service.get_collection(collection_id))


@router.patch("/{collection_id}")
async def update_collection(
    collection_id: int,
    request: UpdateCollectionRequest,
    service: CollectionService = Depends(get_collection_service),
) -> CollectionResponse:
    """Update notification preferences. Omitted fields are left unchanged."""
    collection = await service.update_preferences(
        collection_id,
        is_public=request.is_public,
        email_notifications=request.email_notifications,
        notification_lead_days=request.notification_lead_days,
        ignored_attributes=request.ignored_attributes,
    )
    return CollectionResponse.from_entity(collection)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(
    collection_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> Response:
    """Delete a collection and all of its links."""
    await service.delete_collection(collection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{collection_id}/links")
async def get_collection_links(
    collection_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> CollectionLinksResponse:
    """Get watched/discography artists and owned/ignored releases of a collection."""
    return CollectionLinksResponse.from_entity(await service.get_links(collection_id))


# =============================================================================
# Link rows. PUT is idempotent: changed=false means the link already existed.
# =============================================================================


@router.put("/{collection_id}/watch/{artist_id}")
async def watch_artist(
    collection_id: int,
    artist_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> LinkChangeResponse:
    changed = await service.add_watch_artist(collection_id, artist_id)
    return LinkChangeResponse(collection_id=collection_id, target_id=artist_id, changed=changed)


@router.delete("/{collection_id}/watch/{artist_id}")
async def unwatch_artist(
    collection_id: int,
    artist_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> LinkChangeResponse:
    changed = await service.remove_watch_artist(collection_id, artist_id)
    return LinkChangeResponse(collection_id=collection_id, target_id=artist_id, changed=changed)


@router.put("/{collection_id}/discography/{artist_id}")
async def track_discography(
    collection_id: int,
    artist_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> LinkChangeResponse:
    changed = await service.add_discography_artist(collection_id, artist_id)
    return LinkChangeResponse(collection_id=collection_id, target_id=artist_id, changed=changed)


@router.delete("/{collection_id}/discography/{artist_id}")
async def untrack_discography(
    collection_id: int,
    artist_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> LinkChangeResponse:
    changed = await service.remove_discography_artist(collection_id, artist_id)
    return LinkChangeResponse(collection_id=collection_id, target_id=artist_id, changed=changed)


@router.put("/{collection_id}/owned/{release_id}")
async def mark_owned(
    collection_id: int,
    release_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> LinkChangeResponse:
    changed = await service.mark_release_owned(collection_id, release_id)
    return LinkChangeResponse(collection_id=collection_id, target_id=release_id, changed=changed)


@router.delete("/{collection_id}/owned/{release_id}")
async def unmark_owned(
    collection_id: int,
    release_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> LinkChangeResponse:
    changed = await service.unmark_release_owned(collection_id, release_id)
    return LinkChangeResponse(collection_id=collection_id, target_id=release_id, changed=changed)


@router.put("/{collection_id}/ignored/{release_id}")
async def ignore_release(
    collection_id: int,
    release_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> LinkChangeResponse:
    changed = await service.ignore_release(collection_id, release_id)
    return LinkChangeResponse(collection_id=collection_id, target_id=release_id, changed=changed)


@router.delete("/{collection_id}/ignored/{release_id}")
async def unignore_release(
    collection_id: int,
    release_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> LinkChangeResponse:
    changed = await service.unignore_release(collection_id, release_id)
    return LinkChangeResponse(collection_id=collection_id, target_id=release_id, changed=changed)


# =============================================================================
# Ignore time range and last-checked bookkeeping
# =============================================================================


@router.put("/{collection_id}/ignore-time-range")
async def set_ignore_time_range(
    collection_id: int,
    request: IgnoreTimeRangeRequest,
    service: CollectionService = Depends(get_collection_service),
) -> IgnoreTimeRangeResponse:
    """Suppress notifications for releases dated inside [range_start, range_end]."""
    time_range = await service.set_ignore_time_range(
        collection_id, request.range_start, request.range_end
    )
    return IgnoreTimeRangeResponse(
        id=time_range.id,
        range_start=time_range.range_start,
        range_end=time_range.range_end,
    )


@router.delete(
    "/{collection_id}/ignore-time-range", status_code=status.HTTP_204_NO_CONTENT
)
async def clear_ignore_time_range(
    collection_id: int,
    service: CollectionService = Depends(get_collection_service),
) -> Response:
    await service.clear_ignore_time_range(collection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{collection_id}/last-checked")
async def advance_last_checked(
    collection_id: int,
    request: LastCheckedRequest,
    service: CollectionService = Depends(get_collection_service),
) -> CollectionResponse:
    """Move last_checked forward. Older timestamps are rejected with 422."""
    await service.advance_last_checked(collection_id, request.timestamp)
    return CollectionResponse.from_entity(await service.get_collection(collection_id))
