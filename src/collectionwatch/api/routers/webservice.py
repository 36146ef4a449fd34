"""Web service (/ws/1) endpoints with negotiated XML/JSON output.

Hey future me - the `serializer` parameter comes from get_serializer(), which runs
format negotiation BEFORE the handler body. A request nobody can serve never touches
the database; it gets a 406 from the NotAcceptableError handler instead. Errors the
handler itself produces (unknown collection, ...) are rendered in the negotiated
format too, so a client asking for XML never has to parse a JSON error.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status

from collectionwatch.api.dependencies import get_collection_service, get_tag_service
from collectionwatch.api.negotiation import SerializedResponse, get_serializer
from collectionwatch.application.services import CollectionService, TagService
from collectionwatch.domain.entities import CollectionInfo, CollectionLinks
from collectionwatch.domain.exceptions import (
    EntityNotFoundException,
    ValidationException,
)
from collectionwatch.domain.ports.serializer import ISerializer
from collectionwatch.domain.value_objects import TagTarget

router = APIRouter()


def collection_payload(collection: CollectionInfo, links: CollectionLinks) -> dict[str, Any]:
    """Build the web service representation of a collection."""
    time_range = collection.ignore_time_range
    return {
        "collection": {
            "@id": collection.id,
            "owner": collection.owner_id,
            "public": collection.is_public,
            "email-notifications": collection.email_notifications,
            "notification-lead-days": collection.notification_lead_days,
            "last-checked": collection.last_checked,
            "ignored-attribute": sorted(int(a) for a in collection.ignored_attributes),
            "ignore-time-range": (
                {
                    "@id": time_range.id,
                    "start": time_range.range_start,
                    "end": time_range.range_end,
                }
                if time_range
                else None
            ),
            "watched-artist": links.watched_artist_ids,
            "discography-artist": links.discography_artist_ids,
            "owned-release": links.owned_release_ids,
            "ignored-release": links.ignored_release_ids,
        }
    }


@router.get("/collection/{collection_id}")
async def get_collection(
    collection_id: int,
    serializer: ISerializer = Depends(get_serializer),
    service: CollectionService = Depends(get_collection_service),
) -> Response:
    """Collection with its preferences and link rows."""
    try:
        collection = await service.get_collection(collection_id)
        links = await service.get_links(collection_id)
    except EntityNotFoundException as e:
        return SerializedResponse.error(e.message, serializer, status.HTTP_404_NOT_FOUND)
    return SerializedResponse(collection_payload(collection, links), serializer)


@router.get("/{target}/{entity_id}/tags")
async def get_tags(
    target: str,
    entity_id: int,
    limit: int = Query(30, ge=1, le=100),
    serializer: ISerializer = Depends(get_serializer),
    service: TagService = Depends(get_tag_service),
) -> Response:
    """Tag cloud of an artist, release, track or label."""
    try:
        cloud = await service.tag_cloud(target, entity_id, limit)
    except ValidationException as e:
        return SerializedResponse.error(e.message, serializer, status.HTTP_400_BAD_REQUEST)
    payload = {
        TagTarget(target).value: {
            "@id": entity_id,
            "tag": [
                {"@id": t.tag_id, "@count": t.count, "weight": t.weight} for t in cloud
            ],
        }
    }
    return SerializedResponse(payload, serializer)
