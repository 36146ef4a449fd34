"""API request/response schemas."""

from collectionwatch.api.schemas.collections import (
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

__all__ = [
    "CollectionLinksResponse",
    "CollectionListResponse",
    "CollectionResponse",
    "CreateCollectionRequest",
    "IgnoreTimeRangeRequest",
    "IgnoreTimeRangeResponse",
    "LastCheckedRequest",
    "LinkChangeResponse",
    "UpdateCollectionRequest",
]
