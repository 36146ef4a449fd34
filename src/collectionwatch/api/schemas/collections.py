"""Request and response models for the collections API."""

from datetime import datetime

from pydantic import BaseModel, Field

from collectionwatch.domain.entities import CollectionInfo, CollectionLinks


class CreateCollectionRequest(BaseModel):
    """Request to create a collection."""

    owner_id: int
    is_public: bool = False
    email_notifications: bool = True
    notification_lead_days: int | None = Field(default=None, ge=0)
    ignored_attributes: list[int] | None = None


class UpdateCollectionRequest(BaseModel):
    """Partial preference update. Omitted fields stay unchanged."""

    is_public: bool | None = None
    email_notifications: bool | None = None
    notification_lead_days: int | None = Field(default=None, ge=0)
    ignored_attributes: list[int] | None = None


class IgnoreTimeRangeRequest(BaseModel):
    """Request to set a collection's ignore time range."""

    range_start: datetime
    range_end: datetime


class LastCheckedRequest(BaseModel):
    """Request to advance a collection's last-checked timestamp."""

    timestamp: datetime


class IgnoreTimeRangeResponse(BaseModel):
    id: int | None
    range_start: datetime
    range_end: datetime


class CollectionResponse(BaseModel):
    """Response with collection information."""

    id: int
    owner_id: int
    is_public: bool
    email_notifications: bool
    notification_lead_days: int
    ignored_attributes: list[int]
    last_checked: datetime
    next_check_at: datetime
    ignore_time_range: IgnoreTimeRangeResponse | None = None

    @classmethod
    def from_entity(cls, collection: CollectionInfo) -> "CollectionResponse":
        time_range = collection.ignore_time_range
        return cls(
            id=collection.require_id(),
            owner_id=collection.owner_id,
            is_public=collection.is_public,
            email_notifications=collection.email_notifications,
            notification_lead_days=collection.notification_lead_days,
            ignored_attributes=sorted(int(a) for a in collection.ignored_attributes),
            last_checked=collection.last_checked,
            next_check_at=collection.next_check_at,
            ignore_time_range=(
                IgnoreTimeRangeResponse(
                    id=time_range.id,
                    range_start=time_range.range_start,
                    range_end=time_range.range_end,
                )
                if time_range
                else None
            ),
        )


class CollectionLinksResponse(BaseModel):
    """All link rows of a collection."""

    collection_id: int
    watched_artist_ids: list[int]
    discography_artist_ids: list[int]
    owned_release_ids: list[int]
    ignored_release_ids: list[int]

    @classmethod
    def from_entity(cls, links: CollectionLinks) -> "CollectionLinksResponse":
        return cls(
            collection_id=links.collection_id,
            watched_artist_ids=links.watched_artist_ids,
            discography_artist_ids=links.discography_artist_ids,
            owned_release_ids=links.owned_release_ids,
            ignored_release_ids=links.ignored_release_ids,
        )


class LinkChangeResponse(BaseModel):
    """Result of adding or removing one link row."""

    collection_id: int
    target_id: int
    changed: bool = Field(description="False if the link was already in that state")


class CollectionListResponse(BaseModel):
    collections: list[CollectionResponse]
    total: int

