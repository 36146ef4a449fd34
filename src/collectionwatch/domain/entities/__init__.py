"""Domain entities."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from collectionwatch.domain.exceptions import ValidationException
from collectionwatch.domain.value_objects import (
    DEFAULT_IGNORED_ATTRIBUTES,
    ReleaseAttribute,
    TagTarget,
)

DEFAULT_NOTIFICATION_LEAD_DAYS = 7
INITIAL_LOOKBACK_DAYS = 7


def ensure_utc_aware(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime, treating naive values as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


@dataclass(frozen=True)
class IgnoreTimeRange:
    """A date window during which a collection wants no notifications.

    Ranges are shared: several collections can point at the same row, so the
    entity is immutable once created.
    """

    range_start: datetime
    range_end: datetime
    id: int | None = None

    def __post_init__(self) -> None:
        if ensure_utc_aware(self.range_start) > ensure_utc_aware(self.range_end):
            raise ValidationException(
                "Ignore time range start must not be after its end "
                f"({self.range_start.isoformat()} > {self.range_end.isoformat()})"
            )

    def contains(self, moment: datetime) -> bool:
        """Check if moment lies inside the closed interval [start, end]."""
        moment = ensure_utc_aware(moment)
        return (
            ensure_utc_aware(self.range_start)
            <= moment
            <= ensure_utc_aware(self.range_end)
        )


# Hey future me, CollectionInfo is the aggregate root for release tracking! The link rows
# (watched artists, owned releases, ...) are NOT loaded into the entity - they can be large
# and most callers only need the preferences. Use CollectionLinks when you need them.
# last_checked only ever moves forward. The repository compare-and-set enforces it.
@dataclass
class CollectionInfo:
    """A user's release-tracking collection and its notification preferences."""

    owner_id: int
    is_public: bool
    last_checked: datetime
    email_notifications: bool = True
    notification_lead_days: int = DEFAULT_NOTIFICATION_LEAD_DAYS
    ignored_attributes: frozenset[ReleaseAttribute] = DEFAULT_IGNORED_ATTRIBUTES
    ignore_time_range: IgnoreTimeRange | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        """Validate collection data."""
        if self.notification_lead_days < 0:
            raise ValidationException("Notification lead days must not be negative")
        self.last_checked = ensure_utc_aware(self.last_checked)

    @classmethod
    def create(
        cls,
        owner_id: int,
        is_public: bool,
        now: datetime | None = None,
        *,
        email_notifications: bool = True,
        notification_lead_days: int = DEFAULT_NOTIFICATION_LEAD_DAYS,
        ignored_attributes: frozenset[ReleaseAttribute] = DEFAULT_IGNORED_ATTRIBUTES,
        lookback_days: int = INITIAL_LOOKBACK_DAYS,
    ) -> "CollectionInfo":
        """Build a new collection that is immediately eligible for a check."""
        now = ensure_utc_aware(now or datetime.now(UTC))
        return cls(
            owner_id=owner_id,
            is_public=is_public,
            last_checked=now - timedelta(days=lookback_days),
            email_notifications=email_notifications,
            notification_lead_days=notification_lead_days,
            ignored_attributes=ignored_attributes,
        )

    @property
    def next_check_at(self) -> datetime:
        """Earliest moment the notification sweep should process this collection."""
        return self.last_checked + timedelta(days=self.notification_lead_days)

    def require_id(self) -> int:
        """Return the database id.

        Raises:
            ValidationException: If the collection was never saved
        """
        if self.id is None:
            raise ValidationException("Collection has not been saved yet")
        return self.id

    def is_due(self, now: datetime) -> bool:
        """Check if lastChecked + notificationLeadDays <= now."""
        return self.next_check_at <= ensure_utc_aware(now)

    def ignores_any(self, attributes: frozenset[ReleaseAttribute]) -> bool:
        """Check if any of the given release attributes is ignored."""
        return not self.ignored_attributes.isdisjoint(attributes)


@dataclass
class CollectionLinks:
    """The link rows of one collection, as id lists."""

    collection_id: int
    watched_artist_ids: list[int] = field(default_factory=list)
    discography_artist_ids: list[int] = field(default_factory=list)
    owned_release_ids: list[int] = field(default_factory=list)
    ignored_release_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class ReleaseCandidate:
    """A release that might trigger a notification for a collection."""

    release_id: int
    artist_id: int
    name: str
    release_date: datetime | None = None
    attributes: frozenset[ReleaseAttribute] = frozenset()


@dataclass(frozen=True)
class TagCount:
    """Number of raw votes a tag received on one entity."""

    tag_id: int
    count: int


@dataclass(frozen=True)
class TagVote:
    """One raw (entity, tag, voter) vote."""

    target: TagTarget
    entity_id: int
    tag_id: int
    moderator_id: int


__all__ = [
    "DEFAULT_NOTIFICATION_LEAD_DAYS",
    "INITIAL_LOOKBACK_DAYS",
    "CollectionInfo",
    "CollectionLinks",
    "IgnoreTimeRange",
    "ReleaseCandidate",
    "TagCount",
    "TagVote",
    "ensure_utc_aware",
]
