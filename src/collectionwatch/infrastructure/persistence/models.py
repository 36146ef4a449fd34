"""SQLAlchemy ORM models for collectionwatch.

Hey future me - table and column names follow the catalog's existing schema
(collection_info.lastcheck, collection_ignore_release_join.album, ...) so the
tables can sit next to the rest of the catalog. The Python attribute names are
the readable ones; the first argument of mapped_column() is the SQL column name.
"""

from datetime import UTC, datetime, timedelta

import sqlalchemy as sa
from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from collectionwatch.domain.entities import (
    DEFAULT_NOTIFICATION_LEAD_DAYS,
    INITIAL_LOOKBACK_DAYS,
)
from collectionwatch.domain.value_objects import DEFAULT_IGNORED_ATTRIBUTES


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


def _initial_last_checked() -> datetime:
    return utc_now() - timedelta(days=INITIAL_LOOKBACK_DAYS)


def _default_ignored_attributes() -> list[int]:
    return sorted(int(attr) for attr in DEFAULT_IGNORED_ATTRIBUTES)


# Integer array on PostgreSQL, JSON list everywhere else (SQLite has no arrays).
IntegerList = sa.JSON().with_variant(ARRAY(Integer), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Catalog reference tables
# Hey future me - only the columns collectionwatch needs! These exist so that link
# rows have real foreign keys to point at. The catalog owns the full tables.
# =============================================================================


class ModeratorModel(Base):
    """Catalog user (editor) that owns collections and casts tag votes."""

    __tablename__ = "moderator"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)


class ArtistModel(Base):
    """Catalog artist."""

    __tablename__ = "artist"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    gid: Mapped[str | None] = mapped_column(String(36), nullable=True, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)


class ReleaseModel(Base):
    """Catalog release (stored in the `album` table)."""

    __tablename__ = "album"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    gid: Mapped[str | None] = mapped_column(String(36), nullable=True, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    artist_id: Mapped[int] = mapped_column(
        "artist", Integer, ForeignKey("artist.id", ondelete="CASCADE"), nullable=False
    )
    release_date: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    attributes: Mapped[list[int]] = mapped_column(
        IntegerList, nullable=False, default=list
    )

    __table_args__ = (Index("ix_album_artist", "artist"),)


# =============================================================================
# Collection tracking
# =============================================================================


class IgnoreTimeRangeModel(Base):
    """Shared date window during which notifications are suppressed."""

    __tablename__ = "collection_ignore_time_range"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    range_start: Mapped[datetime] = mapped_column(
        "rangestart", sa.DateTime(timezone=True), nullable=False
    )
    range_end: Mapped[datetime] = mapped_column(
        "rangeend", sa.DateTime(timezone=True), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("rangestart", "rangeend", name="uq_ignore_time_range_bounds"),
        sa.CheckConstraint("rangestart <= rangeend", name="ck_ignore_time_range_order"),
    )


# Hey future me, collection_info is the aggregate root! Every *_join table below points
# here with ON DELETE CASCADE, AND CollectionRepository.delete() removes the join rows
# explicitly first - SQLite only honours the FK when PRAGMA foreign_keys=ON, and we
# don't want correctness to depend on a pragma.
class CollectionInfoModel(Base):
    """A user's release-tracking collection."""

    __tablename__ = "collection_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        "moderator",
        Integer,
        ForeignKey("moderator.id", ondelete="CASCADE"),
        nullable=False,
    )
    ignore_time_range_id: Mapped[int | None] = mapped_column(
        "collection_ignore_time_range",
        Integer,
        ForeignKey("collection_ignore_time_range.id", ondelete="SET NULL"),
        nullable=True,
    )
    last_checked: Mapped[datetime] = mapped_column(
        "lastcheck",
        sa.DateTime(timezone=True),
        nullable=False,
        default=_initial_last_checked,
    )
    is_public: Mapped[bool] = mapped_column("publiccollection", nullable=False)
    email_notifications: Mapped[bool] = mapped_column(
        "emailnotifications", nullable=False, default=True
    )
    notification_lead_days: Mapped[int] = mapped_column(
        "notificationinterval",
        Integer,
        nullable=False,
        default=DEFAULT_NOTIFICATION_LEAD_DAYS,
    )
    ignored_attributes: Mapped[list[int]] = mapped_column(
        "ignoreattributes",
        IntegerList,
        nullable=False,
        default=_default_ignored_attributes,
    )

    __table_args__ = (
        Index("ix_collection_info_moderator", "moderator"),
        Index("ix_collection_info_lastcheck", "lastcheck"),
        sa.CheckConstraint(
            "notificationinterval >= 0", name="ck_collection_info_interval"
        ),
    )


class WatchArtistLinkModel(Base):
    """Collection watches an artist's upcoming releases."""

    __tablename__ = "collection_watch_artist_join"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection_id: Mapped[int] = mapped_column(
        "collection_info",
        Integer,
        ForeignKey("collection_info.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_id: Mapped[int] = mapped_column(
        "artist", Integer, ForeignKey("artist.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("collection_info", "artist", name="uq_watch_artist_pair"),
    )


class DiscographyArtistLinkModel(Base):
    """Collection tracks an artist's complete discography."""

    __tablename__ = "collection_discography_artist_join"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection_id: Mapped[int] = mapped_column(
        "collection_info",
        Integer,
        ForeignKey("collection_info.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_id: Mapped[int] = mapped_column(
        "artist", Integer, ForeignKey("artist.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "collection_info", "artist", name="uq_discography_artist_pair"
        ),
    )


class IgnoreReleaseLinkModel(Base):
    """Collection never wants notifications about this release."""

    __tablename__ = "collection_ignore_release_join"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection_id: Mapped[int] = mapped_column(
        "collection_info",
        Integer,
        ForeignKey("collection_info.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_id: Mapped[int] = mapped_column(
        "album", Integer, ForeignKey("album.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("collection_info", "album", name="uq_ignore_release_pair"),
    )


class HasReleaseLinkModel(Base):
    """Collection already owns this release."""

    __tablename__ = "collection_has_release_join"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection_id: Mapped[int] = mapped_column(
        "collection_info",
        Integer,
        ForeignKey("collection_info.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_id: Mapped[int] = mapped_column(
        "album", Integer, ForeignKey("album.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("collection_info", "album", name="uq_has_release_pair"),
    )


# =============================================================================
# Raw tag votes
# Hey future me - one row per (entity, tag, voter). The triple IS the primary key, so a
# voter can't vote the same tag twice on the same entity. Tag clouds are computed by
# counting rows per tag (TagVoteRepository.tag_counts). Track, label and tag ids are
# plain integers - those catalog tables are not part of this service.
# =============================================================================


class ArtistTagRawModel(Base):
    """Raw tag vote on an artist."""

    __tablename__ = "artist_tag_raw"

    entity_id: Mapped[int] = mapped_column(
        "artist",
        Integer,
        ForeignKey("artist.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[int] = mapped_column("tag", Integer, primary_key=True)
    moderator_id: Mapped[int] = mapped_column(
        "moderator",
        Integer,
        ForeignKey("moderator.id", ondelete="CASCADE"),
        primary_key=True,
    )


class ReleaseTagRawModel(Base):
    """Raw tag vote on a release."""

    __tablename__ = "release_tag_raw"

    entity_id: Mapped[int] = mapped_column(
        "release",
        Integer,
        ForeignKey("album.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[int] = mapped_column("tag", Integer, primary_key=True)
    moderator_id: Mapped[int] = mapped_column(
        "moderator",
        Integer,
        ForeignKey("moderator.id", ondelete="CASCADE"),
        primary_key=True,
    )


class TrackTagRawModel(Base):
    """Raw tag vote on a track."""

    __tablename__ = "track_tag_raw"

    entity_id: Mapped[int] = mapped_column("track", Integer, primary_key=True)
    tag_id: Mapped[int] = mapped_column("tag", Integer, primary_key=True)
    moderator_id: Mapped[int] = mapped_column(
        "moderator",
        Integer,
        ForeignKey("moderator.id", ondelete="CASCADE"),
        primary_key=True,
    )


class LabelTagRawModel(Base):
    """Raw tag vote on a label."""

    __tablename__ = "label_tag_raw"

    entity_id: Mapped[int] = mapped_column("label", Integer, primary_key=True)
    tag_id: Mapped[int] = mapped_column("tag", Integer, primary_key=True)
    moderator_id: Mapped[int] = mapped_column(
        "moderator",
        Integer,
        ForeignKey("moderator.id", ondelete="CASCADE"),
        primary_key=True,
    )


LinkModel = (
    WatchArtistLinkModel
    | DiscographyArtistLinkModel
    | IgnoreReleaseLinkModel
    | HasReleaseLinkModel
)
TagRawModel = ArtistTagRawModel | ReleaseTagRawModel | TrackTagRawModel | LabelTagRawModel
