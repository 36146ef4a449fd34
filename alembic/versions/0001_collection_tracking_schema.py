"""collection tracking schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 10:00:00.000000

Hey future me - INITIAL SCHEMA!

Creates the minimal catalog reference tables (moderator, artist, album), the
collection tables and the raw tag vote tables. Column names follow the catalog
(collection_info.lastcheck, *_join.collection_info, ...), so don't "fix" them.

ignoreattributes / album.attributes are INTEGER[] on PostgreSQL and a JSON list
on SQLite, same as IntegerList in models.py.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

INTEGER_LIST = sa.JSON().with_variant(ARRAY(sa.Integer()), "postgresql")

LINK_TABLES = [
    ("collection_watch_artist_join", "artist", "artist", "uq_watch_artist_pair"),
    (
        "collection_discography_artist_join",
        "artist",
        "artist",
        "uq_discography_artist_pair",
    ),
    ("collection_ignore_release_join", "album", "album", "uq_ignore_release_pair"),
    ("collection_has_release_join", "album", "album", "uq_has_release_pair"),
]

TAG_TABLES = [
    ("artist_tag_raw", "artist", "artist"),
    ("release_tag_raw", "release", "album"),
    ("track_tag_raw", "track", None),
    ("label_tag_raw", "label", None),
]


def upgrade() -> None:
    """Create catalog reference, collection and tag vote tables."""
    op.create_table(
        "moderator",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(64), nullable=False, unique=True),
    )
    op.create_table(
        "artist",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("gid", sa.String(36), nullable=True, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
    )
    op.create_index("ix_artist_name", "artist", ["name"])
    op.create_table(
        "album",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("gid", sa.String(36), nullable=True, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "artist",
            sa.Integer(),
            sa.ForeignKey("artist.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("release_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attributes", INTEGER_LIST, nullable=False),
    )
    op.create_index("ix_album_artist", "album", ["artist"])

    op.create_table(
        "collection_ignore_time_range",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("rangestart", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rangeend", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("rangestart", "rangeend", name="uq_ignore_time_range_bounds"),
        sa.CheckConstraint("rangestart <= rangeend", name="ck_ignore_time_range_order"),
    )

    op.create_table(
        "collection_info",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "moderator",
            sa.Integer(),
            sa.ForeignKey("moderator.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "collection_ignore_time_range",
            sa.Integer(),
            sa.ForeignKey("collection_ignore_time_range.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("lastcheck", sa.DateTime(timezone=True), nullable=False),
        sa.Column("publiccollection", sa.Boolean(), nullable=False),
        sa.Column(
            "emailnotifications", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "notificationinterval", sa.Integer(), nullable=False, server_default="7"
        ),
        sa.Column("ignoreattributes", INTEGER_LIST, nullable=False),
        sa.CheckConstraint("notificationinterval >= 0", name="ck_collection_info_interval"),
    )
    op.create_index("ix_collection_info_moderator", "collection_info", ["moderator"])
    op.create_index("ix_collection_info_lastcheck", "collection_info", ["lastcheck"])

    for table, column, target, unique_name in LINK_TABLES:
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "collection_info",
                sa.Integer(),
                sa.ForeignKey("collection_info.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                column,
                sa.Integer(),
                sa.ForeignKey(f"{target}.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.UniqueConstraint("collection_info", column, name=unique_name),
        )

    for table, column, target in TAG_TABLES:
        entity_args: list[sa.ForeignKey] = (
            [sa.ForeignKey(f"{target}.id", ondelete="CASCADE")] if target else []
        )
        op.create_table(
            table,
            sa.Column(column, sa.Integer(), *entity_args, primary_key=True),
            sa.Column("tag", sa.Integer(), primary_key=True),
            sa.Column(
                "moderator",
                sa.Integer(),
                sa.ForeignKey("moderator.id", ondelete="CASCADE"),
                primary_key=True,
            ),
        )


def downgrade() -> None:
    """Drop everything in reverse dependency order."""
    for table, _column, _target in reversed(TAG_TABLES):
        op.drop_table(table)
    for table, _column, _target, _unique in reversed(LINK_TABLES):
        op.drop_table(table)
    op.drop_index("ix_collection_info_lastcheck", table_name="collection_info")
    op.drop_index("ix_collection_info_moderator", table_name="collection_info")
    op.drop_table("collection_info")
    op.drop_table("collection_ignore_time_range")
    op.drop_index("ix_album_artist", table_name="album")
    op.drop_table("album")
    op.drop_index("ix_artist_name", table_name="artist")
    op.drop_table("artist")
    op.drop_table("moderator")
