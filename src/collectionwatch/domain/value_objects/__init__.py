"""Domain value objects."""

from enum import Enum

from collectionwatch.domain.value_objects.release_attributes import (
    DEFAULT_IGNORED_ATTRIBUTES,
    ReleaseAttribute,
    parse_attributes,
)


class CollectionLinkType(str, Enum):
    """The four kinds of per-collection link rows.

    WATCH_ARTIST and DISCOGRAPHY_ARTIST are separate namespaces: watching is
    forward-looking (notify about upcoming releases), discography tracking is
    retroactive (completeness of everything the artist released).
    """

    WATCH_ARTIST = "watch_artist"
    DISCOGRAPHY_ARTIST = "discography_artist"
    IGNORE_RELEASE = "ignore_release"
    HAS_RELEASE = "has_release"

    @property
    def target_type(self) -> str:
        """Entity type the link points at ("Artist" or "Release")."""
        if self in (CollectionLinkType.WATCH_ARTIST, CollectionLinkType.DISCOGRAPHY_ARTIST):
            return "Artist"
        return "Release"


class TagTarget(str, Enum):
    """Entity kinds that can receive raw tag votes."""

    ARTIST = "artist"
    RELEASE = "release"
    TRACK = "track"
    LABEL = "label"


__all__ = [
    "DEFAULT_IGNORED_ATTRIBUTES",
    "CollectionLinkType",
    "ReleaseAttribute",
    "TagTarget",
    "parse_attributes",
]
