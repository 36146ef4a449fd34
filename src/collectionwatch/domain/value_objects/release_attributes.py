"""Release attribute codes.

Hey future me - these integer codes are the catalog's release TYPE and STATUS
attributes, stored as a plain integer list on each release and in a
collection's `ignoreattributes` column. The numbering is fixed by the catalog:

- 0-11:    release types (album, single, compilation, live, ...)
- 100-103: release statuses (official, promotion, bootleg, pseudo-release)

The set is CLOSED. A collection may only ignore codes listed here, so anything
else is rejected at write time instead of silently never matching.
"""

from collections.abc import Iterable
from enum import IntEnum

from collectionwatch.domain.exceptions import ValidationException


class ReleaseAttribute(IntEnum):
    """Release type and status codes."""

    NON_ALBUM_TRACKS = 0
    ALBUM = 1
    SINGLE = 2
    EP = 3
    COMPILATION = 4
    SOUNDTRACK = 5
    SPOKENWORD = 6
    INTERVIEW = 7
    AUDIOBOOK = 8
    LIVE = 9
    REMIX = 10
    OTHER = 11

    OFFICIAL = 100
    PROMOTION = 101
    BOOTLEG = 102
    PSEUDO_RELEASE = 103

    @property
    def is_type(self) -> bool:
        return self.value < 100

    @property
    def is_status(self) -> bool:
        return self.value >= 100


# Everything except plain albums, singles and official releases.
DEFAULT_IGNORED_ATTRIBUTES: frozenset[ReleaseAttribute] = frozenset(
    {
        ReleaseAttribute.NON_ALBUM_TRACKS,
        ReleaseAttribute.EP,
        ReleaseAttribute.COMPILATION,
        ReleaseAttribute.SOUNDTRACK,
        ReleaseAttribute.SPOKENWORD,
        ReleaseAttribute.INTERVIEW,
        ReleaseAttribute.AUDIOBOOK,
        ReleaseAttribute.LIVE,
        ReleaseAttribute.REMIX,
        ReleaseAttribute.OTHER,
        ReleaseAttribute.PROMOTION,
        ReleaseAttribute.BOOTLEG,
        ReleaseAttribute.PSEUDO_RELEASE,
    }
)


def parse_attributes(codes: Iterable[int]) -> frozenset[ReleaseAttribute]:
    """Convert raw integer codes to ReleaseAttribute members.

    Args:
        codes: Integer attribute codes, e.g. from a request body or DB row

    Returns:
        Frozen set of attributes

    Raises:
        ValidationException: If any code is not a known release attribute
    """
    values = [int(code) for code in codes]
    known = {attr.value for attr in ReleaseAttribute}
    unknown = sorted({value for value in values if value not in known})
    if unknown:
        raise ValidationException(
            f"Unknown release attribute code(s): {', '.join(map(str, unknown))}"
        )
    return frozenset(ReleaseAttribute(value) for value in values)
