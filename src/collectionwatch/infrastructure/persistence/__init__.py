"""Infrastructure persistence layer."""

from .database import Database
from .models import (
    ArtistModel,
    ArtistTagRawModel,
    Base,
    CollectionInfoModel,
    DiscographyArtistLinkModel,
    HasReleaseLinkModel,
    IgnoreReleaseLinkModel,
    IgnoreTimeRangeModel,
    LabelTagRawModel,
    ModeratorModel,
    ReleaseModel,
    ReleaseTagRawModel,
    TrackTagRawModel,
    WatchArtistLinkModel,
)
from .repositories import (
    CatalogRepository,
    CollectionRepository,
    TagVoteRepository,
)

__all__ = [
    # Database
    "Database",
    "Base",
    # Catalog models
    "ModeratorModel",
    "ArtistModel",
    "ReleaseModel",
    # Collection models
    "CollectionInfoModel",
    "IgnoreTimeRangeModel",
    "WatchArtistLinkModel",
    "DiscographyArtistLinkModel",
    "IgnoreReleaseLinkModel",
    "HasReleaseLinkModel",
    # Tag vote models
    "ArtistTagRawModel",
    "ReleaseTagRawModel",
    "TrackTagRawModel",
    "LabelTagRawModel",
    # Repositories
    "CatalogRepository",
    "CollectionRepository",
    "TagVoteRepository",
]
