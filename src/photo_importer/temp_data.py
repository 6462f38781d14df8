"""Job-scoped mapping from universal album ids to vendor album ids.

Some vendors (Flickr) cannot create an empty album, so albums arrive as
definitions long before they can be created. Each universal album id moves
through three states during a job::

    UNREGISTERED -> PENDING -> CREATED

PENDING holds the album definition, CREATED holds the vendor album id. An id
is never in both maps at once.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

from photo_importer.models import PhotoAlbum

logger = logging.getLogger(__name__)


class AlbumState(str, Enum):
    UNREGISTERED = "unregistered"
    PENDING = "pending"
    CREATED = "created"


class InvalidAlbumTransition(ValueError):
    """Raised when an album id is moved to a state it cannot reach."""

    pass


@dataclass
class TempPhotosData:
    """Album bookkeeping for a single import job."""

    job_id: UUID
    pending_albums: dict[str, PhotoAlbum] = field(default_factory=dict)
    album_ids: dict[str, str] = field(default_factory=dict)

    def state(self, universal_id: str) -> AlbumState:
        if universal_id in self.album_ids:
            return AlbumState.CREATED
        if universal_id in self.pending_albums:
            return AlbumState.PENDING
        return AlbumState.UNREGISTERED

    def register_pending(self, album: PhotoAlbum) -> None:
        """Record an album definition until its vendor album is created.

        Albums that already exist remotely stay CREATED.
        """
        if self.state(album.id) is AlbumState.CREATED:
            logger.debug(f"Album {album.id} already created, not re-registering")
            return
        self.pending_albums[album.id] = album

    def promote(self, universal_id: str, vendor_album_id: str) -> None:
        """Mark a pending album as created under ``vendor_album_id``.

        Raises:
            InvalidAlbumTransition: If the album is not pending
        """
        current = self.state(universal_id)
        if current is not AlbumState.PENDING:
            raise InvalidAlbumTransition(
                f"Cannot promote album {universal_id} from state {current.value}"
            )
        self.album_ids[universal_id] = vendor_album_id
        del self.pending_albums[universal_id]

    def lookup_vendor_album_id(self, universal_id: str) -> str | None:
        return self.album_ids.get(universal_id)

    def lookup_pending_album(self, universal_id: str) -> PhotoAlbum | None:
        return self.pending_albums.get(universal_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TempPhotosData":
        return cls(
            job_id=UUID(data["job_id"]),
            pending_albums={
                key: PhotoAlbum.from_dict(value)
                for key, value in data.get("pending_albums", {}).items()
            },
            album_ids=dict(data.get("album_ids", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": str(self.job_id),
            "pending_albums": {
                key: album.to_dict() for key, album in self.pending_albums.items()
            },
            "album_ids": dict(self.album_ids),
        }
