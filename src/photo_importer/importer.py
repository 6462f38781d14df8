"""The capability every vendor importer implements."""

from typing import Protocol, TypeVar
from uuid import UUID

from photo_importer.models import ImportResult, PhotosContainerResource

AuthT = TypeVar("AuthT", contravariant=True)


class AlbumNotFoundError(ValueError):
    """Raised when a photo references an album that was never registered."""

    pass


class Importer(Protocol[AuthT]):
    """Materializes a batch of vendor-neutral photo data in a vendor's service.

    Vendor and I/O failures are reported through the returned
    ``ImportResult``; broken caller contracts (an empty container, a photo
    whose album was never registered) raise.

    Imports are not idempotent. Re-running a job after a failure uploads
    the photos that already made it again; only album creation is
    deduplicated, through the job's temp data.
    """

    def import_item(
        self, job_id: UUID, auth_data: AuthT, container: PhotosContainerResource
    ) -> ImportResult: ...
