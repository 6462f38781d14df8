"""Import photos into Google Photos.

Album structure is not carried over: every photo is added to the user's
default library.
"""

import logging
import threading
from typing import BinaryIO
from uuid import UUID

import httpx
from google.auth.exceptions import GoogleAuthError

from photo_importer.google_photos_client import (
    GoogleCredentialFactory,
    GooglePhotosClient,
    GooglePhotosError,
)
from photo_importer.job_store import JobStore, JobStoreError
from photo_importer.models import (
    ErrorKind,
    ImportResult,
    PhotoModel,
    PhotosContainerResource,
    TokensAndUrlAuthData,
)
from photo_importer.streams import ImageStreamProvider

logger = logging.getLogger(__name__)

COPY_PREFIX = "copy of "
DEFAULT_MEDIA_TYPE = "image/jpeg"

# None targets the library itself rather than a named album
DEFAULT_ALBUM_ID: str | None = None


class GooglePhotosImporter:
    """Imports a photos container into a Google Photos library."""

    def __init__(
        self,
        credential_factory: GoogleCredentialFactory,
        job_store: JobStore,
        stream_provider: ImageStreamProvider,
        http_client: httpx.Client,
        photos_client: GooglePhotosClient | None = None,
    ) -> None:
        """Initialize the Google Photos importer.

        Args:
            credential_factory: Builds credentials from the user's tokens
            job_store: Store holding staged photo bytes
            stream_provider: Fetches photo bytes from their URL
            http_client: httpx client for Library API calls
            photos_client: Pre-built API client used for every session
        """
        self.credential_factory = credential_factory
        self.job_store = job_store
        self.stream_provider = stream_provider
        self.http_client = http_client
        self._photos_client = photos_client
        self._clients: dict[tuple[str | None, str | None, str], GooglePhotosClient] = {}
        self._lock = threading.Lock()

    def import_item(
        self,
        job_id: UUID,
        auth_data: TokensAndUrlAuthData,
        container: PhotosContainerResource,
    ) -> ImportResult:
        """Import the container's photos for one job."""
        if container.albums:
            logger.warning(
                "Importing albums in Google Photos is not supported. "
                "Photos will be added to the default album."
            )

        if not container.photos:
            return ImportResult.ok()

        try:
            photos_client = self._get_or_create_photos_client(auth_data)
        except GoogleAuthError as e:
            logger.error(f"Google authorization failed for job {job_id}: {e}")
            return ImportResult.error(
                ErrorKind.AUTHENTICATION, f"Error authorizing Google Photos: {e}"
            )

        for photo in container.photos:
            try:
                self._import_single_photo(job_id, photos_client, photo)
            except GoogleAuthError as e:
                logger.error(f"Google credentials stopped working during job {job_id}: {e}")
                return ImportResult.error(
                    ErrorKind.AUTHENTICATION, f"Error authorizing Google Photos: {e}"
                )
            except GooglePhotosError as e:
                logger.error(f"Google Photos rejected photo '{photo.title}': {e}")
                return ImportResult.error(ErrorKind.VENDOR, f"Error importing photo {e}")
            except (httpx.HTTPError, JobStoreError, OSError) as e:
                logger.error(f"Failed to transfer photo '{photo.title}': {e}")
                return ImportResult.error(ErrorKind.IO, f"Error importing photo {e}")

        return ImportResult.ok()

    def _import_single_photo(
        self, job_id: UUID, photos_client: GooglePhotosClient, photo: PhotoModel
    ) -> None:
        file_name = COPY_PREFIX + photo.title
        media_type = photo.media_type or DEFAULT_MEDIA_TYPE

        stream = self._open_stream(job_id, photo)
        upload_token = photos_client.upload_bytes(stream, file_name, media_type)
        media_item_id = photos_client.create_media_item(
            upload_token, file_name, photo.description, album_id=DEFAULT_ALBUM_ID
        )
        logger.info(f"Uploaded '{photo.title}' as media item {media_item_id}")

    def _open_stream(self, job_id: UUID, photo: PhotoModel) -> BinaryIO:
        if photo.in_temp_store:
            return self.job_store.get_stream(job_id, photo.fetchable_url)
        return self.stream_provider.get(photo.fetchable_url)

    def _get_or_create_photos_client(
        self, auth_data: TokensAndUrlAuthData
    ) -> GooglePhotosClient:
        """Return the client for this user's tokens, building it on first use.

        Clients are cached per token set so one importer can serve several
        accounts without mixing their credentials.
        """
        if self._photos_client is not None:
            return self._photos_client
        key = (auth_data.access_token, auth_data.refresh_token, auth_data.token_server_url)
        client = self._clients.get(key)
        if client is not None:
            return client
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                credentials = self.credential_factory.create_credential(auth_data)
                client = GooglePhotosClient(credentials, self.http_client)
                self._clients[key] = client
                logger.debug("Created Google Photos client")
            return client
