"""Import photos and albums into Flickr.

Flickr cannot create an empty photoset: a set is created together with its
primary photo. Albums are therefore registered as pending in the job's temp
data and only created when their first photo has been uploaded.
"""

import logging
from collections.abc import Callable
from typing import BinaryIO
from uuid import UUID

import flickrapi
import httpx
import requests
from flickrapi.auth import FlickrAccessToken
from flickrapi.exceptions import FlickrError

from photo_importer.importer import AlbumNotFoundError
from photo_importer.job_store import JobStore, JobStoreError
from photo_importer.models import (
    AppCredentials,
    ErrorKind,
    ImportResult,
    PhotoAlbum,
    PhotoModel,
    PhotosContainerResource,
    TokenSecretAuthData,
)
from photo_importer.streams import ImageStreamProvider
from photo_importer.temp_data import TempPhotosData

logger = logging.getLogger(__name__)

COPY_PREFIX = "Copy of - "

# Permission needed to upload and manage photosets
REQUIRED_PERMS = "write"


class FlickrAuthError(FlickrError):
    """Raised when the user's Flickr token cannot be used."""

    pass


class FlickrSession:
    """The calls the importer makes against an authenticated Flickr API."""

    def __init__(self, flickr: flickrapi.FlickrAPI) -> None:
        self.flickr = flickr

    def upload_photo(
        self, stream: BinaryIO, title: str, description: str | None = None
    ) -> str:
        """Upload a private photo.

        Args:
            stream: Image bytes
            title: Photo title
            description: Photo description

        Returns:
            Flickr photo ID

        Raises:
            FlickrError: If Flickr rejects the upload
        """
        params = {
            "title": title,
            "is_public": "0",
            "is_friend": "0",
            "is_family": "0",
            "async": "0",
        }
        if description:
            params["description"] = description
        # The upload endpoint only answers in XML
        rsp = self.flickr.upload(filename=title or "photo", fileobj=stream, format="etree", **params)
        photo_id = rsp.findtext("photoid")
        if not photo_id:
            raise FlickrError(f"Upload of '{title}' returned no photo id")
        return photo_id

    def create_photoset(
        self, title: str, description: str | None, primary_photo_id: str
    ) -> str:
        """Create a photoset with ``primary_photo_id`` as its first photo.

        Returns:
            Photoset ID
        """
        resp = self.flickr.photosets.create(
            title=title,
            description=description or "",
            primary_photo_id=primary_photo_id,
        )
        return resp["photoset"]["id"]

    def add_photo(self, photoset_id: str, photo_id: str) -> None:
        self.flickr.photosets.addPhoto(photoset_id=photoset_id, photo_id=photo_id)


def create_flickr_session(
    app_credentials: AppCredentials, auth_data: TokenSecretAuthData
) -> FlickrSession:
    """Build a Flickr session from the user's OAuth token pair.

    The token is checked against Flickr before it is used.

    Raises:
        FlickrAuthError: If the token is invalid or lacks write permission
    """
    token = FlickrAccessToken(auth_data.token, auth_data.secret, REQUIRED_PERMS)
    flickr = flickrapi.FlickrAPI(
        app_credentials.key,
        app_credentials.secret,
        token=token,
        store_token=False,
        format="parsed-json",
    )
    try:
        valid = flickr.token_valid(perms=REQUIRED_PERMS)
    except requests.RequestException as e:
        raise FlickrAuthError(f"Could not reach Flickr: {e}") from e
    if not valid:
        raise FlickrAuthError("Token is invalid or lacks write permission")
    return FlickrSession(flickr)


class FlickrPhotosImporter:
    """Imports a photos container into a Flickr account."""

    def __init__(
        self,
        app_credentials: AppCredentials,
        job_store: JobStore,
        stream_provider: ImageStreamProvider,
        session_factory: Callable[
            [AppCredentials, TokenSecretAuthData], FlickrSession
        ] = create_flickr_session,
    ) -> None:
        """Initialize the Flickr importer.

        Args:
            app_credentials: Flickr API key and secret
            job_store: Store holding the job's temp data
            stream_provider: Fetches photo bytes from their URL
            session_factory: Turns user auth data into a Flickr session
        """
        self.app_credentials = app_credentials
        self.job_store = job_store
        self.stream_provider = stream_provider
        self.session_factory = session_factory

    def import_item(
        self,
        job_id: UUID,
        auth_data: TokenSecretAuthData,
        container: PhotosContainerResource,
    ) -> ImportResult:
        """Import albums and photos for one job.

        Raises:
            ValueError: If the container holds neither albums nor photos
            AlbumNotFoundError: If a photo's album was never registered
        """
        try:
            session = self.session_factory(self.app_credentials, auth_data)
        except FlickrError as e:
            logger.error(f"Flickr authorization failed for job {job_id}: {e}")
            return ImportResult.error(
                ErrorKind.AUTHENTICATION, f"Error authorizing Flickr Auth: {e}"
            )

        if container.is_empty:
            raise ValueError("Error: There is no data to import")

        try:
            temp_data = self.job_store.find_data(job_id, TempPhotosData)
            if temp_data is None:
                temp_data = TempPhotosData(job_id)
                self.job_store.create(job_id, temp_data)

            if container.albums is not None:
                self._import_albums(container.albums, temp_data)
                self.job_store.update(job_id, temp_data)
        except (JobStoreError, OSError) as e:
            logger.error(f"Could not load album data for job {job_id}: {e}")
            return ImportResult.error(ErrorKind.IO, f"Error loading job data {e}")

        for photo in container.photos or []:
            try:
                self._import_single_photo(job_id, session, photo)
            except FlickrError as e:
                logger.error(f"Flickr rejected photo '{photo.title}': {e}")
                return ImportResult.error(ErrorKind.VENDOR, f"Error importing photo {e}")
            except (httpx.HTTPError, requests.RequestException, JobStoreError, OSError) as e:
                logger.error(f"Failed to transfer photo '{photo.title}': {e}")
                return ImportResult.error(ErrorKind.IO, f"Error importing photo {e}")

        return ImportResult.ok()

    def _import_albums(self, albums: list[PhotoAlbum], temp_data: TempPhotosData) -> None:
        for album in albums:
            temp_data.register_pending(album)
            logger.info(f"Registered album '{album.name}' ({album.id})")

    def _import_single_photo(
        self, job_id: UUID, session: FlickrSession, photo: PhotoModel
    ) -> None:
        stream = self.stream_provider.get(photo.fetchable_url)
        photo_id = session.upload_photo(stream, COPY_PREFIX + photo.title, photo.description)
        logger.info(f"Uploaded '{photo.title}' as Flickr photo {photo_id}")

        # Photos without an album stay in the camera roll
        if not photo.album_id:
            return

        temp_data = self.job_store.find_data(job_id, TempPhotosData)
        if temp_data is None:
            raise AlbumNotFoundError(f"No album data for job {job_id}")

        photoset_id = temp_data.lookup_vendor_album_id(photo.album_id)
        if photoset_id:
            session.add_photo(photoset_id, photo_id)
            logger.debug(f"Added photo {photo_id} to photoset {photoset_id}")
        else:
            album = temp_data.lookup_pending_album(photo.album_id)
            if album is None:
                raise AlbumNotFoundError(f"Album not found: {photo.album_id}")
            photoset_id = session.create_photoset(
                COPY_PREFIX + album.name, album.description, photo_id
            )
            temp_data.promote(photo.album_id, photoset_id)
            logger.info(f"Created photoset {photoset_id} for album '{album.name}'")

        self.job_store.update(job_id, temp_data)
