"""White-box tests for the Flickr importer."""

import io
import xml.etree.ElementTree as ET
from pathlib import Path
from unittest.mock import Mock, call, patch

import httpx
import pytest
import requests
from flickrapi.exceptions import FlickrError

from photo_importer.flickr import (
    COPY_PREFIX,
    FlickrAuthError,
    FlickrPhotosImporter,
    FlickrSession,
    create_flickr_session,
)
from photo_importer.importer import AlbumNotFoundError
from photo_importer.job_store import LocalJobStore
from photo_importer.models import ErrorKind, PhotoAlbum, PhotosContainerResource, ResultType
from photo_importer.temp_data import AlbumState, TempPhotosData


@pytest.fixture
def session() -> Mock:
    """A Flickr session handing out sequential photo and photoset ids."""
    session = Mock(spec=FlickrSession)
    session.upload_photo.side_effect = [f"photo_{i}" for i in range(1, 10)]
    session.create_photoset.side_effect = [f"set_{i}" for i in range(1, 10)]
    return session


@pytest.fixture
def importer(app_credentials, job_store, stream_provider, session) -> FlickrPhotosImporter:
    return FlickrPhotosImporter(
        app_credentials,
        job_store,
        stream_provider,
        session_factory=lambda creds, auth: session,
    )


class TestFlickrPhotosImporter:
    """Test the album-on-first-photo import protocol."""

    def test_albums_only_are_registered_as_pending(
        self, importer, session, job_store, job_id, flickr_auth
    ) -> None:
        """Test that N albums without photos become N pending entries and no photosets."""
        albums = [PhotoAlbum(id=f"album-{i}", name=f"Album {i}") for i in range(3)]

        result = importer.import_item(job_id, flickr_auth, PhotosContainerResource(albums=albums))

        assert result.result_type is ResultType.OK
        temp_data = job_store.find_data(job_id, TempPhotosData)
        assert set(temp_data.pending_albums) == {"album-0", "album-1", "album-2"}
        assert temp_data.album_ids == {}
        session.create_photoset.assert_not_called()
        session.upload_photo.assert_not_called()

    def test_photo_without_album(
        self, importer, session, stream_provider, job_id, flickr_auth, make_photo
    ) -> None:
        """Test that a photo without album gets one upload and no album calls."""
        photo = make_photo("cat", description="Our cat")

        result = importer.import_item(job_id, flickr_auth, PhotosContainerResource(photos=[photo]))

        assert result.success
        stream_provider.get.assert_called_once_with(photo.fetchable_url)
        session.upload_photo.assert_called_once()
        _, title, description = session.upload_photo.call_args.args
        assert title == COPY_PREFIX + "cat"
        assert description == "Our cat"
        session.create_photoset.assert_not_called()
        session.add_photo.assert_not_called()

    def test_shared_album_created_once(
        self, importer, session, job_store, job_id, flickr_auth, album, make_photo
    ) -> None:
        """Test that two photos of a new album cause one create and one add."""
        container = PhotosContainerResource(
            albums=[album],
            photos=[make_photo("one", album.id), make_photo("two", album.id)],
        )

        result = importer.import_item(job_id, flickr_auth, container)

        assert result.success
        session.create_photoset.assert_called_once_with(
            COPY_PREFIX + "Summer", "Beach trip", "photo_1"
        )
        session.add_photo.assert_called_once_with("set_1", "photo_2")

        temp_data = job_store.find_data(job_id, TempPhotosData)
        assert temp_data.state(album.id) is AlbumState.CREATED
        assert temp_data.lookup_vendor_album_id(album.id) == "set_1"
        assert temp_data.lookup_pending_album(album.id) is None

    def test_album_created_in_earlier_batch_is_reused(
        self, importer, session, job_store, job_id, flickr_auth, album, make_photo
    ) -> None:
        """Test that a later batch of the same job adds to the existing photoset."""
        importer.import_item(
            job_id,
            flickr_auth,
            PhotosContainerResource(albums=[album], photos=[make_photo("one", album.id)]),
        )

        result = importer.import_item(
            job_id,
            flickr_auth,
            PhotosContainerResource(albums=[album], photos=[make_photo("two", album.id)]),
        )

        assert result.success
        assert session.create_photoset.call_count == 1
        session.add_photo.assert_called_once_with("set_1", "photo_2")
        assert job_store.find_data(job_id, TempPhotosData).album_ids == {album.id: "set_1"}

    def test_auth_failure_returns_error(
        self, app_credentials, job_store, stream_provider, job_id, flickr_auth, make_photo
    ) -> None:
        """Test that failed authentication returns ERROR before any upload."""
        session = Mock(spec=FlickrSession)

        def failing_factory(creds, auth):
            raise FlickrAuthError("Token is invalid or lacks write permission")

        importer = FlickrPhotosImporter(
            app_credentials, job_store, stream_provider, session_factory=failing_factory
        )

        result = importer.import_item(
            job_id, flickr_auth, PhotosContainerResource(photos=[make_photo("cat")])
        )

        assert result.result_type is ResultType.ERROR
        assert result.error_kind is ErrorKind.AUTHENTICATION
        assert "Token is invalid or lacks write permission" in result.message
        session.upload_photo.assert_not_called()
        stream_provider.get.assert_not_called()
        assert job_store.find_data(job_id, TempPhotosData) is None

    def test_empty_container_rejected(self, importer, job_id, flickr_auth) -> None:
        """Test that a container with neither albums nor photos is a contract error."""
        with pytest.raises(ValueError, match="no data to import"):
            importer.import_item(job_id, flickr_auth, PhotosContainerResource())

    def test_unregistered_album_is_fatal(
        self, importer, session, job_id, flickr_auth, make_photo
    ) -> None:
        """Test that a photo pointing at an unknown album fails before any album call."""
        container = PhotosContainerResource(photos=[make_photo("orphan", "missing-album")])

        with pytest.raises(AlbumNotFoundError, match="missing-album"):
            importer.import_item(job_id, flickr_auth, container)

        session.create_photoset.assert_not_called()
        session.add_photo.assert_not_called()

    def test_vendor_error_aborts_batch(
        self, importer, session, job_id, flickr_auth, make_photo
    ) -> None:
        """Test that the first Flickr error stops the remaining photos."""
        session.upload_photo.side_effect = [FlickrError("Error: 5: Filetype was not recognised")]
        photos = [make_photo("one"), make_photo("two")]

        result = importer.import_item(job_id, flickr_auth, PhotosContainerResource(photos=photos))

        assert result.result_type is ResultType.ERROR
        assert result.error_kind is ErrorKind.VENDOR
        assert "Filetype was not recognised" in result.message
        assert session.upload_photo.call_count == 1

    def test_fetch_error_returns_io_error(
        self, importer, session, stream_provider, job_id, flickr_auth, make_photo
    ) -> None:
        """Test that a failed image download is reported as an I/O error."""
        stream_provider.get.side_effect = httpx.ConnectError("connection refused")

        result = importer.import_item(
            job_id, flickr_auth, PhotosContainerResource(photos=[make_photo("one")])
        )

        assert result.error_kind is ErrorKind.IO
        assert "connection refused" in result.message
        session.upload_photo.assert_not_called()

    def test_unreadable_job_data_returns_io_error(
        self, app_credentials, session, stream_provider, tmp_path: Path, job_id, flickr_auth, album, make_photo
    ) -> None:
        """Test that corrupt stored album data is an I/O error, not an exception."""
        job_dir = tmp_path / str(job_id)
        job_dir.mkdir()
        (job_dir / "TempPhotosData.json").write_text("{not json")
        importer = FlickrPhotosImporter(
            app_credentials,
            LocalJobStore(tmp_path),
            stream_provider,
            session_factory=lambda creds, auth: session,
        )

        result = importer.import_item(
            job_id, flickr_auth, PhotosContainerResource(albums=[album], photos=[make_photo("one", album.id)])
        )

        assert result.result_type is ResultType.ERROR
        assert result.error_kind is ErrorKind.IO
        assert "Could not read" in result.message
        session.upload_photo.assert_not_called()

    def test_job_data_lost_mid_batch_returns_io_error(
        self, app_credentials, session, stream_provider, tmp_path: Path, job_id, flickr_auth, album, make_photo
    ) -> None:
        """Test that album data going bad during the photo phase is an I/O error."""
        data_file = tmp_path / str(job_id) / "TempPhotosData.json"

        def corrupt_then_fetch(url):
            data_file.write_text("{not json")
            return io.BytesIO(b"image")

        stream_provider.get.side_effect = corrupt_then_fetch
        importer = FlickrPhotosImporter(
            app_credentials,
            LocalJobStore(tmp_path),
            stream_provider,
            session_factory=lambda creds, auth: session,
        )

        result = importer.import_item(
            job_id, flickr_auth, PhotosContainerResource(albums=[album], photos=[make_photo("one", album.id)])
        )

        assert result.error_kind is ErrorKind.IO
        assert "Could not read" in result.message
        session.create_photoset.assert_not_called()

    def test_album_progress_persisted_before_failure(
        self, importer, session, job_store, job_id, flickr_auth, album, make_photo
    ) -> None:
        """Test that an album created before a failure stays recorded."""
        session.upload_photo.side_effect = ["photo_1", FlickrError("upload failed")]
        container = PhotosContainerResource(
            albums=[album],
            photos=[make_photo("one", album.id), make_photo("two", album.id)],
        )

        result = importer.import_item(job_id, flickr_auth, container)

        assert not result.success
        temp_data = job_store.find_data(job_id, TempPhotosData)
        assert temp_data.lookup_vendor_album_id(album.id) == "set_1"

    def test_rerun_uploads_photos_again(
        self, importer, session, job_id, flickr_auth, album, make_photo
    ) -> None:
        """Test that re-running an import is not deduplicated for photos.

        Only album creation is tracked per job, so a retried batch uploads
        every photo again but never creates a second photoset.
        """
        container = PhotosContainerResource(albums=[album], photos=[make_photo("one", album.id)])

        importer.import_item(job_id, flickr_auth, container)
        importer.import_item(job_id, flickr_auth, container)

        assert session.upload_photo.call_count == 2
        assert session.create_photoset.call_count == 1
        session.add_photo.assert_called_once_with("set_1", "photo_2")


class TestFlickrSession:
    """Test the thin wrapper around flickrapi."""

    def test_upload_photo(self) -> None:
        """Test that uploads are private, synchronous and return the photo id."""
        flickr = Mock()
        flickr.upload.return_value = ET.fromstring(
            '<rsp stat="ok"><photoid>12345</photoid></rsp>'
        )
        stream = io.BytesIO(b"image")

        photo_id = FlickrSession(flickr).upload_photo(stream, "Copy of - cat", "Our cat")

        assert photo_id == "12345"
        kwargs = flickr.upload.call_args.kwargs
        assert kwargs["fileobj"] is stream
        assert kwargs["title"] == "Copy of - cat"
        assert kwargs["description"] == "Our cat"
        assert kwargs["is_public"] == "0"
        assert kwargs["is_friend"] == "0"
        assert kwargs["is_family"] == "0"
        assert kwargs["async"] == "0"
        assert kwargs["format"] == "etree"

    def test_upload_photo_without_id(self) -> None:
        """Test that an upload response without photo id is an error."""
        flickr = Mock()
        flickr.upload.return_value = ET.fromstring('<rsp stat="ok"></rsp>')

        with pytest.raises(FlickrError, match="no photo id"):
            FlickrSession(flickr).upload_photo(io.BytesIO(b"image"), "cat")

    def test_create_photoset(self) -> None:
        """Test photoset creation with a primary photo."""
        flickr = Mock()
        flickr.photosets.create.return_value = {"photoset": {"id": "777"}, "stat": "ok"}

        photoset_id = FlickrSession(flickr).create_photoset("Copy of - Summer", None, "12345")

        assert photoset_id == "777"
        flickr.photosets.create.assert_called_once_with(
            title="Copy of - Summer", description="", primary_photo_id="12345"
        )

    def test_add_photo(self) -> None:
        flickr = Mock()

        FlickrSession(flickr).add_photo("777", "12345")

        flickr.photosets.addPhoto.assert_called_once_with(photoset_id="777", photo_id="12345")


class TestCreateFlickrSession:
    """Test translating user auth data into a Flickr session."""

    @patch("photo_importer.flickr.flickrapi.FlickrAPI")
    def test_valid_token(self, mock_flickr_class, app_credentials, flickr_auth) -> None:
        """Test that a valid write token yields a session."""
        mock_flickr = mock_flickr_class.return_value
        mock_flickr.token_valid.return_value = True

        session = create_flickr_session(app_credentials, flickr_auth)

        assert session.flickr is mock_flickr
        mock_flickr.token_valid.assert_called_once_with(perms="write")
        args, kwargs = mock_flickr_class.call_args
        assert args == ("app_key_123", "app_secret_456")
        assert kwargs["token"].token == "flickr_token"
        assert kwargs["token"].token_secret == "flickr_token_secret"
        assert kwargs["store_token"] is False

    @patch("photo_importer.flickr.flickrapi.FlickrAPI")
    def test_invalid_token(self, mock_flickr_class, app_credentials, flickr_auth) -> None:
        mock_flickr_class.return_value.token_valid.return_value = False

        with pytest.raises(FlickrAuthError, match="invalid"):
            create_flickr_session(app_credentials, flickr_auth)

    @patch("photo_importer.flickr.flickrapi.FlickrAPI")
    def test_network_failure(self, mock_flickr_class, app_credentials, flickr_auth) -> None:
        """Test that an unreachable Flickr is reported as an auth failure."""
        mock_flickr_class.return_value.token_valid.side_effect = requests.ConnectionError("down")

        with pytest.raises(FlickrAuthError, match="Could not reach Flickr"):
            create_flickr_session(app_credentials, flickr_auth)
