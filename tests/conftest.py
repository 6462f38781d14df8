"""Pytest configuration and shared fixtures."""

import io
import json
import uuid
from pathlib import Path
from unittest.mock import Mock

import pytest

from photo_importer.job_store import InMemoryJobStore
from photo_importer.models import (
    AppCredentials,
    PhotoAlbum,
    PhotoModel,
    TokensAndUrlAuthData,
    TokenSecretAuthData,
)
from photo_importer.streams import ImageStreamProvider


@pytest.fixture
def job_id() -> uuid.UUID:
    return uuid.UUID("6f1c1a1e-2b7e-4a57-9a8e-3d0c7f1b2a10")


@pytest.fixture
def job_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def app_credentials() -> AppCredentials:
    """Return fake application credentials."""
    return AppCredentials(key="app_key_123", secret="app_secret_456")


@pytest.fixture
def flickr_auth() -> TokenSecretAuthData:
    """Return a fake Flickr token pair."""
    return TokenSecretAuthData(token="flickr_token", secret="flickr_token_secret")


@pytest.fixture
def google_auth() -> TokensAndUrlAuthData:
    """Return fake Google OAuth tokens."""
    return TokensAndUrlAuthData(access_token="google_access_token", refresh_token="google_refresh")


@pytest.fixture
def stream_provider() -> Mock:
    """A stream provider that returns fresh fake image bytes for every URL."""
    provider = Mock(spec=ImageStreamProvider)
    provider.get.side_effect = lambda url: io.BytesIO(f"bytes of {url}".encode())
    return provider


@pytest.fixture
def album() -> PhotoAlbum:
    return PhotoAlbum(id="album-1", name="Summer", description="Beach trip")


@pytest.fixture
def make_photo():
    """Return a factory building photos that point at a fake URL derived from their title."""

    def _make_photo(title: str, album_id: str | None = None, **kwargs) -> PhotoModel:
        kwargs.setdefault("fetchable_url", f"https://images.example.com/{title}.jpg")
        return PhotoModel(title=title, album_id=album_id, **kwargs)

    return _make_photo


@pytest.fixture
def container_file(tmp_path: Path) -> Path:
    """Write a container with one album and two photos to a JSON file.

    Structure:
        album-1 (Summer)
            beach.jpg
        (no album)
            cat.jpg
    """
    path = tmp_path / "container.json"
    path.write_text(
        json.dumps(
            {
                "albums": [{"id": "album-1", "name": "Summer", "description": "Beach trip"}],
                "photos": [
                    {
                        "title": "beach",
                        "fetchableUrl": "https://images.example.com/beach.jpg",
                        "albumId": "album-1",
                        "mediaType": "image/png",
                    },
                    {
                        "title": "cat",
                        "fetchableUrl": "https://images.example.com/cat.jpg",
                        "description": "Our cat",
                    },
                ],
            }
        )
    )
    return path
