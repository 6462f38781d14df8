"""Data models for the photo importers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class PhotoAlbum:
    """An album in the vendor-neutral data model."""

    id: str
    name: str
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate album data."""
        if not self.id:
            raise ValueError("Album id cannot be empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PhotoAlbum":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description}


@dataclass(frozen=True)
class PhotoModel:
    """A photo in the vendor-neutral data model.

    ``fetchable_url`` is a URL, or the job store key of a staged blob when
    ``in_temp_store`` is set.
    """

    title: str
    fetchable_url: str
    description: str | None = None
    media_type: str | None = None
    album_id: str | None = None
    data_id: str | None = None
    in_temp_store: bool = False

    def __post_init__(self) -> None:
        """Validate photo data."""
        if not self.fetchable_url:
            raise ValueError("Photo must have a fetchable URL")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PhotoModel":
        return cls(
            title=data.get("title", ""),
            fetchable_url=data.get("fetchableUrl", ""),
            description=data.get("description"),
            media_type=data.get("mediaType"),
            album_id=data.get("albumId"),
            data_id=data.get("dataId"),
            in_temp_store=bool(data.get("inTempStore", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "fetchableUrl": self.fetchable_url,
            "description": self.description,
            "mediaType": self.media_type,
            "albumId": self.album_id,
            "dataId": self.data_id,
            "inTempStore": self.in_temp_store,
        }


@dataclass(frozen=True)
class PhotosContainerResource:
    """A batch of albums and photos handed to an importer."""

    albums: list[PhotoAlbum] | None = None
    photos: list[PhotoModel] | None = None

    @property
    def is_empty(self) -> bool:
        return self.albums is None and self.photos is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PhotosContainerResource":
        albums = data.get("albums")
        photos = data.get("photos")
        return cls(
            albums=None if albums is None else [PhotoAlbum.from_dict(a) for a in albums],
            photos=None if photos is None else [PhotoModel.from_dict(p) for p in photos],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "albums": None if self.albums is None else [a.to_dict() for a in self.albums],
            "photos": None if self.photos is None else [p.to_dict() for p in self.photos],
        }


@dataclass(frozen=True)
class AppCredentials:
    """The application's own key pair registered with a vendor."""

    key: str
    secret: str


@dataclass(frozen=True)
class TokenSecretAuthData:
    """OAuth 1.0a access token pair."""

    token: str
    secret: str


@dataclass(frozen=True)
class TokensAndUrlAuthData:
    """OAuth 2 tokens plus the URL used to refresh them."""

    access_token: str | None
    refresh_token: str | None = None
    token_server_url: str = "https://oauth2.googleapis.com/token"


class ResultType(str, Enum):
    OK = "OK"
    ERROR = "ERROR"


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    VENDOR = "vendor"
    IO = "io"


@dataclass(frozen=True)
class ImportResult:
    """Result of an import operation."""

    result_type: ResultType
    message: str | None = None
    error_kind: ErrorKind | None = None

    def __post_init__(self) -> None:
        """Validate import result."""
        if self.result_type is ResultType.ERROR and not self.message:
            raise ValueError("Failed import must have a message")
        if self.result_type is ResultType.OK and self.error_kind is not None:
            raise ValueError("Successful import cannot have an error kind")

    @property
    def success(self) -> bool:
        return self.result_type is ResultType.OK

    @classmethod
    def ok(cls) -> "ImportResult":
        return cls(ResultType.OK)

    @classmethod
    def error(cls, kind: ErrorKind, message: str) -> "ImportResult":
        return cls(ResultType.ERROR, message=message, error_kind=kind)
