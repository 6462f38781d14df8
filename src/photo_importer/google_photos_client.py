"""Google Photos Library API client using httpx."""

import logging
from typing import Any, BinaryIO
from urllib.parse import quote

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from photo_importer.models import AppCredentials, TokensAndUrlAuthData

logger = logging.getLogger(__name__)

# Google Photos Library API base URL
PHOTOS_API_BASE_URL = "https://photoslibrary.googleapis.com/v1"

SCOPES = ["https://www.googleapis.com/auth/photoslibrary.appendonly"]


class GooglePhotosError(Exception):
    """Base exception for Google Photos API errors."""

    pass


class RateLimitError(GooglePhotosError):
    """Exception raised when hitting rate limits."""

    pass


class ServerError(GooglePhotosError):
    """Exception raised for 5xx server errors."""

    pass


class GooglePhotosAuthError(GoogleAuthError):
    """Exception raised when no usable credential can be built."""

    pass


class GoogleCredentialFactory:
    """Turns stored OAuth tokens into Google credentials."""

    def __init__(self, app_credentials: AppCredentials) -> None:
        """Initialize the credential factory.

        Args:
            app_credentials: OAuth client id (key) and client secret
        """
        self.app_credentials = app_credentials

    def create_credential(self, auth_data: TokensAndUrlAuthData) -> Credentials:
        """Build credentials, refreshing them if the access token is unusable.

        Raises:
            GoogleAuthError: If the token cannot be refreshed
        """
        creds = Credentials(
            token=auth_data.access_token,
            refresh_token=auth_data.refresh_token,
            token_uri=auth_data.token_server_url,
            client_id=self.app_credentials.key,
            client_secret=self.app_credentials.secret,
            scopes=SCOPES,
        )
        ensure_fresh(creds)
        return creds


def ensure_fresh(creds: Credentials) -> None:
    """Refresh ``creds`` in place when they are missing or expired.

    Raises:
        GoogleAuthError: If the token cannot be refreshed
    """
    if creds.valid:
        return
    if not creds.refresh_token:
        raise GooglePhotosAuthError("Access token is missing or expired and no refresh token is available")
    logger.info("Refreshing Google access token")
    creds.refresh(Request())


class GooglePhotosClient:
    """Client for the Google Photos Library API."""

    def __init__(self, credentials: Credentials, http_client: httpx.Client) -> None:
        """Initialize the Google Photos client.

        Args:
            credentials: Authorized Google credentials
            http_client: httpx client used for API calls
        """
        self.credentials = credentials
        self.client = http_client

    @property
    def base_url(self) -> str:
        """Get the base URL for API requests."""
        return PHOTOS_API_BASE_URL

    def _auth_headers(self) -> dict[str, str]:
        ensure_fresh(self.credentials)
        return {"Authorization": f"Bearer {self.credentials.token}"}

    def upload_bytes(self, stream: BinaryIO, file_name: str, media_type: str) -> str:
        """Upload raw image bytes.

        Args:
            stream: Image bytes
            file_name: File name reported to Google Photos
            media_type: MIME type of the image

        Returns:
            Upload token to pass to ``create_media_item``

        Raises:
            GooglePhotosError: If the upload is rejected
        """
        headers = {
            **self._auth_headers(),
            "Content-Type": "application/octet-stream",
            "X-Goog-Upload-Content-Type": media_type,
            # Header values must be ASCII; the real name travels in batchCreate
            "X-Goog-Upload-File-Name": quote(file_name),
            "X-Goog-Upload-Protocol": "raw",
        }
        response = self.client.post(
            f"{self.base_url}/uploads", content=stream.read(), headers=headers
        )
        if response.status_code >= 400:
            result = self._parse_json_response(response, f"uploading {file_name}")
            self._handle_error_response(response.status_code, result, f"uploading {file_name}")

        upload_token = response.text
        if not upload_token:
            raise GooglePhotosError(f"Empty upload token while uploading {file_name}")
        return upload_token

    def create_media_item(
        self,
        upload_token: str,
        file_name: str,
        description: str | None = None,
        album_id: str | None = None,
    ) -> str:
        """Turn an upload token into a media item.

        Without ``album_id`` the item lands in the user's library.

        Returns:
            Media item ID

        Raises:
            GooglePhotosError: If the media item cannot be created
        """
        new_item: dict[str, Any] = {
            "simpleMediaItem": {"uploadToken": upload_token, "fileName": file_name}
        }
        if description:
            new_item["description"] = description
        body: dict[str, Any] = {"newMediaItems": [new_item]}
        if album_id:
            body["albumId"] = album_id

        context = f"creating media item for {file_name}"
        response = self.client.post(
            f"{self.base_url}/mediaItems:batchCreate",
            json=body,
            headers=self._auth_headers(),
        )
        result = self._parse_json_response(response, context)
        if response.status_code >= 400:
            self._handle_error_response(response.status_code, result, context)

        try:
            item_result = result["newMediaItemResults"][0]
        except (KeyError, IndexError, TypeError):
            raise GooglePhotosError(f"Invalid API response while {context}: {result}") from None

        status = item_result.get("status", {})
        if int(status.get("code", 0)) != 0:
            raise GooglePhotosError(
                f"Google Photos error while {context}: {status.get('message', status)}"
            )

        try:
            media_item_id = item_result["mediaItem"]["id"]
        except (KeyError, TypeError):
            raise GooglePhotosError(f"No media item returned while {context}: {result}") from None
        logger.debug(f"Created media item {media_item_id} for {file_name}")
        return media_item_id

    def _parse_json_response(
        self, response: httpx.Response, context: str
    ) -> dict[str, Any]:
        """Parse JSON response, handling non-JSON responses gracefully.

        Args:
            response: The httpx Response object
            context: Description of what operation was attempted

        Returns:
            Parsed JSON as a dictionary

        Raises:
            ServerError: If response is 5xx with non-JSON body
            GooglePhotosError: If response has invalid JSON for non-5xx status
        """
        try:
            return response.json()
        except ValueError:
            if response.status_code >= 500:
                raise ServerError(
                    f"Server error {response.status_code}: {response.text[:200]}"
                )
            raise GooglePhotosError(
                f"Invalid API response while {context}: {response.text[:200]}"
            )

    def _handle_error_response(
        self, status_code: int, result: dict[str, Any], context: str
    ) -> None:
        """Handle error responses from the Library API.

        Args:
            status_code: HTTP status code
            result: Response JSON body
            context: Description of what operation failed

        Raises:
            RateLimitError: If rate limit is exceeded
            ServerError: If server error occurs
            GooglePhotosError: For other API errors
        """
        error = result.get("error", {})
        error_message = error.get("message", str(result))

        if status_code == 429 or error.get("status") == "RESOURCE_EXHAUSTED":
            raise RateLimitError(f"Google Photos rate limit exceeded while {context}: {error_message}")

        if status_code >= 500:
            raise ServerError(f"Google Photos server error while {context}: {error_message}")

        raise GooglePhotosError(f"Google Photos API error while {context}: {error_message}")
