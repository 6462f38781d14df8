"""Fetch photo bytes from their source URL using httpx."""

import io
import logging
from typing import Any, BinaryIO

import httpx

logger = logging.getLogger(__name__)


class ImageStreamProvider:
    """Opens a buffered byte stream for an image URL."""

    def __init__(self, timeout: float | None = 60.0) -> None:
        """Initialize the stream provider.

        Args:
            timeout: Per-request timeout in seconds, None to wait forever
        """
        self.timeout = timeout
        self._client: httpx.Client | None = None

    def __enter__(self) -> "ImageStreamProvider":
        """Context manager entry."""
        self._client = httpx.Client(timeout=self.timeout, follow_redirects=True)
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        if self._client:
            self._client.close()
        self._client = None

    @property
    def client(self) -> httpx.Client:
        """Get the httpx Client instance.

        Raises:
            RuntimeError: If the provider is used outside of its context manager
        """
        if self._client is None:
            raise RuntimeError("Stream provider must be used within context manager")
        return self._client

    def get(self, url: str) -> BinaryIO:
        """Download an image.

        Args:
            url: Public URL of the image

        Returns:
            The image bytes as a seekable stream

        Raises:
            httpx.HTTPStatusError: If the server answers with 4xx/5xx
            httpx.RequestError: If the request could not be sent
        """
        response = self.client.get(url)
        response.raise_for_status()
        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return io.BytesIO(response.content)
