"""Utility functions for the photo importers."""

import json
import logging
from pathlib import Path

from photo_importer.models import PhotosContainerResource

logger = logging.getLogger(__name__)


def load_container(path: Path) -> PhotosContainerResource:
    """Load a photos container from a JSON file.

    The file holds an object with optional ``albums`` and ``photos`` lists::

        {
            "albums": [{"id": "a1", "name": "Trip", "description": "..."}],
            "photos": [{"title": "Beach", "fetchableUrl": "https://...",
                        "albumId": "a1"}]
        }

    Args:
        path: Path to the JSON file

    Returns:
        The parsed container

    Raises:
        FileNotFoundError: If path doesn't exist
        ValueError: If the file is not a valid container
    """
    if not path.exists():
        raise FileNotFoundError(f"Container file does not exist: {path}")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Container file is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Container file must hold a JSON object")

    try:
        container = PhotosContainerResource.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed container: {e!r}") from e

    logger.info(
        f"Loaded {len(container.albums or [])} album(s) and "
        f"{len(container.photos or [])} photo(s) from {path}"
    )
    return container
