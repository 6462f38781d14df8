"""Photo Importer - Push vendor-neutral photos and albums into Flickr and Google Photos."""

__version__ = "0.1.0"

from photo_importer.flickr import FlickrPhotosImporter
from photo_importer.google_photos import GooglePhotosImporter
from photo_importer.job_store import InMemoryJobStore, LocalJobStore
from photo_importer.models import (
    ImportResult,
    PhotoAlbum,
    PhotoModel,
    PhotosContainerResource,
)
from photo_importer.temp_data import TempPhotosData

__all__ = [
    "FlickrPhotosImporter",
    "GooglePhotosImporter",
    "InMemoryJobStore",
    "LocalJobStore",
    "ImportResult",
    "PhotoAlbum",
    "PhotoModel",
    "PhotosContainerResource",
    "TempPhotosData",
]
