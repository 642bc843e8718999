# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Remote asset store for car images. Images live in one bucket under the
# ASSET_FOLDER namespace ("cars/") and are addressed two ways:
# - by public URL, which is what car records store
# - by asset id ("cars/<stem>"), which is what deletion takes
# =============================================================================

import logging
from urllib.parse import unquote, urlparse
from uuid import uuid4

from app.config import settings
from core.models.car import ImageUpload
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class StorageUploadError(Exception):
    """Raised when an image can't be stored."""

    def __init__(self, filename: str, error: str):
        super().__init__(f"Failed to upload {filename}: {error}")
        self.filename = filename
        self.error = error


class StorageDeleteError(Exception):
    """Raised when the storage backend fails to delete an asset."""

    def __init__(self, asset_id: str, error: str):
        super().__init__(f"Failed to delete {asset_id}: {error}")
        self.asset_id = asset_id
        self.error = error


class StorageService:
    """
    Service for Supabase Storage operations on car images.

    Uploads and deletions are one call per asset; callers decide ordering.
    """

    @staticmethod
    def _bucket():
        client = SupabaseClient.get_client()
        return client.storage.from_(settings.STORAGE_BUCKET)

    @staticmethod
    def upload_image(upload: ImageUpload) -> str:
        """
        Store one image and return its public URL.

        The object key is "<ASSET_FOLDER>/<random hex>.<ext>", so the asset id
        derived from the URL is "<ASSET_FOLDER>/<random hex>".

        Raises:
            StorageUploadError: If the format isn't allowed or the upload fails
        """
        ext = upload.extension
        if ext not in settings.allowed_image_formats_list:
            raise StorageUploadError(upload.filename, f"format '{ext}' is not allowed")

        path = f"{settings.ASSET_FOLDER}/{uuid4().hex}.{ext}"
        content_type = upload.content_type or f"image/{'jpeg' if ext == 'jpg' else ext}"

        try:
            bucket = StorageService._bucket()
            bucket.upload(
                path=path,
                file=upload.content,
                file_options={"content-type": content_type},
            )
            url = bucket.get_public_url(path)

        except Exception as e:
            logger.error(f"Storage upload failed for {upload.filename}: {e}")
            raise StorageUploadError(upload.filename, str(e))

        logger.info(f"Uploaded image to storage: {path}")
        return url

    @staticmethod
    def public_prefix() -> str:
        """Public URL prefix of the asset folder in the bucket."""
        base = settings.SUPABASE_URL.rstrip("/")
        return f"{base}/storage/v1/object/public/{settings.STORAGE_BUCKET}/{settings.ASSET_FOLDER}/"

    @staticmethod
    def is_managed_url(url: str) -> bool:
        """
        Check that a URL points into this store's asset folder.

        Retained image URLs are client-supplied, so only these are ever
        turned into asset ids for deletion.
        """
        return url.startswith(StorageService.public_prefix())

    @staticmethod
    def asset_id_from_url(url: str) -> str:
        """
        Derive the asset id for a stored image URL.

        Takes the last path segment, strips its extension and qualifies it
        with the asset folder.

        Example:
            ".../object/public/media/cars/3f2a9c.jpg" -> "cars/3f2a9c"
        """
        segment = unquote(urlparse(url).path).rstrip("/").rsplit("/", 1)[-1]
        stem = segment.split(".", 1)[0]
        return f"{settings.ASSET_FOLDER}/{stem}"

    @staticmethod
    def delete_image(asset_id: str) -> None:
        """
        Delete the stored image for an asset id.

        The asset id carries no extension, so every allowed extension is a
        candidate key. Removing a key that doesn't exist is not an error.

        Raises:
            StorageDeleteError: If the storage call fails
        """
        candidates = [f"{asset_id}.{ext}" for ext in settings.allowed_image_formats_list]

        try:
            removed = StorageService._bucket().remove(candidates)

        except Exception as e:
            logger.error(f"Failed to delete asset {asset_id}: {e}")
            raise StorageDeleteError(asset_id, str(e))

        if removed:
            logger.info(f"Deleted asset from storage: {asset_id}")
        else:
            logger.warning(f"Asset already absent from storage: {asset_id}")
