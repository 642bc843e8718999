# =============================================================================
# core/services/car_service.py - Car Lifecycle Logic
# =============================================================================
# Keeps a car record and its remote images consistent across
# create / update / delete, and serves owner-scoped reads.
#
# Every operation takes the authenticated user explicitly and filters on it,
# so another user's car is indistinguishable from a missing one.
#
# Store and storage failures are logged here and surfaced as
# OperationFailedError with a generic message.
# =============================================================================

import logging
from typing import Any

from app.auth.models import AuthUser
from app.exceptions import CarNotFoundError, OperationFailedError
from core.models.car import CarCreate, CarRecord, CarUpdate, ImageUpload
from core.services.storage_service import (
    StorageDeleteError,
    StorageService,
    StorageUploadError,
)
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import parse_json_string_list

logger = logging.getLogger(__name__)


def reconcile_images(retained: list[str], uploaded: list[str]) -> list[str]:
    """
    Compute a car's new image list: retained URLs first, then new uploads.

    Order within each part is preserved. Any previously stored URL that isn't
    in `retained` is dropped.
    """
    return [*retained, *uploaded]


class CarService:
    """
    Service for car lifecycle operations.

    Provides a clean interface between API routes, the cars table and
    image storage.
    """

    @staticmethod
    def _upload_all(images: list[ImageUpload]) -> list[str]:
        """Upload images one at a time, in submission order."""
        return [StorageService.upload_image(image) for image in images]

    @staticmethod
    def _fetch_owned(car_id: str, user: AuthUser) -> dict[str, Any]:
        """
        Fetch a car owned by user.

        Raises:
            CarNotFoundError: If missing or owned by someone else
            SupabaseClientError: If the query fails
        """
        row = SupabaseClient.fetch_car(car_id, user.id)
        if row is None:
            raise CarNotFoundError(car_id)
        return row

    @staticmethod
    def create_car(
        payload: CarCreate,
        images: list[ImageUpload],
        user: AuthUser,
    ) -> CarRecord:
        """
        Create a car with its initial images.

        Images are uploaded first; the record is saved with their URLs.
        If the save fails, already-uploaded images are left in storage.

        Raises:
            OperationFailedError: If any upload or the insert fails
        """
        try:
            image_urls = CarService._upload_all(images)

            row = SupabaseClient.insert_car({
                "title": payload.title,
                "description": payload.description,
                "tags": payload.tags,
                "images": image_urls,
                "user": str(user.id),
            })

        except (StorageUploadError, SupabaseClientError) as e:
            logger.error(f"Error creating car for user {user.id}: {e}")
            raise OperationFailedError("Error creating car")

        car = CarRecord.from_row(row)
        logger.info(f"Created car {car.id} with {len(car.images)} images for user {user.id}")
        return car

    @staticmethod
    def update_car(
        car_id: str,
        payload: CarUpdate,
        new_images: list[ImageUpload],
        user: AuthUser,
        existing_images_json: str | None = None,
    ) -> CarRecord:
        """
        Update a car's fields and replace its image list.

        The new image list is the retained URLs followed by the URLs of
        new_images. Images dropped from the list stay in storage.

        Args:
            existing_images_json: Retained URLs as a raw JSON array, as sent
                by the form. Parsed after the ownership check and used in
                place of payload.existing_images when given.

        Raises:
            CarNotFoundError: If the car is missing or not owned by user
            OperationFailedError: If the retained list is malformed, or an
                upload or the update fails
        """
        try:
            CarService._fetch_owned(car_id, user)

            retained = payload.existing_images
            if existing_images_json is not None:
                retained = parse_json_string_list(existing_images_json)

            uploaded = CarService._upload_all(new_images)

            update_data: dict[str, Any] = {
                "images": reconcile_images(retained, uploaded),
            }
            if payload.title is not None:
                update_data["title"] = payload.title
            if payload.description is not None:
                update_data["description"] = payload.description
            if payload.tags is not None:
                update_data["tags"] = payload.tags

            row = SupabaseClient.update_car(car_id, user.id, update_data)

        except ValueError as e:
            logger.error(f"Error updating car {car_id}: bad existingImages: {e}")
            raise OperationFailedError("Error updating car")

        except (StorageUploadError, SupabaseClientError) as e:
            logger.error(f"Error updating car {car_id}: {e}")
            raise OperationFailedError("Error updating car")

        if row is None:
            # Deleted between the lookup and the update
            raise CarNotFoundError(car_id)

        car = CarRecord.from_row(row)
        logger.info(f"Updated car {car.id}: {len(car.images)} images ({len(uploaded)} new)")
        return car

    @staticmethod
    def delete_car(car_id: str, user: AuthUser) -> dict[str, str]:
        """
        Delete a car and its images.

        Phase 1 deletes every image from storage, one at a time, stopping at
        the first failure. Phase 2 deletes the record, and only runs when
        phase 1 removed everything. A failed phase 1 leaves the record intact
        so the delete can be retried. URLs outside the asset folder are left
        alone.

        Raises:
            CarNotFoundError: If the car is missing or not owned by user
            OperationFailedError: If an image or the record can't be deleted
        """
        try:
            row = CarService._fetch_owned(car_id, user)
        except SupabaseClientError as e:
            logger.error(f"Error deleting car {car_id}: {e}")
            raise OperationFailedError("Error deleting car")

        # Phase 1: remote assets
        for image_url in row.get("images") or []:
            if not StorageService.is_managed_url(image_url):
                logger.warning(f"Car {car_id}: skipping image outside the asset folder: {image_url}")
                continue
            asset_id = StorageService.asset_id_from_url(image_url)
            try:
                StorageService.delete_image(asset_id)
            except StorageDeleteError as e:
                logger.error(f"Error deleting car {car_id}: image {asset_id} not removed: {e}")
                raise OperationFailedError("Error deleting car")

        # Phase 2: the record
        try:
            SupabaseClient.delete_car(car_id, user.id)
        except SupabaseClientError as e:
            logger.error(f"Error deleting car {car_id}: {e}")
            raise OperationFailedError("Error deleting car")

        logger.info(f"Deleted car {car_id} for user {user.id}")
        return {"message": "Car deleted successfully"}

    @staticmethod
    def get_car(car_id: str, user: AuthUser) -> CarRecord:
        """
        Get one car owned by user.

        Raises:
            CarNotFoundError: If the car is missing or not owned by user
            OperationFailedError: If the query fails
        """
        try:
            row = CarService._fetch_owned(car_id, user)
        except SupabaseClientError as e:
            logger.error(f"Error fetching car {car_id}: {e}")
            raise OperationFailedError("Error fetching car")

        return CarRecord.from_row(row)

    @staticmethod
    def list_cars(user: AuthUser) -> list[CarRecord]:
        """
        List all cars owned by user, in store order.

        Raises:
            OperationFailedError: If the query fails
        """
        try:
            rows = SupabaseClient.fetch_cars(user.id)
        except SupabaseClientError as e:
            logger.error(f"Error fetching cars for user {user.id}: {e}")
            raise OperationFailedError("Error fetching cars")

        return [CarRecord.from_row(row) for row in rows]
