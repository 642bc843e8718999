# =============================================================================
# app/routers/cars.py - Car CRUD Endpoints
# =============================================================================
# Multipart endpoints for cars and their images.
# All endpoints require authentication; every lookup is scoped to the caller.
#
# Form fields are turned into CarCreate / CarUpdate / ImageUpload here, so
# CarService only receives validated input.
# =============================================================================

from typing import Annotated, Any, TypeVar

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from app.auth import get_current_user, AuthUser
from app.config import settings
from app.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    TooManyImagesError,
)
from core.models.car import CarCreate, CarRecord, CarUpdate, ImageUpload
from core.services.car_service import CarService
from lib.utils import parse_json_string_list

router = APIRouter()

PayloadT = TypeVar("PayloadT", bound=BaseModel)


# =============================================================================
# Helper Functions
# =============================================================================

def _normalize_tags(tags: list[str] | None) -> list[str] | None:
    """
    Accept tags as repeated form fields or as one JSON array string.

    A single value that isn't a JSON array is kept as a literal tag.
    """
    if tags is None:
        return None
    if len(tags) == 1 and tags[0].lstrip().startswith("["):
        try:
            return parse_json_string_list(tags[0])
        except ValueError:
            return tags
    return tags


def _build_payload(model: type[PayloadT], **fields: Any) -> PayloadT:
    """
    Validate form fields into an input model.

    Model errors are reported like any other request validation error (422).
    """
    try:
        return model(**fields)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


async def _read_uploads(
    files: list[UploadFile] | None,
    field: str,
) -> list[ImageUpload]:
    """
    Validate and read the files sent under one form field.

    Raises:
        TooManyImagesError: More files than MAX_IMAGES_PER_REQUEST
        InvalidFileTypeError: A file extension isn't an allowed image format
        FileTooLargeError: A file exceeds MAX_UPLOAD_SIZE_MB
    """
    # Browsers send an empty part when no file was picked
    files = [f for f in files or [] if f.filename]

    if len(files) > settings.MAX_IMAGES_PER_REQUEST:
        raise TooManyImagesError(field, len(files), settings.MAX_IMAGES_PER_REQUEST)

    uploads = []
    for file in files:
        upload = ImageUpload(
            filename=file.filename,
            content_type=file.content_type,
            content=await file.read(),
        )

        if upload.extension not in settings.allowed_image_formats_list:
            raise InvalidFileTypeError(upload.filename, settings.allowed_image_formats_list)

        if upload.size_bytes > settings.max_upload_size_bytes:
            raise FileTooLargeError(
                upload.filename,
                upload.size_bytes / (1024 * 1024),
                settings.MAX_UPLOAD_SIZE_MB,
            )

        uploads.append(upload)

    return uploads


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=CarRecord, status_code=status.HTTP_201_CREATED)
async def create_car(
    title: Annotated[str, Form(min_length=1, description="Title of the car", examples=["Tesla Model X"])],
    description: Annotated[str, Form(min_length=1, description="Description of the car")],
    tags: Annotated[list[str] | None, Form(description="Tags associated with the car")] = None,
    images: Annotated[list[UploadFile] | None, File(description="Car images to upload")] = None,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a new car with images.

    Accepts up to 10 image files under `images`. Each is stored in the
    `cars` folder and the car is saved with their URLs, in upload order.
    """
    payload = _build_payload(
        CarCreate,
        title=title,
        description=description,
        tags=_normalize_tags(tags) or [],
    )
    uploads = await _read_uploads(images, "images")

    return CarService.create_car(payload, uploads, user)


@router.get("", response_model=list[CarRecord])
async def list_cars(
    user: AuthUser = Depends(get_current_user),
):
    """
    Get all cars for the authenticated user.
    """
    return CarService.list_cars(user)


@router.get("/{car_id}", response_model=CarRecord)
async def get_car(
    car_id: Annotated[str, Path(description="ID of the car to retrieve")],
    user: AuthUser = Depends(get_current_user),
):
    """
    Get a specific car by ID.

    Returns 404 if the car doesn't exist or belongs to another user.
    """
    return CarService.get_car(car_id, user)


@router.put("/{car_id}", response_model=CarRecord)
async def update_car(
    car_id: Annotated[str, Path(description="ID of the car to update")],
    title: Annotated[str | None, Form(description="Title of the car")] = None,
    description: Annotated[str | None, Form(description="Description of the car")] = None,
    tags: Annotated[list[str] | None, Form(description="Tags associated with the car")] = None,
    existing_images: Annotated[
        str | None,
        Form(alias="existingImages", description="JSON string of existing image URLs to retain"),
    ] = None,
    new_images: Annotated[
        list[UploadFile] | None,
        File(alias="newImages", description="New car images to upload"),
    ] = None,
    user: AuthUser = Depends(get_current_user),
):
    """
    Update car details with new images.

    The car's image list becomes `existingImages` followed by the URLs of
    `newImages`. Images left out of `existingImages` are removed from the
    car (the stored files are kept). A malformed `existingImages` is a 500,
    but only once the car is known to exist and belong to the caller.
    """
    payload = _build_payload(
        CarUpdate,
        title=title or None,
        description=description or None,
        tags=_normalize_tags(tags),
    )
    uploads = await _read_uploads(new_images, "newImages")

    # existingImages is parsed by the service once ownership is confirmed
    return CarService.update_car(
        car_id,
        payload,
        uploads,
        user,
        existing_images_json=existing_images,
    )


@router.delete("/{car_id}")
async def delete_car(
    car_id: Annotated[str, Path(description="ID of the car to delete")],
    user: AuthUser = Depends(get_current_user),
):
    """
    Delete a car and its images.

    Images are deleted from storage first. If any of them fails, the car is
    kept and 500 is returned, so the delete can be retried.
    """
    return CarService.delete_car(car_id, user)
