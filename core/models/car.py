# =============================================================================
# core/models/car.py - Car Schemas
# =============================================================================
# These models define the contract for car operations:
# - CarCreate: Validated input for creating a car
# - CarUpdate: Validated input for updating a car (fields + retained images)
# - ImageUpload: One uploaded image file, read into memory
# - CarRecord: A persisted car as returned to clients
#
# Routers build CarCreate/CarUpdate from multipart form fields before the
# CarService sees them, so the service only ever handles typed input.
# =============================================================================

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_tags(value: Any) -> Any:
    """Drop blank tags and surrounding whitespace."""
    if value is None:
        return value
    return [tag.strip() for tag in value if isinstance(tag, str) and tag.strip()]


class CarCreate(BaseModel):
    """
    Schema for creating a new car.

    Example:
        {
            "title": "Tesla Model X",
            "description": "Fully electric luxury SUV",
            "tags": ["electric", "luxury"]
        }
    """

    title: str = Field(
        ...,
        min_length=1,
        description="Title of the car",
        examples=["Tesla Model X"],
    )

    description: str = Field(
        ...,
        min_length=1,
        description="Description of the car",
        examples=["Fully electric luxury SUV"],
    )

    tags: list[str] = Field(
        default_factory=list,
        description="Tags associated with the car",
        examples=[["electric", "luxury"]],
    )

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, value: Any) -> Any:
        return _clean_tags(value)


class CarUpdate(BaseModel):
    """
    Schema for updating a car.

    title/description/tags left as None keep their stored value.
    existing_images is the list of already-stored URLs to keep, in order;
    it always replaces the stored image list together with any new uploads.
    """

    title: str | None = Field(
        default=None,
        min_length=1,
        description="New title of the car",
    )

    description: str | None = Field(
        default=None,
        min_length=1,
        description="New description of the car",
    )

    tags: list[str] | None = Field(
        default=None,
        description="Replacement tag list",
    )

    existing_images: list[str] = Field(
        default_factory=list,
        description="Image URLs to retain, in order",
    )

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, value: Any) -> Any:
        return _clean_tags(value)


class ImageUpload(BaseModel):
    """An uploaded image file, read fully into memory."""

    filename: str
    content_type: str | None = None
    content: bytes = Field(repr=False)

    @property
    def extension(self) -> str:
        """Lower-case extension without the dot, or '' if none."""
        if "." not in self.filename:
            return ""
        return self.filename.rsplit(".", 1)[-1].lower()

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class CarRecord(BaseModel):
    """
    Schema for returning car data to clients.

    Example:
        {
            "id": "660e8400-e29b-41d4-a716-446655440001",
            "title": "Tesla Model X",
            "description": "Fully electric luxury SUV",
            "tags": ["electric", "luxury"],
            "images": ["https://xxx.supabase.co/storage/v1/object/public/media/cars/3f2a.jpg"],
            "user": "550e8400-e29b-41d4-a716-446655440000"
        }
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Store-assigned car identifier")
    title: str
    description: str
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    user: str = Field(..., description="Id of the owning user")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", "user", mode="before")
    @classmethod
    def stringify_ids(cls, value: Any) -> Any:
        # Supabase returns uuid columns as strings, other stores may not
        return value if isinstance(value, str) else str(value)

    @field_validator("tags", "images", mode="before")
    @classmethod
    def default_list(cls, value: Any) -> Any:
        # Null array columns come back as None; copy so records never share a list
        return [] if value is None else list(value)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CarRecord":
        """Build a CarRecord from a database row."""
        return cls.model_validate(row)
