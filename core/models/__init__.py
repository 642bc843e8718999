# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - car.py: Car input schemas, uploaded images and the persisted record
#
# These models define the "contract" between API and clients.
# =============================================================================

from .car import (
    CarCreate,
    CarRecord,
    CarUpdate,
    ImageUpload,
)

__all__ = [
    "CarCreate",
    "CarRecord",
    "CarUpdate",
    "ImageUpload",
]
