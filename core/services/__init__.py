# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .car_service import CarService, reconcile_images
from .storage_service import StorageService, StorageDeleteError, StorageUploadError

__all__ = [
    "CarService",
    "reconcile_images",
    "StorageService",
    "StorageDeleteError",
    "StorageUploadError",
]
