# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - In-memory fakes for the cars/users tables and image storage, patched
#   over SupabaseClient and StorageService so no network calls happen
# - A FastAPI TestClient and bearer token helpers
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-0123456789")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from copy import deepcopy
from datetime import datetime, timezone
from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.auth import AuthUser, create_access_token
from core.models.car import ImageUpload
from core.services.storage_service import StorageDeleteError, StorageService, StorageUploadError
from lib.supabase_client import SupabaseClient, SupabaseClientError

PUBLIC_BASE = "https://test-project.supabase.co/storage/v1/object/public/media"


# =============================================================================
# Fakes
# =============================================================================

class FakeDatabase:
    """
    In-memory stand-in for the users and cars tables.

    Mirrors the SupabaseClient class methods. Add a method name to `failing`
    to make that call raise SupabaseClientError.
    """

    def __init__(self):
        self.users: dict[str, dict] = {}
        self.cars: dict[str, dict] = {}
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise SupabaseClientError(f"{name} failed", code="TEST_FAILURE")

    def add_user(self, user_id: str, email: str | None = None) -> None:
        self.users[user_id] = {"id": user_id, "email": email}

    def fetch_user(self, user_id):
        self._enter("fetch_user")
        user = self.users.get(str(user_id))
        return dict(user) if user else None

    def insert_car(self, data):
        self._enter("insert_car")
        row = deepcopy(data)
        row["id"] = str(uuid4())
        row["created_at"] = datetime.now(timezone.utc).isoformat()
        self.cars[row["id"]] = row
        return deepcopy(row)

    def fetch_car(self, car_id, user_id):
        self._enter("fetch_car")
        row = self.cars.get(str(car_id))
        if row is None or row["user"] != str(user_id):
            return None
        return deepcopy(row)

    def fetch_cars(self, user_id):
        self._enter("fetch_cars")
        return [deepcopy(row) for row in self.cars.values() if row["user"] == str(user_id)]

    def update_car(self, car_id, user_id, data):
        self._enter("update_car")
        row = self.cars.get(str(car_id))
        if row is None or row["user"] != str(user_id):
            return None
        row.update(deepcopy(data))
        return deepcopy(row)

    def delete_car(self, car_id, user_id):
        self._enter("delete_car")
        row = self.cars.get(str(car_id))
        if row is None or row["user"] != str(user_id):
            return False
        del self.cars[str(car_id)]
        return True


class FakeStorage:
    """
    In-memory stand-in for the image bucket.

    Object keys look like "cars/img1.jpg". Put an asset id in
    `failing_deletes` to make its deletion raise, or a filename in
    `failing_uploads` to make its upload raise.
    """

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.uploaded: list[str] = []
        self.delete_attempts: list[str] = []
        self.failing_uploads: set[str] = set()
        self.failing_deletes: set[str] = set()

    def upload_image(self, upload: ImageUpload) -> str:
        if upload.filename in self.failing_uploads:
            raise StorageUploadError(upload.filename, "storage unavailable")
        path = f"cars/img{len(self.uploaded) + 1}.{upload.extension}"
        self.objects[path] = upload.content
        self.uploaded.append(path)
        return f"{PUBLIC_BASE}/{path}"

    def delete_image(self, asset_id: str) -> None:
        self.delete_attempts.append(asset_id)
        if asset_id in self.failing_deletes:
            raise StorageDeleteError(asset_id, "storage unavailable")
        for key in [k for k in self.objects if k.rsplit(".", 1)[0] == asset_id]:
            del self.objects[key]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_db():
    """Patch SupabaseClient's table methods with an in-memory database."""
    db = FakeDatabase()
    with patch.object(SupabaseClient, "fetch_user", side_effect=db.fetch_user), \
         patch.object(SupabaseClient, "insert_car", side_effect=db.insert_car), \
         patch.object(SupabaseClient, "fetch_car", side_effect=db.fetch_car), \
         patch.object(SupabaseClient, "fetch_cars", side_effect=db.fetch_cars), \
         patch.object(SupabaseClient, "update_car", side_effect=db.update_car), \
         patch.object(SupabaseClient, "delete_car", side_effect=db.delete_car):
        yield db


@pytest.fixture
def fake_storage():
    """Patch StorageService uploads/deletes with an in-memory bucket."""
    storage = FakeStorage()
    with patch.object(StorageService, "upload_image", side_effect=storage.upload_image), \
         patch.object(StorageService, "delete_image", side_effect=storage.delete_image):
        yield storage


@pytest.fixture
def user_a(fake_db) -> AuthUser:
    fake_db.add_user("user-a", "a@example.com")
    return AuthUser(id="user-a", email="a@example.com")


@pytest.fixture
def user_b(fake_db) -> AuthUser:
    fake_db.add_user("user-b", "b@example.com")
    return AuthUser(id="user-b", email="b@example.com")


def bearer(user_id: str, **kwargs) -> dict[str, str]:
    """Authorization header carrying a fresh token for user_id."""
    return {"Authorization": f"Bearer {create_access_token(user_id, **kwargs)}"}


@pytest.fixture
def headers_a(user_a) -> dict[str, str]:
    return bearer(user_a.id)


@pytest.fixture
def headers_b(user_b) -> dict[str, str]:
    return bearer(user_b.id)


@pytest.fixture
def client(fake_db, fake_storage):
    """TestClient for the app with both stores faked."""
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


def image(name: str, content: bytes = b"\x89PNG fake image bytes") -> ImageUpload:
    """Build an in-memory image upload."""
    return ImageUpload(filename=name, content_type="image/png", content=content)
