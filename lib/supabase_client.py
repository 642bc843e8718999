# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for:
# - Identity lookups (users table)
# - Car record CRUD, always scoped to the owning user
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   car = SupabaseClient.fetch_car(car_id, user_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import normalize_id

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST / Postgres codes that mean "there is no such row" for our lookups:
# PGRST116 - .single() matched zero rows
# 22P02    - id is not a valid uuid, so it can't match anything
_NO_ROW_CODES = ("PGRST116", "22P02")


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries a code and an optional suggestion so the cause can be logged
    in a form that tells the operator how to fix it.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def _is_no_row_error(error: Exception) -> bool:
    text = str(error)
    return any(code in text for code in _NO_ROW_CODES)


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Every car query filters on both ``id`` and ``user``, so a record owned
    by someone else looks exactly like a missing one.

    Example:
        cars = SupabaseClient.fetch_cars(user_id="550e8400-...")
        car = SupabaseClient.fetch_car(car_id, user_id)
        if car is None:
            ...  # missing or not owned
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Ownership is enforced by the query filters instead.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached client (used by tests and after config changes)."""
        cls._instance = None

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_user(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a user by ID.

        Args:
            user_id: The user's id (the token subject)

        Returns:
            User dict with id and email, or None if not found

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        user_id_str = normalize_id(user_id)

        try:
            response = (
                client.table(settings.USERS_TABLE)
                .select("id, email")
                .eq("id", user_id_str)
                .limit(1)
                .execute()
            )

            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            if _is_no_row_error(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch user: {e}",
                code="FETCH_USER_FAILED",
                suggestion="Check that the users table is accessible",
                details={"user_id": user_id_str}
            )

    # -------------------------------------------------------------------------
    # Car Records
    # -------------------------------------------------------------------------

    @classmethod
    def insert_car(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a new car record.

        Args:
            data: Column values; must include ``user``

        Returns:
            Inserted row with its store-assigned id

        Raises:
            SupabaseClientError: If insert fails or returns nothing
        """
        client = cls.get_client()

        try:
            response = (
                client.table(settings.CARS_TABLE)
                .insert(data)
                .execute()
            )

            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert car: {e}",
                code="INSERT_CAR_FAILED",
                details={"user": data.get("user")}
            )

    @classmethod
    def fetch_car(
        cls,
        car_id: str | UUID,
        user_id: str | UUID,
    ) -> dict[str, Any] | None:
        """
        Fetch one car owned by a user.

        Returns:
            Car row, or None if it doesn't exist or isn't owned by user_id

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        car_id_str = normalize_id(car_id)
        user_id_str = normalize_id(user_id)

        try:
            response = (
                client.table(settings.CARS_TABLE)
                .select("*")
                .eq("id", car_id_str)
                .eq("user", user_id_str)
                .limit(1)
                .execute()
            )

            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            if _is_no_row_error(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch car: {e}",
                code="FETCH_CAR_FAILED",
                details={"car_id": car_id_str, "user": user_id_str}
            )

    @classmethod
    def fetch_cars(cls, user_id: str | UUID) -> list[dict[str, Any]]:
        """
        Fetch all cars owned by a user, oldest first.

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        user_id_str = normalize_id(user_id)

        try:
            response = (
                client.table(settings.CARS_TABLE)
                .select("*")
                .eq("user", user_id_str)
                .order("created_at")
                .execute()
            )

            cars = response.data or []
            logger.debug(f"Fetched {len(cars)} cars for user {user_id_str}")
            return cars

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch cars: {e}",
                code="FETCH_CARS_FAILED",
                details={"user": user_id_str}
            )

    @classmethod
    def update_car(
        cls,
        car_id: str | UUID,
        user_id: str | UUID,
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Update a car owned by a user in a single statement.

        Returns:
            Updated row, or None if no row matched the id+user filter

        Raises:
            SupabaseClientError: If update fails
        """
        client = cls.get_client()
        car_id_str = normalize_id(car_id)
        user_id_str = normalize_id(user_id)

        try:
            response = (
                client.table(settings.CARS_TABLE)
                .update(data)
                .eq("id", car_id_str)
                .eq("user", user_id_str)
                .execute()
            )

            rows = response.data or []
            return rows[0] if rows else None

        except Exception as e:
            if _is_no_row_error(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to update car: {e}",
                code="UPDATE_CAR_FAILED",
                details={"car_id": car_id_str, "user": user_id_str}
            )

    @classmethod
    def delete_car(cls, car_id: str | UUID, user_id: str | UUID) -> bool:
        """
        Delete a car owned by a user.

        Returns:
            True if a row was deleted, False if nothing matched

        Raises:
            SupabaseClientError: If delete fails
        """
        client = cls.get_client()
        car_id_str = normalize_id(car_id)
        user_id_str = normalize_id(user_id)

        try:
            response = (
                client.table(settings.CARS_TABLE)
                .delete()
                .eq("id", car_id_str)
                .eq("user", user_id_str)
                .execute()
            )

            return bool(response.data)

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete car: {e}",
                code="DELETE_CAR_FAILED",
                details={"car_id": car_id_str, "user": user_id_str}
            )
