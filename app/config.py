# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # The service key is used server-side for both the cars table and storage

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    CARS_TABLE: str = Field(
        default="cars",
        description="Table holding car records"
    )

    USERS_TABLE: str = Field(
        default="users",
        description="Table holding user identities"
    )

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    JWT_SECRET: str = Field(
        ...,
        min_length=16,
        description="Secret used to sign and verify bearer tokens"
    )

    JWT_ALGORITHM: str = Field(
        default="HS256",
        description="Signing algorithm for bearer tokens"
    )

    JWT_EXPIRE_MINUTES: int = Field(
        default=60 * 24,
        ge=1,
        description="Lifetime of tokens issued by create_access_token"
    )

    # -------------------------------------------------------------------------
    # Image Storage
    # -------------------------------------------------------------------------

    STORAGE_BUCKET: str = Field(
        default="media",
        description="Supabase Storage bucket for uploaded images"
    )

    ASSET_FOLDER: str = Field(
        default="cars",
        description="Folder (namespace) inside the bucket for car images"
    )

    ALLOWED_IMAGE_FORMATS: str = Field(
        default="jpg,jpeg,png,webp",
        description="Allowed image extensions (comma-separated)"
    )

    MAX_IMAGES_PER_REQUEST: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum number of images accepted in one request field"
    )

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum size of a single image in MB"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS string into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_image_formats_list(self) -> list[str]:
        """
        Parse ALLOWED_IMAGE_FORMATS string into a list.

        Example: "jpg, PNG" -> ["jpg", "png"]
        """
        return [
            ext.strip().lower().lstrip(".")
            for ext in self.ALLOWED_IMAGE_FORMATS.split(",")
            if ext.strip()
        ]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
