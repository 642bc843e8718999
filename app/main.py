# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the CarVault API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload --port 5000
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.exceptions import (
    CarVaultException,
    carvault_exception_handler,
    validation_exception_handler,
)
from app.routers import health, cars
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs startup configuration and shutdown. The Supabase client is created
    lazily on first use.
    """
    logger.info(f"Starting CarVault API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(
        f"Images: bucket={settings.STORAGE_BUCKET} folder={settings.ASSET_FOLDER} "
        f"formats={settings.allowed_image_formats_list}"
    )

    yield

    logger.info("Shutting down CarVault API")


# Create FastAPI application
app = FastAPI(
    title="CarVault API",
    description="""
## Car Listings API

Manage your car listings and their photos.

### How It Works

1. **Authenticate** - Send `Authorization: Bearer <token>` with every request
2. **Create a Car** - `POST /api/cars` with a title, description, tags and up to 10 images
3. **Update a Car** - `PUT /api/cars/{id}` with the images to keep (`existingImages`) and any new ones (`newImages`)
4. **Delete a Car** - `DELETE /api/cars/{id}` removes its images, then the car

### Quick Start

```bash
curl -X POST http://localhost:5000/api/cars \\
  -H "Authorization: Bearer $TOKEN" \\
  -F "title=Tesla Model X" \\
  -F "description=Fully electric luxury SUV" \\
  -F "tags=electric" -F "tags=luxury" \\
  -F "images=@front.jpg" -F "images=@side.jpg"
```
""",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Check bearer tokens",
        },
        {
            "name": "Cars",
            "description": "Endpoints for managing cars and their associated images",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(CarVaultException)
async def handle_carvault_exception(request: Request, exc: CarVaultException):
    """Handle custom CarVault exceptions."""
    return await carvault_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    """Handle missing or malformed request fields."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api",
    tags=["Health"]
)

# Car endpoints
app.include_router(
    cars.router,
    prefix="/api/cars",
    tags=["Cars"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "CarVault API",
        "version": __version__,
        "docs": "/api/docs",
        "health": "/api/health",
    }
