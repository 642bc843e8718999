# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error the API returns maps to one of these classes, so clients get a
# stable machine-readable `code` alongside the message.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class CarVaultException(Exception):
    """
    Base exception for the CarVault API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "CARVAULT_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}
        self.headers = headers

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Authentication Exceptions
# =============================================================================

class UnauthenticatedError(CarVaultException):
    """
    Raised when a request has no usable bearer credential.

    Covers a missing header, an invalid or expired token, and a token whose
    user no longer exists.
    """

    def __init__(self, message: str, code: str):
        super().__init__(
            message=message,
            code=code,
            status_code=401,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @classmethod
    def missing(cls) -> "UnauthenticatedError":
        return cls("Authorization required", "AUTHORIZATION_REQUIRED")

    @classmethod
    def invalid(cls) -> "UnauthenticatedError":
        return cls("Invalid token", "INVALID_TOKEN")

    @classmethod
    def user_not_found(cls) -> "UnauthenticatedError":
        return cls("User not found", "USER_NOT_FOUND")


# =============================================================================
# Car Exceptions
# =============================================================================

class CarNotFoundError(CarVaultException):
    """
    Raised when a car doesn't exist or belongs to another user.

    Both cases produce the same response so record existence never leaks.
    """

    def __init__(self, car_id: str):
        super().__init__(
            message="Car not found",
            code="CAR_NOT_FOUND",
            status_code=404,
            suggestion="Check that the car id is correct and that you own the car",
            details={"car_id": car_id}
        )


class OperationFailedError(CarVaultException):
    """
    Raised when a downstream store or storage call fails.

    The message is generic on purpose; the cause is only logged.
    """

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="OPERATION_FAILED",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
        )


# =============================================================================
# Upload Exceptions
# =============================================================================

class TooManyImagesError(CarVaultException):
    """Raised when a request carries more images than allowed."""

    def __init__(self, field: str, count: int, max_count: int):
        super().__init__(
            message=f"Too many images in '{field}': {count} (max: {max_count})",
            code="TOO_MANY_IMAGES",
            status_code=400,
            suggestion=f"Upload at most {max_count} images per request",
            details={"field": field, "count": count, "max_count": max_count}
        )


class InvalidFileTypeError(CarVaultException):
    """Raised when an uploaded image has a disallowed extension."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these image formats are supported: {', '.join(allowed)}",
            details={"filename": filename, "allowed_types": allowed}
        )


class FileTooLargeError(CarVaultException):
    """Raised when an uploaded image exceeds the size limit."""

    def __init__(self, filename: str, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {filename} is {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload images smaller than {max_mb}MB",
            details={"filename": filename, "size_mb": size_mb, "max_mb": max_mb}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def carvault_exception_handler(
    request: Request,
    exc: CarVaultException
) -> JSONResponse:
    """
    Convert CarVaultException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle request validation errors (missing or mistyped form fields).
    """
    if hasattr(exc, "errors"):
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ]
    else:
        errors = str(exc)
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": errors,
        }
    )
