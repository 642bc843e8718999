# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication.
#
# Tokens are HS256 JWTs signed with JWT_SECRET. The token's user id is
# looked up in the users table on every request, so deleting a user
# invalidates their outstanding tokens.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import ValidationError

from app.config import settings
from app.auth.models import AuthUser, TokenPayload
from app.exceptions import UnauthenticatedError
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor. auto_error is off so a missing header
# produces our 401 instead of FastAPI's default 403.
security = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Issue a signed access token for a user.

    Args:
        user_id: Id of an existing user
        expires_delta: Token lifetime (defaults to JWT_EXPIRE_MINUTES)

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES))

    claims = {
        "id": user_id,
        "sub": user_id,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenPayload:
    """
    Verify a token's signature and expiry and return its payload.

    Raises:
        UnauthenticatedError: If the token is invalid, expired or has no subject
    """
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
        payload = TokenPayload(**claims)

    except (JWTError, ValidationError) as e:
        logger.warning(f"JWT validation failed: {e}")
        raise UnauthenticatedError.invalid()

    if not payload.subject:
        logger.warning("JWT token missing user id claim")
        raise UnauthenticatedError.invalid()

    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthUser:
    """
    Resolve the bearer token on the request to a user.

    This dependency:
    1. Extracts the Bearer token from the Authorization header
    2. Verifies the JWT signature and expiry
    3. Looks the user up in the users table

    Raises:
        UnauthenticatedError: 401 with "Authorization required",
            "Invalid token" or "User not found"

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError.missing()

    payload = decode_access_token(credentials.credentials)

    try:
        row = SupabaseClient.fetch_user(payload.subject)
    except SupabaseClientError as e:
        logger.warning(f"User lookup failed: {e}")
        raise UnauthenticatedError.invalid()

    if not row:
        logger.warning(f"Token subject not found: {payload.subject}")
        raise UnauthenticatedError.user_not_found()

    logger.debug(f"Authenticated user: {payload.subject}")
    return AuthUser(id=str(row.get("id", payload.subject)), email=row.get("email"))
