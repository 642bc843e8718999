# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Tokens are issued elsewhere (see create_access_token).
# These routes only inspect the token presented with the request.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, VerifyResponse

router = APIRouter()


@router.get("/verify", response_model=VerifyResponse)
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> VerifyResponse:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid.

    Raises:
        401: If token is missing, invalid, expired or its user is gone
    """
    return VerifyResponse(valid=True, user_id=user.id, email=user.email)
