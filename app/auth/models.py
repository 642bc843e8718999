# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user resolved from a bearer token.

    The id is only used as an ownership key for car records.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None


class TokenPayload(BaseModel):
    """
    Decoded bearer token payload.

    Tokens carry the user id in `id`; `sub` is accepted as well.
    """
    id: Optional[str] = None
    sub: Optional[str] = None
    exp: Optional[int] = None
    iat: Optional[int] = None

    @property
    def subject(self) -> Optional[str]:
        return self.id or self.sub


class VerifyResponse(BaseModel):
    """Response for the token verification endpoint."""
    valid: bool
    user_id: str
    email: Optional[str] = None
