"""
Drama Quotes Backend — Authentication Schemas
=============================================

What:  Request and response contracts for registration, login and the
       token identity.

Passwords travel as SecretStr so they never show up in reprs or logs. Only
presence is checked here; the length policy lives in CredentialManager
because it is configurable.
"""

from datetime import datetime

from pydantic import BaseModel, Field, SecretStr


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50, description="Unique login name")
    email: str = Field(
        min_length=3,
        max_length=255,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Unique e-mail address",
    )
    password: SecretStr = Field(min_length=1, description="Clear-text password (hashed before storage)")


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    password: SecretStr = Field(min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserPublic(BaseModel):
    """User fields that may leave the server. No password hash."""
    id: int
    username: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenIdentity(BaseModel):
    """
    The identity claim embedded in a session token.

    Returned by TokenService.verify without touching the database, so it
    reflects the user as of token issuance.
    """
    user_id: int = Field(description="Authenticated user's id")
    username: str = Field(description="Username at the time the token was issued")


class AuthResponse(BaseModel):
    """Returned by register (201) and login (200)."""
    message: str
    user: UserPublic
    access_token: str = Field(description="Signed session token for the Authorization header")
    token_type: str = Field(default="bearer")
    expires_in: int = Field(description="Token lifetime in seconds")
