"""Pydantic schemas for authentication module."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


# ============================================================================
# Token Schemas
# ============================================================================


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiration in seconds")


class TokenRefresh(BaseModel):
    """Request schema for refreshing tokens."""

    refresh_token: str


# ============================================================================
# Login / Registration Schemas
# ============================================================================


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Self-registration request."""

    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    display_name: str | None = Field(default=None, max_length=100)
    language: str | None = Field(default=None, max_length=10)
    # Hidden form field; only bots fill it in
    website: str | None = Field(default=None, max_length=255)


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)


class LanguageUpdate(BaseModel):
    language: str = Field(..., min_length=2, max_length=10)


# ============================================================================
# Current User Schemas
# ============================================================================


class MeResponse(BaseModel):
    """Full account view for the profile owner."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    username: str
    email: EmailStr
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    time_zone: str | None = None
    language: str
    show_email: bool
    email_notifications: bool
    email_verified: bool
    is_blocked: bool
    frozen_until: datetime | None = None
    roles: list[str] = Field(default_factory=list, validation_alias="role_names")
    last_seen_at: datetime | None = None
    created_at: datetime


class LoginResponse(BaseModel):
    """Login response with tokens and user info."""

    tokens: TokenPair
    user: MeResponse


class MessageResponse(BaseModel):
    message: str
