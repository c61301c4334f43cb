"""Pydantic schemas for administration routes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.modules.auth.models import UserRole


class AdminUserResponse(BaseModel):
    """Account with moderation details."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    username: str
    email: str
    display_name: str | None = None
    roles: list[str] = Field(default_factory=list, validation_alias="role_names")
    is_blocked: bool
    frozen_until: datetime | None = None
    email_verified: bool
    registration_ip: str | None = None
    last_comment_at: datetime | None = None
    last_seen_at: datetime | None = None
    created_at: datetime


class AdminUserListResponse(BaseModel):
    items: list[AdminUserResponse]
    total: int
    page: int
    page_size: int


class FreezeRequest(BaseModel):
    frozen_until: datetime = Field(..., description="Freeze ends at this moment (timezone-aware)")


class RolesUpdate(BaseModel):
    """New complete role set. Viewer is always kept."""

    roles: list[UserRole] = Field(default_factory=list)
