"""Pydantic schemas for notifications module."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.modules.notifications.models import EmailFrequency

# ============================================================================
# Notification Schemas
# ============================================================================


class NotificationResponse(BaseModel):
    """Schema for notification response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    title: str
    message: str
    title_key: str | None = None
    message_key: str | None = None
    parameters: dict[str, Any] | None = None
    page_id: UUID | None = None
    comment_id: UUID | None = None
    suggestion_id: UUID | None = None
    related_user_id: UUID | None = None
    is_read: bool
    created_at: datetime
    read_at: datetime | None = None


class NotificationListResponse(BaseModel):
    """Paginated notifications."""

    items: list[NotificationResponse]
    total: int
    page: int
    page_size: int
    unread_count: int


class UnreadCountResponse(BaseModel):
    count: int


class AffectedResponse(BaseModel):
    """Number of rows changed by a bulk action."""

    affected: int


class NotificationSettingsResponse(BaseModel):
    """Schema for notification settings response."""

    model_config = ConfigDict(from_attributes=True)

    email_frequency: EmailFrequency
    notify_on_comment_reply: bool
    notify_on_followed_page_comment: bool
    notify_on_followed_page_update: bool
    notify_on_followed_page_suggestion: bool
    notify_on_suggestion_status: bool


class NotificationSettingsUpdate(BaseModel):
    """Schema for updating notification settings."""

    email_frequency: EmailFrequency | None = None
    notify_on_comment_reply: bool | None = None
    notify_on_followed_page_comment: bool | None = None
    notify_on_followed_page_update: bool | None = None
    notify_on_followed_page_suggestion: bool | None = None
    notify_on_suggestion_status: bool | None = None


# ============================================================================
# Follow Schemas
# ============================================================================


class FollowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    page_id: UUID
    followed_at: datetime


class FollowStatusResponse(BaseModel):
    is_following: bool
    followed_at: datetime | None = None


class FollowedPageResponse(BaseModel):
    page_id: UUID
    title: str
    slug: str
    chapter_id: UUID
    followed_at: datetime


class FollowerCountResponse(BaseModel):
    page_id: UUID
    count: int = Field(..., ge=0)


class FollowerResponse(BaseModel):
    user_id: UUID
    username: str
    display_name: str | None = None
    followed_at: datetime
