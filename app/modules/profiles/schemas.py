"""Pydantic schemas for public profiles."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ProfileUpdate(BaseModel):
    """Fields the owner may change."""

    display_name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    show_email: bool | None = None
    email_notifications: bool | None = None
    time_zone: str | None = Field(default=None, max_length=64)


class PublicProfileResponse(BaseModel):
    """Profile as seen by others. ``email`` only when visible."""

    id: UUID
    username: str
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    email: str | None = None
    roles: list[str]
    created_at: datetime
    last_seen_at: datetime | None = None
    total_comments: int
    total_votes_received: int


class ProfileCommentItem(BaseModel):
    id: UUID
    content: str
    score: int
    page_id: UUID | None = None
    paragraph_id: UUID | None = None
    suggestion_id: UUID | None = None
    created_at: datetime


class DiscussionItem(BaseModel):
    """A page the user recently commented on."""

    page_id: UUID
    title: str
    slug: str
    last_commented_at: datetime


class ProfileStatsResponse(BaseModel):
    recent_comments: list[ProfileCommentItem]
    most_popular_comment: ProfileCommentItem | None = None
    recent_discussions: list[DiscussionItem]
