"""Pydantic schemas for comments module."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.modules.comments.models import CommentVoteType


class CommentCreate(BaseModel):
    """Schema for posting a comment.

    Exactly one of ``page_id``, ``paragraph_id`` and ``suggestion_id``
    must be set.
    """

    content: str = Field(..., min_length=1, max_length=5000)
    page_id: UUID | None = None
    paragraph_id: UUID | None = None
    suggestion_id: UUID | None = None
    parent_id: UUID | None = None

    @model_validator(mode="after")
    def check_single_target(self) -> CommentCreate:
        targets = [self.page_id, self.paragraph_id, self.suggestion_id]
        if sum(t is not None for t in targets) != 1:
            raise ValueError("Exactly one of page_id, paragraph_id, suggestion_id is required")
        return self

    @property
    def target(self) -> tuple[str, UUID]:
        for field in ("page_id", "paragraph_id", "suggestion_id"):
            value = getattr(self, field)
            if value is not None:
                return field, value
        raise ValueError("No target")


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class CommentVoteRequest(BaseModel):
    vote_type: CommentVoteType


class CommentAuthor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    display_name: str | None = None


class CommentResponse(BaseModel):
    """A comment with its replies.

    Deleted comments keep their place in the tree with empty content and
    no author.
    """

    id: UUID
    content: str
    author: CommentAuthor | None = None
    page_id: UUID | None = None
    paragraph_id: UUID | None = None
    suggestion_id: UUID | None = None
    parent_id: UUID | None = None
    agree_count: int
    disagree_count: int
    score: int
    user_vote: CommentVoteType | None = None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    replies: list[CommentResponse] = Field(default_factory=list)


class CommentListResponse(BaseModel):
    """Flat paginated comment list for moderation."""

    items: list[CommentResponse]
    total: int
    page: int
    page_size: int
