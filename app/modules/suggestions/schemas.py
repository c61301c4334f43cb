"""Pydantic schemas for suggestions module."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.modules.suggestions.models import SuggestionStatus, SuggestionVoteType


class SuggestionCreate(BaseModel):
    """Schema for proposing new paragraph content."""

    paragraph_id: UUID
    suggested_content: str = Field(..., min_length=1, max_length=20000)
    comment: str | None = Field(default=None, max_length=2000)


class SuggestionUpdate(BaseModel):
    """Schema for editing a pending suggestion."""

    suggested_content: str | None = Field(default=None, min_length=1, max_length=20000)
    comment: str | None = Field(default=None, max_length=2000)


class SuggestionVoteRequest(BaseModel):
    vote_type: SuggestionVoteType


class AuthorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    display_name: str | None = None


class VoteSummary(BaseModel):
    """Aggregated votes, counted at read time."""

    upvotes: int = 0
    downvotes: int = 0
    user_vote: SuggestionVoteType | None = None

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


class SuggestionResponse(BaseModel):
    """Schema for suggestion response."""

    id: UUID
    paragraph_id: UUID
    author: AuthorSummary
    suggested_content: str
    comment: str | None = None
    status: SuggestionStatus
    base_paragraph_version: int
    approved_by_user_id: UUID | None = None
    approved_at: datetime | None = None
    rejected_by_user_id: UUID | None = None
    rejected_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    upvotes: int
    downvotes: int
    score: int
    user_vote: SuggestionVoteType | None = None


class SuggestionListResponse(BaseModel):
    """Paginated moderation queue."""

    items: list[SuggestionResponse]
    total: int
    page: int
    page_size: int
