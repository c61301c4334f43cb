"""Paragraph suggestion database models."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.base_model import Base, SoftDeleteMixin, TimestampMixin, UUIDMixin
from app.core.exceptions import InvalidStateTransitionError
from app.modules.auth.models import Profile


class SuggestionStatus(str, Enum):
    """Moderation state. Approved and rejected are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SuggestionVoteType(str, Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class ParagraphSuggestion(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A proposed replacement for a paragraph's content."""

    __tablename__ = "paragraph_suggestions"

    paragraph_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("paragraphs.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    suggested_content: Mapped[str] = mapped_column(Text, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=SuggestionStatus.PENDING.value, nullable=False
    )
    # Paragraph lock token at the time the suggestion was last written
    base_paragraph_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Audit
    created_ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    created_user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    updated_ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    updated_user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    approved_by_user_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by_user_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by_user_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    author: Mapped[Profile] = relationship(Profile, foreign_keys=[user_id], lazy="selectin")

    __table_args__ = (
        Index("ix_paragraph_suggestions_paragraph_created", "paragraph_id", "created_at"),
        Index("ix_paragraph_suggestions_status", "status"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_paragraph_suggestions_status",
        ),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == SuggestionStatus.PENDING.value

    def ensure_pending(self, action: str) -> None:
        if not self.is_pending:
            raise InvalidStateTransitionError("ParagraphSuggestion", self.status, action)

    def approve(self, moderator_id: UUID, now: datetime | None = None) -> None:
        self.ensure_pending("approve")
        self.status = SuggestionStatus.APPROVED.value
        self.approved_by_user_id = moderator_id
        self.approved_at = now or datetime.now(UTC)

    def reject(self, moderator_id: UUID, now: datetime | None = None) -> None:
        self.ensure_pending("reject")
        self.status = SuggestionStatus.REJECTED.value
        self.rejected_by_user_id = moderator_id
        self.rejected_at = now or datetime.now(UTC)

    def mark_deleted(self, actor_id: UUID, now: datetime | None = None) -> None:
        self.deleted_at = now or datetime.now(UTC)
        self.deleted_by_user_id = actor_id

    def __repr__(self) -> str:
        return f"<ParagraphSuggestion {self.id} ({self.status})>"


class SuggestionVote(Base, UUIDMixin, TimestampMixin):
    """One profile's vote on one suggestion."""

    __tablename__ = "suggestion_votes"

    suggestion_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("paragraph_suggestions.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    vote_type: Mapped[str] = mapped_column(String(10), nullable=False)

    __table_args__ = (
        UniqueConstraint("suggestion_id", "user_id", name="uq_suggestion_votes_suggestion_user"),
        CheckConstraint(
            "vote_type IN ('upvote', 'downvote')",
            name="ck_suggestion_votes_vote_type",
        ),
    )
