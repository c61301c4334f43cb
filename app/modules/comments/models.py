"""Comment database models."""

from enum import Enum
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
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
from app.modules.auth.models import Profile


class CommentVoteType(str, Enum):
    AGREE = "agree"
    DISAGREE = "disagree"


class Comment(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """A comment on exactly one of: a page, a paragraph, a suggestion.

    Replies point at their parent with ``parent_id``. Deleted comments
    keep their row so replies stay attached.
    """

    __tablename__ = "comments"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    page_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("pages.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    paragraph_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("paragraphs.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    suggestion_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("paragraph_suggestions.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    agree_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    disagree_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    author: Mapped[Profile] = relationship(Profile, lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "num_nonnulls(page_id, paragraph_id, suggestion_id) = 1",
            name="ck_comments_single_target",
        ),
        CheckConstraint(
            "agree_count >= 0 AND disagree_count >= 0",
            name="ck_comments_vote_counts",
        ),
        Index("ix_comments_ip_created", "ip_address", "created_at"),
    )

    @property
    def score(self) -> int:
        return self.agree_count - self.disagree_count

    @property
    def target(self) -> tuple[str, UUID]:
        """Name and id of the commented entity."""
        for field in ("page_id", "paragraph_id", "suggestion_id"):
            value = getattr(self, field)
            if value is not None:
                return field, value
        raise ValueError("Comment has no target")

    def __repr__(self) -> str:
        return f"<Comment {self.id}>"


class CommentVote(Base, UUIDMixin, TimestampMixin):
    """One profile's vote on one comment."""

    __tablename__ = "comment_votes"

    comment_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    vote_type: Mapped[str] = mapped_column(String(10), nullable=False)

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_votes_comment_user"),
        CheckConstraint(
            "vote_type IN ('agree', 'disagree')",
            name="ck_comment_votes_vote_type",
        ),
    )
