"""Create comments and comment votes.

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create comments and comment_votes."""

    op.create_table(
        "comments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("page_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=True),
        sa.Column("paragraph_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("paragraphs.id", ondelete="CASCADE"), nullable=True),
        sa.Column("suggestion_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("paragraph_suggestions.id", ondelete="CASCADE"), nullable=True),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True),
        sa.Column("agree_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("disagree_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "num_nonnulls(page_id, paragraph_id, suggestion_id) = 1",
            name="ck_comments_single_target",
        ),
        sa.CheckConstraint(
            "agree_count >= 0 AND disagree_count >= 0",
            name="ck_comments_vote_counts",
        ),
    )
    op.create_index("ix_comments_user_id", "comments", ["user_id"])
    op.create_index("ix_comments_page_id", "comments", ["page_id"])
    op.create_index("ix_comments_paragraph_id", "comments", ["paragraph_id"])
    op.create_index("ix_comments_suggestion_id", "comments", ["suggestion_id"])
    op.create_index("ix_comments_parent_id", "comments", ["parent_id"])
    op.create_index("ix_comments_deleted_at", "comments", ["deleted_at"])
    op.create_index("ix_comments_ip_created", "comments", ["ip_address", "created_at"])

    op.create_table(
        "comment_votes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("comment_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("vote_type", sa.String(10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("comment_id", "user_id", name="uq_comment_votes_comment_user"),
        sa.CheckConstraint("vote_type IN ('agree', 'disagree')", name="ck_comment_votes_vote_type"),
    )


def downgrade() -> None:
    """Drop comment tables."""
    op.drop_table("comment_votes")
    op.drop_table("comments")
