"""Create paragraph suggestions, their votes and paragraph versions.

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create paragraph_suggestions, suggestion_votes and paragraph_versions."""

    op.create_table(
        "paragraph_suggestions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("paragraph_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("paragraphs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("suggested_content", sa.Text(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("base_paragraph_version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_ip_address", sa.String(45), nullable=True),
        sa.Column("created_user_agent", sa.String(500), nullable=True),
        sa.Column("updated_ip_address", sa.String(45), nullable=True),
        sa.Column("updated_user_agent", sa.String(500), nullable=True),
        sa.Column("approved_by_user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by_user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by_user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_paragraph_suggestions_status",
        ),
    )
    op.create_index(
        "ix_paragraph_suggestions_paragraph_created",
        "paragraph_suggestions",
        ["paragraph_id", "created_at"],
    )
    op.create_index("ix_paragraph_suggestions_status", "paragraph_suggestions", ["status"])
    op.create_index("ix_paragraph_suggestions_user_id", "paragraph_suggestions", ["user_id"])
    op.create_index("ix_paragraph_suggestions_deleted_at", "paragraph_suggestions", ["deleted_at"])

    op.create_table(
        "suggestion_votes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("suggestion_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("paragraph_suggestions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("vote_type", sa.String(10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("suggestion_id", "user_id", name="uq_suggestion_votes_suggestion_user"),
        sa.CheckConstraint("vote_type IN ('upvote', 'downvote')", name="ck_suggestion_votes_vote_type"),
    )

    op.create_table(
        "paragraph_versions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("paragraph_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("paragraphs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("attributes", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("change_description", sa.String(500), nullable=True),
        sa.Column("suggestion_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("paragraph_suggestions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_by_profile_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("paragraph_id", "version_number", name="uq_paragraph_versions_paragraph_number"),
        sa.CheckConstraint("version_number >= 1", name="ck_paragraph_versions_number_positive"),
    )


def downgrade() -> None:
    """Drop suggestion tables and paragraph versions."""
    op.drop_table("paragraph_versions")
    op.drop_table("suggestion_votes")
    op.drop_table("paragraph_suggestions")
