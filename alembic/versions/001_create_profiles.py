"""Create profiles, roles and settings.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


DEFAULT_SETTINGS = [
    {"key": "CommentCooldownSeconds", "value": "30",
     "description": "Minimum seconds between two comments of one user"},
    {"key": "RateLimitRegistrationsPerHour", "value": "3",
     "description": "Registrations allowed per IP per hour"},
    {"key": "RateLimitRegistrationsPerDay", "value": "10",
     "description": "Registrations allowed per IP per day"},
    {"key": "BlockedEmailDomains", "value": "",
     "description": "Comma-separated email domains refused at registration"},
    {"key": "RegistrationEnabled", "value": "true",
     "description": "Allow self-registration"},
]


def upgrade() -> None:
    """Create profiles, profile_roles and settings."""

    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("bio", sa.String(500), nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("time_zone", sa.String(64), nullable=True),
        sa.Column("language", sa.String(10), nullable=False, server_default="ru"),
        sa.Column("show_email", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("frozen_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_comment_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_verification_token", sa.String(128), nullable=True),
        sa.Column("email_verification_token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("registration_ip", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("char_length(username) >= 3", name="ck_profiles_username_min"),
    )
    op.create_index(
        "uq_profiles_username_lower",
        "profiles",
        [sa.text("lower(username)")],
        unique=True,
    )
    op.create_index("ix_profiles_registration_ip", "profiles", ["registration_ip", "created_at"])

    op.create_table(
        "profile_roles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("profile_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("profile_id", "role", name="uq_profile_roles_profile_role"),
        sa.CheckConstraint("role IN ('Viewer', 'Editor', 'Admin')", name="ck_profile_roles_role"),
    )
    op.create_index("ix_profile_roles_profile_id", "profile_roles", ["profile_id"])

    settings_table = op.create_table(
        "settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False, server_default=""),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.bulk_insert(settings_table, DEFAULT_SETTINGS)


def downgrade() -> None:
    """Drop profile tables and settings."""
    op.drop_table("settings")
    op.drop_table("profile_roles")
    op.drop_table("profiles")
