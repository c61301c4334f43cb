"""Profile and role database models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.base_model import Base, TimestampMixin, UUIDMixin


class UserRole(str, Enum):
    """Role claims carried by profiles and access tokens."""

    VIEWER = "Viewer"
    EDITOR = "Editor"
    ADMIN = "Admin"


PRIVILEGED_ROLES = frozenset({UserRole.EDITOR.value, UserRole.ADMIN.value})


class Profile(Base, UUIDMixin, TimestampMixin):
    """A registered user account.

    Profiles are never hard-deleted; moderation uses ``is_blocked`` and
    ``frozen_until`` instead.
    """

    __tablename__ = "profiles"

    # Identity
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Public profile
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bio: Mapped[str | None] = mapped_column(String(500), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    time_zone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    language: Mapped[str] = mapped_column(String(10), default="ru", nullable=False)
    show_email: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Moderation
    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    frozen_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Activity
    last_comment_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Email verification
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_verification_token: Mapped[str | None] = mapped_column(String(128), nullable=True)
    email_verification_token_expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    registration_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)

    roles: Mapped[list["ProfileRole"]] = relationship(
        "ProfileRole",
        back_populates="profile",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_profiles_registration_ip", "registration_ip", "created_at"),
        CheckConstraint("char_length(username) >= 3", name="ck_profiles_username_min"),
    )

    @property
    def role_names(self) -> list[str]:
        return sorted(r.role for r in self.roles)

    def has_any_role(self, *roles: str) -> bool:
        names = {r.role for r in self.roles}
        return any(role in names for role in roles)

    @property
    def is_admin(self) -> bool:
        return self.has_any_role(UserRole.ADMIN.value)

    @property
    def is_privileged(self) -> bool:
        """Editors and admins skip comment throttling."""
        return self.has_any_role(*PRIVILEGED_ROLES)

    def is_frozen_at(self, now: datetime) -> bool:
        return self.frozen_until is not None and self.frozen_until > now

    def __repr__(self) -> str:
        return f"<Profile {self.username}>"


Index("uq_profiles_username_lower", func.lower(Profile.username), unique=True)


class ProfileRole(Base, UUIDMixin):
    """One role assignment for one profile."""

    __tablename__ = "profile_roles"

    profile_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    profile: Mapped["Profile"] = relationship("Profile", back_populates="roles")

    __table_args__ = (
        UniqueConstraint("profile_id", "role", name="uq_profile_roles_profile_role"),
        CheckConstraint(
            "role IN ('Viewer', 'Editor', 'Admin')",
            name="ck_profile_roles_role",
        ),
    )
