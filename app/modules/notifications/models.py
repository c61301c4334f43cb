"""Notification, follow and email log database models."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.base_model import Base, UUIDMixin


class NotificationType(str, Enum):
    """Events that produce inbox notifications."""

    COMMENT_REPLY = "comment_reply"
    NEW_COMMENT = "new_comment"
    NEW_SUGGESTION = "new_suggestion"
    SUGGESTION_APPROVED = "suggestion_approved"
    SUGGESTION_REJECTED = "suggestion_rejected"
    PAGE_UPDATE = "page_update"


class EmailFrequency(str, Enum):
    IMMEDIATE = "immediate"
    HOURLY = "hourly"
    DAILY = "daily"
    NONE = "none"


class PageFollow(Base, UUIDMixin):
    """A profile's subscription to a page."""

    __tablename__ = "page_follows"

    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    page_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("pages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    followed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "page_id", name="uq_page_follows_user_page"),
    )


class Notification(Base, UUIDMixin):
    """One inbox entry for one profile."""

    __tablename__ = "notifications"

    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    # i18n keys so clients can render the notification in their own language
    title_key: Mapped[str | None] = mapped_column(String(100), nullable=True)
    message_key: Mapped[str | None] = mapped_column(String(100), nullable=True)
    parameters: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    page_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("pages.id", ondelete="CASCADE"),
        nullable=True,
    )
    comment_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    suggestion_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("paragraph_suggestions.id", ondelete="CASCADE"),
        nullable=True,
    )
    related_user_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read", "created_at"),
    )


class NotificationSettings(Base, UUIDMixin):
    """Per-profile notification preferences, created lazily with defaults."""

    __tablename__ = "notification_settings"

    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    email_frequency: Mapped[str] = mapped_column(
        String(20), default=EmailFrequency.IMMEDIATE.value, nullable=False
    )
    notify_on_comment_reply: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_on_followed_page_comment: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    notify_on_followed_page_update: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    notify_on_followed_page_suggestion: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    notify_on_suggestion_status: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "email_frequency IN ('immediate', 'hourly', 'daily', 'none')",
            name="ck_notification_settings_email_frequency",
        ),
    )

    def allows(self, notification_type: str) -> bool:
        """Whether this profile wants in-app notifications of this type."""
        flag_by_type = {
            NotificationType.COMMENT_REPLY.value: self.notify_on_comment_reply,
            NotificationType.NEW_COMMENT.value: self.notify_on_followed_page_comment,
            NotificationType.PAGE_UPDATE.value: self.notify_on_followed_page_update,
            NotificationType.NEW_SUGGESTION.value: self.notify_on_followed_page_suggestion,
            NotificationType.SUGGESTION_APPROVED.value: self.notify_on_suggestion_status,
            NotificationType.SUGGESTION_REJECTED.value: self.notify_on_suggestion_status,
        }
        flag = flag_by_type.get(notification_type)
        # Unset columns on a fresh instance mean the column default (True)
        return True if flag is None else bool(flag)


class EmailLog(Base, UUIDMixin):
    """Record of every outbound email attempt."""

    __tablename__ = "email_logs"

    to_email: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    from_email: Mapped[str] = mapped_column(String(255), nullable=False)
    from_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email_type: Mapped[str] = mapped_column(String(50), nullable=False)
    is_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_email_logs_created", "created_at"),
    )
