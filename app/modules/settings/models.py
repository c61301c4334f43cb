"""Platform settings stored as key/value rows."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.base_model import Base


class SettingKey:
    """Known setting keys."""

    COMMENT_COOLDOWN_SECONDS = "CommentCooldownSeconds"
    RATE_LIMIT_REGISTRATIONS_PER_HOUR = "RateLimitRegistrationsPerHour"
    RATE_LIMIT_REGISTRATIONS_PER_DAY = "RateLimitRegistrationsPerDay"
    BLOCKED_EMAIL_DOMAINS = "BlockedEmailDomains"
    REGISTRATION_ENABLED = "RegistrationEnabled"


DEFAULT_SETTINGS: dict[str, tuple[str, str]] = {
    SettingKey.COMMENT_COOLDOWN_SECONDS: ("30", "Minimum seconds between two comments of one user"),
    SettingKey.RATE_LIMIT_REGISTRATIONS_PER_HOUR: ("3", "Registrations allowed per IP per hour"),
    SettingKey.RATE_LIMIT_REGISTRATIONS_PER_DAY: ("10", "Registrations allowed per IP per day"),
    SettingKey.BLOCKED_EMAIL_DOMAINS: ("", "Comma-separated email domains refused at registration"),
    SettingKey.REGISTRATION_ENABLED: ("true", "Allow self-registration"),
}


class Setting(Base):
    """Single platform setting."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Setting {self.key}={self.value!r}>"
