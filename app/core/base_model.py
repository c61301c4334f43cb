"""Declarative base and the column mixins shared by the models."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    # Every model names its table explicitly
    type_annotation_map = {
        uuid.UUID: UUID(as_uuid=True),
        datetime: DateTime(timezone=True),
    }


class UUIDMixin:
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())


class SoftDeleteMixin:
    """Rows are hidden, not removed, so replies and votes keep their parent."""

    deleted_at: Mapped[datetime | None] = mapped_column(default=None, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        self.deleted_at = datetime.now(UTC)


class VersionedMixin:
    """Edit counter used as an optimistic concurrency token.

    Clients send back the version they read; ``bump_version`` rejects the
    write when someone else got there first.
    """

    version: Mapped[int] = mapped_column(Integer, default=1)

    def bump_version(self, expected: int) -> None:
        from app.core.exceptions import VersionConflictError

        if self.version != expected:
            raise VersionConflictError(type(self).__name__, self.version, expected)
        self.version += 1


class OrderIndexMixin:
    order_index: Mapped[int] = mapped_column(Integer, default=0)
