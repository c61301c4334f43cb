"""Document tree database models: chapters, pages, paragraphs."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.base_model import (
    Base,
    OrderIndexMixin,
    TimestampMixin,
    UUIDMixin,
    VersionedMixin,
)

# ============================================================================
# Chapter
# ============================================================================


class Chapter(Base, UUIDMixin, TimestampMixin, OrderIndexMixin):
    """Top level of the document tree."""

    __tablename__ = "chapters"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    icon: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_visible_on_main_page: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    pages: Mapped[list["Page"]] = relationship(
        "Page",
        back_populates="chapter",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Page.order_index",
    )
    translations: Mapped[list["ChapterTranslation"]] = relationship(
        "ChapterTranslation",
        back_populates="chapter",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_chapters_order", "order_index"),
    )

    def __repr__(self) -> str:
        return f"<Chapter {self.slug}>"


class ChapterTranslation(Base, UUIDMixin):
    """Chapter title/description in one language."""

    __tablename__ = "chapter_translations"

    chapter_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("chapters.id", ondelete="CASCADE"),
        nullable=False,
    )
    language: Mapped[str] = mapped_column(String(10), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    chapter: Mapped["Chapter"] = relationship("Chapter", back_populates="translations")

    __table_args__ = (
        UniqueConstraint("chapter_id", "language", name="uq_chapter_translations_chapter_language"),
    )


# ============================================================================
# Page
# ============================================================================


class Page(Base, UUIDMixin, TimestampMixin, OrderIndexMixin, VersionedMixin):
    """A page inside a chapter.

    ``version`` is the optimistic lock token; archived snapshots live in
    ``page_versions`` with their own ``version_number``.
    """

    __tablename__ = "pages"

    chapter_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("chapters.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_by_profile_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    chapter: Mapped["Chapter"] = relationship("Chapter", back_populates="pages")
    paragraphs: Mapped[list["Paragraph"]] = relationship(
        "Paragraph",
        back_populates="page",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Paragraph.order_index",
    )
    translations: Mapped[list["PageTranslation"]] = relationship(
        "PageTranslation",
        back_populates="page",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_pages_chapter_order", "chapter_id", "order_index"),
    )

    def __repr__(self) -> str:
        return f"<Page {self.slug}>"


class PageTranslation(Base, UUIDMixin):
    """Page title/description in one language."""

    __tablename__ = "page_translations"

    page_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("pages.id", ondelete="CASCADE"),
        nullable=False,
    )
    language: Mapped[str] = mapped_column(String(10), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    page: Mapped["Page"] = relationship("Page", back_populates="translations")

    __table_args__ = (
        UniqueConstraint("page_id", "language", name="uq_page_translations_page_language"),
    )


# ============================================================================
# Paragraph
# ============================================================================


class Paragraph(Base, UUIDMixin, TimestampMixin, OrderIndexMixin, VersionedMixin):
    """A content block on a page.

    ``type`` selects the block variant; variant fields are kept in
    ``attributes`` and validated by ``app.modules.document.blocks``.
    """

    __tablename__ = "paragraphs"

    page_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("pages.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(20), default="text", nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    attributes: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    comment_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_by_profile_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    page: Mapped["Page"] = relationship("Page", back_populates="paragraphs")
    translations: Mapped[list["ParagraphTranslation"]] = relationship(
        "ParagraphTranslation",
        back_populates="paragraph",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_paragraphs_page_order", "page_id", "order_index"),
        CheckConstraint(
            "type IN ('text', 'header', 'image', 'quote', 'code', 'list', 'page_link')",
            name="ck_paragraphs_type",
        ),
        CheckConstraint("comment_count >= 0", name="ck_paragraphs_comment_count"),
    )

    def __repr__(self) -> str:
        return f"<Paragraph {self.id} ({self.type})>"


class ParagraphTranslation(Base, UUIDMixin):
    """Paragraph content/caption in one language."""

    __tablename__ = "paragraph_translations"

    paragraph_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("paragraphs.id", ondelete="CASCADE"),
        nullable=False,
    )
    language: Mapped[str] = mapped_column(String(10), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    caption: Mapped[str | None] = mapped_column(String(500), nullable=True)

    paragraph: Mapped["Paragraph"] = relationship("Paragraph", back_populates="translations")

    __table_args__ = (
        UniqueConstraint(
            "paragraph_id", "language", name="uq_paragraph_translations_paragraph_language"
        ),
    )


# ============================================================================
# Version snapshots (append-only)
# ============================================================================


class PageVersion(Base, UUIDMixin):
    """Archived state of a page, written before each direct edit."""

    __tablename__ = "page_versions"

    page_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("pages.id", ondelete="CASCADE"),
        nullable=False,
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    paragraphs_snapshot: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, default=list, nullable=False
    )
    change_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    updated_by_profile_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="RESTRICT"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("page_id", "version_number", name="uq_page_versions_page_number"),
        CheckConstraint("version_number >= 1", name="ck_page_versions_number_positive"),
    )


class ParagraphVersion(Base, UUIDMixin):
    """Archived state of a paragraph, written before each edit or approval."""

    __tablename__ = "paragraph_versions"

    paragraph_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("paragraphs.id", ondelete="CASCADE"),
        nullable=False,
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    attributes: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    change_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    suggestion_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("paragraph_suggestions.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_by_profile_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="RESTRICT"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "paragraph_id", "version_number", name="uq_paragraph_versions_paragraph_number"
        ),
        CheckConstraint("version_number >= 1", name="ck_paragraph_versions_number_positive"),
    )
