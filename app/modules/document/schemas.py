"""Pydantic schemas for document module."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.modules.document.blocks import ParagraphBlock, TextBlock

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


# ============================================================================
# Shared
# ============================================================================


class ReorderRequest(BaseModel):
    """Move an item to a new position among its siblings."""

    new_index: int = Field(..., ge=0)


class OrderItem(BaseModel):
    """Sibling position after reorder."""

    id: UUID
    order_index: int


class TitleTranslationUpsert(BaseModel):
    """Chapter or page text in one language."""

    title: str | None = Field(default=None, max_length=255)
    description: str | None = None


class TitleTranslationResponse(TitleTranslationUpsert):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    language: str


class ParagraphTranslationUpsert(BaseModel):
    """Paragraph text in one language."""

    content: str | None = None
    caption: str | None = Field(default=None, max_length=500)


class ParagraphTranslationResponse(ParagraphTranslationUpsert):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    language: str


# ============================================================================
# Chapter Schemas
# ============================================================================


class ChapterCreate(BaseModel):
    """Schema for creating a chapter."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    slug: str = Field(..., min_length=2, max_length=255, pattern=SLUG_PATTERN)
    icon: str | None = Field(default=None, max_length=100)
    is_draft: bool = True
    is_visible_on_main_page: bool = True
    order_index: int | None = Field(default=None, ge=0)


class ChapterUpdate(BaseModel):
    """Schema for updating a chapter."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    slug: str | None = Field(default=None, min_length=2, max_length=255, pattern=SLUG_PATTERN)
    icon: str | None = Field(default=None, max_length=100)
    is_draft: bool | None = None
    is_visible_on_main_page: bool | None = None


class PageSummary(BaseModel):
    """Page entry inside a chapter listing."""

    id: UUID
    title: str
    slug: str
    order_index: int
    is_draft: bool


class ChapterResponse(BaseModel):
    """Localized chapter."""

    id: UUID
    title: str
    description: str | None = None
    slug: str
    icon: str | None = None
    order_index: int
    is_draft: bool
    is_visible_on_main_page: bool
    language: str
    created_at: datetime
    updated_at: datetime
    pages: list[PageSummary] = Field(default_factory=list)


# ============================================================================
# Paragraph Schemas
# ============================================================================


class ParagraphCreate(BaseModel):
    """Schema for creating a paragraph."""

    page_id: UUID
    content: str = ""
    block: ParagraphBlock = Field(default_factory=TextBlock)
    is_hidden: bool = False
    order_index: int | None = Field(default=None, ge=0)


class ParagraphUpdate(BaseModel):
    """Schema for updating a paragraph."""

    version: int = Field(..., description="Current version for optimistic locking")
    content: str | None = None
    block: ParagraphBlock | None = None
    is_hidden: bool | None = None
    change_description: str | None = Field(default=None, max_length=500)


class ParagraphResponse(BaseModel):
    """Localized paragraph."""

    id: UUID
    page_id: UUID
    type: str
    content: str
    block: ParagraphBlock
    order_index: int
    is_hidden: bool
    comment_count: int
    version: int
    language: str
    updated_at: datetime


# ============================================================================
# Page Schemas
# ============================================================================


class PageCreate(BaseModel):
    """Schema for creating a page."""

    chapter_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    slug: str = Field(..., min_length=2, max_length=255, pattern=SLUG_PATTERN)
    is_draft: bool = False
    order_index: int | None = Field(default=None, ge=0)


class PageUpdate(BaseModel):
    """Schema for updating a page."""

    version: int = Field(..., description="Current version for optimistic locking")
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    slug: str | None = Field(default=None, min_length=2, max_length=255, pattern=SLUG_PATTERN)
    is_draft: bool | None = None
    change_description: str | None = Field(default=None, max_length=500)


class PageResponse(BaseModel):
    """Localized page."""

    id: UUID
    chapter_id: UUID
    title: str
    description: str | None = None
    slug: str
    order_index: int
    is_draft: bool
    view_count: int
    version: int
    updated_by_profile_id: UUID | None = None
    language: str
    created_at: datetime
    updated_at: datetime
    paragraphs: list[ParagraphResponse] | None = None


# ============================================================================
# Version Schemas
# ============================================================================


class PageVersionResponse(BaseModel):
    """Archived page state."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    page_id: UUID
    version_number: int
    title: str
    description: str | None = None
    paragraphs_snapshot: list[dict[str, Any]]
    change_description: str | None = None
    updated_by_profile_id: UUID
    created_at: datetime


class ParagraphVersionResponse(BaseModel):
    """Archived paragraph state."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    paragraph_id: UUID
    version_number: int
    type: str
    content: str
    attributes: dict[str, Any]
    change_description: str | None = None
    suggestion_id: UUID | None = None
    updated_by_profile_id: UUID
    created_at: datetime
