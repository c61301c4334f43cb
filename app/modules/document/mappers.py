"""Mappers for transforming document ORM models to localized DTOs.

Translations are optional: every field falls back to the base entity
value when the requested language has no row or an empty value.
"""

from app.core.localization import localized, pick_translation
from app.modules.document.blocks import block_from_columns
from app.modules.document.models import Chapter, Page, Paragraph
from app.modules.document.schemas import (
    ChapterResponse,
    PageResponse,
    PageSummary,
    ParagraphResponse,
)


def map_paragraph(paragraph: Paragraph, language: str) -> ParagraphResponse:
    """Map a Paragraph with translations loaded to ParagraphResponse."""
    translation = pick_translation(paragraph.translations, language)
    block = block_from_columns(paragraph.type, paragraph.attributes)

    if translation is not None and translation.caption and hasattr(block, "caption"):
        block = block.model_copy(update={"caption": translation.caption})

    return ParagraphResponse(
        id=paragraph.id,
        page_id=paragraph.page_id,
        type=paragraph.type,
        content=localized(paragraph, translation, "content"),
        block=block,
        order_index=paragraph.order_index,
        is_hidden=paragraph.is_hidden,
        comment_count=paragraph.comment_count,
        version=paragraph.version,
        language=language,
        updated_at=paragraph.updated_at,
    )


def map_page_summary(page: Page, language: str) -> PageSummary:
    translation = pick_translation(page.translations, language)
    return PageSummary(
        id=page.id,
        title=localized(page, translation, "title"),
        slug=page.slug,
        order_index=page.order_index,
        is_draft=page.is_draft,
    )


def map_page(
    page: Page,
    language: str,
    paragraphs: list[Paragraph] | None = None,
) -> PageResponse:
    """Map a Page to PageResponse.

    Args:
        page: Page ORM model with translations loaded
        language: Requested language
        paragraphs: Already filtered paragraphs to embed, or None to omit
    """
    translation = pick_translation(page.translations, language)
    return PageResponse(
        id=page.id,
        chapter_id=page.chapter_id,
        title=localized(page, translation, "title"),
        description=localized(page, translation, "description"),
        slug=page.slug,
        order_index=page.order_index,
        is_draft=page.is_draft,
        view_count=page.view_count,
        version=page.version,
        updated_by_profile_id=page.updated_by_profile_id,
        language=language,
        created_at=page.created_at,
        updated_at=page.updated_at,
        paragraphs=(
            [map_paragraph(p, language) for p in paragraphs] if paragraphs is not None else None
        ),
    )


def map_chapter(
    chapter: Chapter,
    language: str,
    pages: list[Page] | None = None,
) -> ChapterResponse:
    """Map a Chapter and an already filtered page list to ChapterResponse."""
    translation = pick_translation(chapter.translations, language)
    return ChapterResponse(
        id=chapter.id,
        title=localized(chapter, translation, "title"),
        description=localized(chapter, translation, "description"),
        slug=chapter.slug,
        icon=chapter.icon,
        order_index=chapter.order_index,
        is_draft=chapter.is_draft,
        is_visible_on_main_page=chapter.is_visible_on_main_page,
        language=language,
        created_at=chapter.created_at,
        updated_at=chapter.updated_at,
        pages=[map_page_summary(p, language) for p in (pages or [])],
    )
