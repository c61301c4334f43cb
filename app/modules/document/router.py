"""API routes for document module."""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, status

from app.core.dependencies import DBSession, Language
from app.core.security import get_optional_user, require_editor
from app.modules.auth.models import Profile
from app.modules.document.cache import DocumentCacheDep
from app.modules.document.mappers import map_chapter, map_page, map_paragraph
from app.modules.document.schemas import (
    ChapterCreate,
    ChapterResponse,
    ChapterUpdate,
    OrderItem,
    PageCreate,
    PageResponse,
    PageUpdate,
    PageVersionResponse,
    ParagraphCreate,
    ParagraphResponse,
    ParagraphTranslationResponse,
    ParagraphTranslationUpsert,
    ParagraphUpdate,
    ParagraphVersionResponse,
    ReorderRequest,
    TitleTranslationResponse,
    TitleTranslationUpsert,
)
from app.modules.document.service import ChapterService, PageService, ParagraphService

router = APIRouter()

LanguageCode = Path(..., min_length=2, max_length=10, description="Language code")


def can_see_drafts(user: Profile | None) -> bool:
    """Drafts and hidden paragraphs are shown to editors and admins only."""
    return user is not None and user.is_privileged


def to_order_items(items: list) -> list[OrderItem]:
    return [OrderItem(id=item.id, order_index=item.order_index) for item in items]


# ============================================================================
# Chapters
# ============================================================================


@router.get(
    "/chapters",
    response_model=list[ChapterResponse],
    summary="List chapters with their pages",
    tags=["Chapters"],
)
async def list_chapters(
    language: Language,
    db: DBSession,
    cache: DocumentCacheDep,
    user: Profile | None = Depends(get_optional_user),
) -> list[ChapterResponse]:
    service = ChapterService(db, cache)
    return await service.list_chapters(language.language, include_drafts=can_see_drafts(user))


@router.get(
    "/chapters/{chapter_id}",
    response_model=ChapterResponse,
    summary="Get chapter",
    tags=["Chapters"],
)
async def get_chapter(
    chapter_id: UUID,
    language: Language,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> ChapterResponse:
    include_drafts = can_see_drafts(user)
    chapter = await ChapterService(db).get_chapter(chapter_id, include_drafts=include_drafts)
    pages = [p for p in chapter.pages if include_drafts or not p.is_draft]
    return map_chapter(chapter, language.language, pages=pages)


@router.post(
    "/chapters",
    response_model=ChapterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create chapter",
    tags=["Chapters"],
)
async def create_chapter(
    data: ChapterCreate,
    language: Language,
    db: DBSession,
    cache: DocumentCacheDep,
    user: Profile = Depends(require_editor),
) -> ChapterResponse:
    chapter = await ChapterService(db, cache).create_chapter(data)
    return map_chapter(chapter, language.language)


@router.put(
    "/chapters/{chapter_id}",
    response_model=ChapterResponse,
    summary="Update chapter",
    tags=["Chapters"],
)
async def update_chapter(
    chapter_id: UUID,
    data: ChapterUpdate,
    language: Language,
    db: DBSession,
    cache: DocumentCacheDep,
    user: Profile = Depends(require_editor),
) -> ChapterResponse:
    chapter = await ChapterService(db, cache).update_chapter(chapter_id, data)
    return map_chapter(chapter, language.language)


@router.delete(
    "/chapters/{chapter_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete chapter with its pages",
    tags=["Chapters"],
    dependencies=[Depends(require_editor)],
)
async def delete_chapter(chapter_id: UUID, db: DBSession, cache: DocumentCacheDep) -> None:
    await ChapterService(db, cache).delete_chapter(chapter_id)


@router.post(
    "/chapters/{chapter_id}/reorder",
    response_model=list[OrderItem],
    summary="Move chapter to a new position",
    tags=["Chapters"],
    dependencies=[Depends(require_editor)],
)
async def reorder_chapter(
    chapter_id: UUID,
    data: ReorderRequest,
    db: DBSession,
    cache: DocumentCacheDep,
) -> list[OrderItem]:
    ordered = await ChapterService(db, cache).reorder_chapter(chapter_id, data.new_index)
    return to_order_items(ordered)


@router.put(
    "/chapters/{chapter_id}/translations/{lang}",
    response_model=TitleTranslationResponse,
    summary="Create or replace chapter translation",
    tags=["Chapters"],
    dependencies=[Depends(require_editor)],
)
async def upsert_chapter_translation(
    chapter_id: UUID,
    data: TitleTranslationUpsert,
    db: DBSession,
    cache: DocumentCacheDep,
    lang: str = LanguageCode,
) -> TitleTranslationResponse:
    translation = await ChapterService(db, cache).upsert_translation(chapter_id, lang, data)
    return TitleTranslationResponse.model_validate(translation)


@router.delete(
    "/chapters/{chapter_id}/translations/{lang}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete chapter translation",
    tags=["Chapters"],
    dependencies=[Depends(require_editor)],
)
async def delete_chapter_translation(
    chapter_id: UUID,
    db: DBSession,
    cache: DocumentCacheDep,
    lang: str = LanguageCode,
) -> None:
    await ChapterService(db, cache).delete_translation(chapter_id, lang)


@router.get(
    "/chapters/{chapter_id}/pages",
    response_model=list[PageResponse],
    summary="List pages of a chapter",
    tags=["Pages"],
)
async def list_pages(
    chapter_id: UUID,
    language: Language,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> list[PageResponse]:
    pages = await PageService(db).list_pages(chapter_id, include_drafts=can_see_drafts(user))
    return [map_page(p, language.language) for p in pages]


# ============================================================================
# Pages
# ============================================================================


@router.get(
    "/pages/slug/{slug}",
    response_model=PageResponse,
    summary="Get page by slug",
    tags=["Pages"],
)
async def get_page_by_slug(
    slug: str,
    language: Language,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> PageResponse:
    """Get a page with its paragraphs. Counts one view."""
    page, paragraphs = await PageService(db).get_page_by_slug(
        slug, include_drafts=can_see_drafts(user)
    )
    return map_page(page, language.language, paragraphs=paragraphs)


@router.get(
    "/pages/{page_id}",
    response_model=PageResponse,
    summary="Get page",
    tags=["Pages"],
)
async def get_page(
    page_id: UUID,
    language: Language,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> PageResponse:
    page, paragraphs = await PageService(db).get_page(page_id, include_drafts=can_see_drafts(user))
    return map_page(page, language.language, paragraphs=paragraphs)


@router.post(
    "/pages",
    response_model=PageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create page",
    tags=["Pages"],
)
async def create_page(
    data: PageCreate,
    language: Language,
    db: DBSession,
    cache: DocumentCacheDep,
    user: Profile = Depends(require_editor),
) -> PageResponse:
    page = await PageService(db, cache).create_page(data, user)
    return map_page(page, language.language)


@router.put(
    "/pages/{page_id}",
    response_model=PageResponse,
    summary="Update page",
    tags=["Pages"],
)
async def update_page(
    page_id: UUID,
    data: PageUpdate,
    language: Language,
    db: DBSession,
    cache: DocumentCacheDep,
    user: Profile = Depends(require_editor),
) -> PageResponse:
    """Update a page. The previous state is kept as a page version."""
    page = await PageService(db, cache).update_page(page_id, data, user)
    return map_page(page, language.language)


@router.delete(
    "/pages/{page_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete page",
    tags=["Pages"],
    dependencies=[Depends(require_editor)],
)
async def delete_page(page_id: UUID, db: DBSession, cache: DocumentCacheDep) -> None:
    await PageService(db, cache).delete_page(page_id)


@router.post(
    "/pages/{page_id}/reorder",
    response_model=list[OrderItem],
    summary="Move page within its chapter",
    tags=["Pages"],
    dependencies=[Depends(require_editor)],
)
async def reorder_page(
    page_id: UUID,
    data: ReorderRequest,
    db: DBSession,
    cache: DocumentCacheDep,
) -> list[OrderItem]:
    ordered = await PageService(db, cache).reorder_page(page_id, data.new_index)
    return to_order_items(ordered)


@router.put(
    "/pages/{page_id}/translations/{lang}",
    response_model=TitleTranslationResponse,
    summary="Create or replace page translation",
    tags=["Pages"],
    dependencies=[Depends(require_editor)],
)
async def upsert_page_translation(
    page_id: UUID,
    data: TitleTranslationUpsert,
    db: DBSession,
    cache: DocumentCacheDep,
    lang: str = LanguageCode,
) -> TitleTranslationResponse:
    translation = await PageService(db, cache).upsert_translation(page_id, lang, data)
    return TitleTranslationResponse.model_validate(translation)


@router.delete(
    "/pages/{page_id}/translations/{lang}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete page translation",
    tags=["Pages"],
    dependencies=[Depends(require_editor)],
)
async def delete_page_translation(
    page_id: UUID,
    db: DBSession,
    cache: DocumentCacheDep,
    lang: str = LanguageCode,
) -> None:
    await PageService(db, cache).delete_translation(page_id, lang)


@router.get(
    "/pages/{page_id}/versions",
    response_model=list[PageVersionResponse],
    summary="List page versions",
    tags=["Pages"],
)
async def list_page_versions(
    page_id: UUID,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> list[PageVersionResponse]:
    return await PageService(db).list_versions(page_id, include_drafts=can_see_drafts(user))


@router.get(
    "/pages/{page_id}/versions/{version_number}",
    response_model=PageVersionResponse,
    summary="Get page version",
    tags=["Pages"],
)
async def get_page_version(
    page_id: UUID,
    version_number: int,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> PageVersionResponse:
    return await PageService(db).get_version(
        page_id, version_number, include_drafts=can_see_drafts(user)
    )


@router.get(
    "/pages/{page_id}/paragraphs",
    response_model=list[ParagraphResponse],
    summary="List paragraphs of a page",
    tags=["Paragraphs"],
)
async def list_paragraphs(
    page_id: UUID,
    language: Language,
    db: DBSession,
    cache: DocumentCacheDep,
    user: Profile | None = Depends(get_optional_user),
) -> list[ParagraphResponse]:
    service = ParagraphService(db, cache)
    return await service.list_paragraphs(
        page_id, language.language, include_hidden=can_see_drafts(user)
    )


# ============================================================================
# Paragraphs
# ============================================================================


@router.get(
    "/paragraphs/{paragraph_id}",
    response_model=ParagraphResponse,
    summary="Get paragraph",
    tags=["Paragraphs"],
)
async def get_paragraph(
    paragraph_id: UUID,
    language: Language,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> ParagraphResponse:
    paragraph = await ParagraphService(db).get_paragraph(
        paragraph_id, include_hidden=can_see_drafts(user)
    )
    return map_paragraph(paragraph, language.language)


@router.post(
    "/paragraphs",
    response_model=ParagraphResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create paragraph",
    tags=["Paragraphs"],
)
async def create_paragraph(
    data: ParagraphCreate,
    language: Language,
    db: DBSession,
    cache: DocumentCacheDep,
    user: Profile = Depends(require_editor),
) -> ParagraphResponse:
    paragraph = await ParagraphService(db, cache).create_paragraph(data, user)
    return map_paragraph(paragraph, language.language)


@router.put(
    "/paragraphs/{paragraph_id}",
    response_model=ParagraphResponse,
    summary="Update paragraph",
    tags=["Paragraphs"],
)
async def update_paragraph(
    paragraph_id: UUID,
    data: ParagraphUpdate,
    language: Language,
    db: DBSession,
    cache: DocumentCacheDep,
    user: Profile = Depends(require_editor),
) -> ParagraphResponse:
    """Update a paragraph. The previous state is kept as a paragraph version."""
    paragraph = await ParagraphService(db, cache).update_paragraph(paragraph_id, data, user)
    return map_paragraph(paragraph, language.language)


@router.delete(
    "/paragraphs/{paragraph_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete paragraph",
    tags=["Paragraphs"],
    dependencies=[Depends(require_editor)],
)
async def delete_paragraph(paragraph_id: UUID, db: DBSession, cache: DocumentCacheDep) -> None:
    await ParagraphService(db, cache).delete_paragraph(paragraph_id)


@router.post(
    "/paragraphs/{paragraph_id}/reorder",
    response_model=list[OrderItem],
    summary="Move paragraph within its page",
    tags=["Paragraphs"],
    dependencies=[Depends(require_editor)],
)
async def reorder_paragraph(
    paragraph_id: UUID,
    data: ReorderRequest,
    db: DBSession,
    cache: DocumentCacheDep,
) -> list[OrderItem]:
    ordered = await ParagraphService(db, cache).reorder_paragraph(paragraph_id, data.new_index)
    return to_order_items(ordered)


@router.put(
    "/paragraphs/{paragraph_id}/translations/{lang}",
    response_model=ParagraphTranslationResponse,
    summary="Create or replace paragraph translation",
    tags=["Paragraphs"],
    dependencies=[Depends(require_editor)],
)
async def upsert_paragraph_translation(
    paragraph_id: UUID,
    data: ParagraphTranslationUpsert,
    db: DBSession,
    cache: DocumentCacheDep,
    lang: str = LanguageCode,
) -> ParagraphTranslationResponse:
    translation = await ParagraphService(db, cache).upsert_translation(paragraph_id, lang, data)
    return ParagraphTranslationResponse.model_validate(translation)


@router.delete(
    "/paragraphs/{paragraph_id}/translations/{lang}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete paragraph translation",
    tags=["Paragraphs"],
    dependencies=[Depends(require_editor)],
)
async def delete_paragraph_translation(
    paragraph_id: UUID,
    db: DBSession,
    cache: DocumentCacheDep,
    lang: str = LanguageCode,
) -> None:
    await ParagraphService(db, cache).delete_translation(paragraph_id, lang)


@router.get(
    "/paragraphs/{paragraph_id}/versions",
    response_model=list[ParagraphVersionResponse],
    summary="List paragraph versions",
    tags=["Paragraphs"],
)
async def list_paragraph_versions(
    paragraph_id: UUID,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> list[ParagraphVersionResponse]:
    versions = await ParagraphService(db).list_versions(
        paragraph_id, include_hidden=can_see_drafts(user)
    )
    return [ParagraphVersionResponse.model_validate(v) for v in versions]


@router.get(
    "/paragraphs/{paragraph_id}/versions/{version_number}",
    response_model=ParagraphVersionResponse,
    summary="Get paragraph version",
    tags=["Paragraphs"],
)
async def get_paragraph_version(
    paragraph_id: UUID,
    version_number: int,
    db: DBSession,
    user: Profile | None = Depends(get_optional_user),
) -> ParagraphVersionResponse:
    version = await ParagraphService(db).get_version(
        paragraph_id, version_number, include_hidden=can_see_drafts(user)
    )
    return ParagraphVersionResponse.model_validate(version)
