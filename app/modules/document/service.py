"""Document module service layer."""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from app.core.base_service import BaseService
from app.core.database import transactional
from app.core.exceptions import NotFoundError
from app.core.localization import check_slug_unique, normalize_language
from app.core.logging import get_logger
from app.core.ordering import move_item, next_order_index
from app.modules.auth.models import Profile
from app.modules.document.blocks import PageLinkBlock, block_to_columns
from app.modules.document.cache import DocumentCache
from app.modules.document.mappers import map_chapter, map_paragraph
from app.modules.document.models import (
    Chapter,
    ChapterTranslation,
    Page,
    PageTranslation,
    PageVersion,
    Paragraph,
    ParagraphTranslation,
    ParagraphVersion,
)
from app.modules.document.schemas import (
    ChapterCreate,
    ChapterResponse,
    ChapterUpdate,
    PageCreate,
    PageUpdate,
    PageVersionResponse,
    ParagraphCreate,
    ParagraphResponse,
    ParagraphTranslationUpsert,
    ParagraphUpdate,
    TitleTranslationUpsert,
)
from app.modules.document.versioning import archive_page, archive_paragraph
from app.modules.notifications.service import NotificationService

logger = get_logger(__name__)


async def upsert_translation(
    db: AsyncSession,
    model: type,
    owner_field: str,
    owner_id: UUID,
    language: str,
    values: dict[str, Any],
) -> Any:
    """Create or overwrite the ``language`` row of a translation table."""
    language = normalize_language(language)
    owner_column = getattr(model, owner_field)

    result = await db.execute(
        select(model).where(owner_column == owner_id).where(model.language == language)
    )
    translation = result.scalar_one_or_none()

    if translation is None:
        translation = model(**{owner_field: owner_id}, language=language)
        db.add(translation)

    for field, value in values.items():
        setattr(translation, field, value)

    await db.flush()
    return translation


async def delete_translation(
    db: AsyncSession,
    model: type,
    owner_field: str,
    owner_id: UUID,
    language: str,
) -> None:
    language = normalize_language(language)
    owner_column = getattr(model, owner_field)

    result = await db.execute(
        select(model).where(owner_column == owner_id).where(model.language == language)
    )
    translation = result.scalar_one_or_none()
    if translation is None:
        raise NotFoundError(f"{model.__name__}", language)

    await db.delete(translation)


# ============================================================================
# Chapters
# ============================================================================


class ChapterService(BaseService[Chapter]):
    """Chapters, the top level of the document tree."""

    model = Chapter

    def __init__(self, db: AsyncSession, cache: DocumentCache | None = None) -> None:
        super().__init__(db)
        self.cache = cache or DocumentCache(None)

    async def list_chapters(self, language: str, include_drafts: bool = False) -> list[ChapterResponse]:
        """Chapter tree with page summaries.

        Public views are served from the document cache when available.
        """
        cache_key = DocumentCache.chapters_key(language)
        if not include_drafts:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return [ChapterResponse.model_validate(item) for item in cached]

        stmt = (
            select(Chapter)
            .options(selectinload(Chapter.pages))
            .order_by(Chapter.order_index, Chapter.created_at)
        )
        if not include_drafts:
            stmt = stmt.where(Chapter.is_draft.is_(False))

        chapters = list((await self.db.execute(stmt)).scalars().all())

        items = [
            map_chapter(
                chapter,
                language,
                pages=[p for p in chapter.pages if include_drafts or not p.is_draft],
            )
            for chapter in chapters
        ]

        if not include_drafts:
            await self.cache.set(cache_key, [item.model_dump(mode="json") for item in items])
        return items

    async def get_chapter(self, chapter_id: UUID, include_drafts: bool = False) -> Chapter:
        chapter = await self._get_by_id(chapter_id, options=[selectinload(Chapter.pages)])
        if chapter.is_draft and not include_drafts:
            raise NotFoundError("Chapter", chapter_id)
        return chapter

    @transactional
    async def _insert(self, data: ChapterCreate) -> Chapter:
        await check_slug_unique(self.db, Chapter, data.slug)

        order_index = data.order_index
        if order_index is None:
            current_max = (await self.db.execute(select(func.max(Chapter.order_index)))).scalar()
            order_index = next_order_index(current_max)

        chapter = Chapter(**data.model_dump(exclude={"order_index"}), order_index=order_index)
        self.db.add(chapter)
        await self.db.flush()
        await self.db.refresh(chapter)
        return chapter

    async def create_chapter(self, data: ChapterCreate) -> Chapter:
        chapter = await self._insert(data)
        await self.cache.invalidate_chapters()
        logger.info("chapter_created", chapter_id=str(chapter.id), slug=chapter.slug)
        return chapter

    @transactional
    async def _apply_update(self, chapter_id: UUID, data: ChapterUpdate) -> Chapter:
        chapter = await self._get_by_id(chapter_id, for_update=True)

        update_data = data.model_dump(exclude_unset=True)
        if "slug" in update_data and update_data["slug"] != chapter.slug:
            await check_slug_unique(self.db, Chapter, update_data["slug"], exclude_id=chapter.id)

        for field, value in update_data.items():
            setattr(chapter, field, value)

        await self.db.flush()
        await self.db.refresh(chapter)
        return chapter

    async def update_chapter(self, chapter_id: UUID, data: ChapterUpdate) -> Chapter:
        chapter = await self._apply_update(chapter_id, data)
        await self.cache.invalidate_chapters()
        return chapter

    @transactional
    async def _remove(self, chapter_id: UUID) -> list[UUID]:
        chapter = await self._get_by_id(chapter_id, options=[selectinload(Chapter.pages)])
        page_ids = [p.id for p in chapter.pages]
        await self.db.delete(chapter)
        return page_ids

    async def delete_chapter(self, chapter_id: UUID) -> None:
        page_ids = await self._remove(chapter_id)
        await self.cache.invalidate_chapters()
        for page_id in page_ids:
            await self.cache.invalidate_paragraphs(page_id)
        logger.info("chapter_deleted", chapter_id=str(chapter_id))

    @transactional
    async def _move(self, chapter_id: UUID, new_index: int) -> list[Chapter]:
        result = await self.db.execute(
            select(Chapter).order_by(Chapter.order_index, Chapter.created_at).with_for_update()
        )
        ordered = move_item(list(result.scalars().all()), chapter_id, new_index)
        await self.db.flush()
        return ordered

    async def reorder_chapter(self, chapter_id: UUID, new_index: int) -> list[Chapter]:
        ordered = await self._move(chapter_id, new_index)
        await self.cache.invalidate_chapters()
        return ordered

    @transactional
    async def _save_translation(
        self, chapter_id: UUID, language: str, data: TitleTranslationUpsert
    ) -> ChapterTranslation:
        await self._get_by_id(chapter_id)
        return await upsert_translation(
            self.db, ChapterTranslation, "chapter_id", chapter_id, language,
            data.model_dump(exclude_unset=True),
        )

    async def upsert_translation(
        self, chapter_id: UUID, language: str, data: TitleTranslationUpsert
    ) -> ChapterTranslation:
        translation = await self._save_translation(chapter_id, language, data)
        await self.cache.invalidate_chapters()
        return translation

    @transactional
    async def _drop_translation(self, chapter_id: UUID, language: str) -> None:
        await delete_translation(self.db, ChapterTranslation, "chapter_id", chapter_id, language)

    async def delete_translation(self, chapter_id: UUID, language: str) -> None:
        await self._drop_translation(chapter_id, language)
        await self.cache.invalidate_chapters()


# ============================================================================
# Pages
# ============================================================================


class PageService(BaseService[Page]):
    """Pages with snapshot history."""

    model = Page

    def __init__(self, db: AsyncSession, cache: DocumentCache | None = None) -> None:
        super().__init__(db)
        self.cache = cache or DocumentCache(None)

    def _get_default_options(self) -> list[Any]:
        return [selectinload(Page.chapter)]

    @staticmethod
    def _is_visible(page: Page, include_drafts: bool) -> bool:
        return include_drafts or not (page.is_draft or page.chapter.is_draft)

    async def _visible_paragraphs(self, page_id: UUID, include_hidden: bool) -> list[Paragraph]:
        stmt = (
            select(Paragraph)
            .where(Paragraph.page_id == page_id)
            .order_by(Paragraph.order_index, Paragraph.created_at)
        )
        if not include_hidden:
            stmt = stmt.where(Paragraph.is_hidden.is_(False))
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_page(
        self, page_id: UUID, include_drafts: bool = False
    ) -> tuple[Page, list[Paragraph]]:
        """Page and its paragraphs. Hidden paragraphs only for editors."""
        page = await self._get_visible(page_id, include_drafts)
        return page, await self._visible_paragraphs(page.id, include_drafts)

    @transactional
    async def get_page_by_slug(
        self, slug: str, include_drafts: bool = False
    ) -> tuple[Page, list[Paragraph]]:
        """Page by slug. Each successful read counts as one view."""
        result = await self.db.execute(
            select(Page).where(Page.slug == slug).options(*self._get_default_options())
        )
        page = result.scalar_one_or_none()
        if page is None or not self._is_visible(page, include_drafts):
            raise NotFoundError("Page", slug)

        view_count = (
            await self.db.execute(
                update(Page)
                .where(Page.id == page.id)
                .values(view_count=Page.view_count + 1, updated_at=Page.updated_at)
                .returning(Page.view_count)
            )
        ).scalar_one()
        set_committed_value(page, "view_count", view_count)

        return page, await self._visible_paragraphs(page.id, include_drafts)

    async def list_pages(self, chapter_id: UUID, include_drafts: bool = False) -> list[Page]:
        chapter = await self.db.get(Chapter, chapter_id)
        if chapter is None or (chapter.is_draft and not include_drafts):
            raise NotFoundError("Chapter", chapter_id)

        stmt = (
            select(Page)
            .where(Page.chapter_id == chapter_id)
            .order_by(Page.order_index, Page.created_at)
        )
        if not include_drafts:
            stmt = stmt.where(Page.is_draft.is_(False))
        return list((await self.db.execute(stmt)).scalars().all())

    @transactional
    async def _insert(self, data: PageCreate, actor: Profile) -> Page:
        if await self.db.get(Chapter, data.chapter_id) is None:
            raise NotFoundError("Chapter", data.chapter_id)
        await check_slug_unique(self.db, Page, data.slug)

        order_index = data.order_index
        if order_index is None:
            current_max = (
                await self.db.execute(
                    select(func.max(Page.order_index)).where(Page.chapter_id == data.chapter_id)
                )
            ).scalar()
            order_index = next_order_index(current_max)

        page = Page(
            **data.model_dump(exclude={"order_index"}),
            order_index=order_index,
            updated_by_profile_id=actor.id,
        )
        self.db.add(page)
        await self.db.flush()
        await self.db.refresh(page)
        return page

    async def create_page(self, data: PageCreate, actor: Profile) -> Page:
        page = await self._insert(data, actor)
        await self.cache.invalidate_chapters()
        logger.info("page_created", page_id=str(page.id), slug=page.slug)
        return page

    @transactional
    async def _apply_update(self, page_id: UUID, data: PageUpdate, actor: Profile) -> Page:
        page = await self._get_by_id(page_id, options=[], for_update=True)
        page.bump_version(data.version)

        update_data = data.model_dump(exclude_unset=True, exclude={"version", "change_description"})
        if "slug" in update_data and update_data["slug"] != page.slug:
            await check_slug_unique(self.db, Page, update_data["slug"], exclude_id=page.id)

        paragraphs = await self._visible_paragraphs(page.id, include_hidden=True)
        version = await archive_page(
            self.db, page, paragraphs, actor.id, change_description=data.change_description
        )

        for field, value in update_data.items():
            setattr(page, field, value)
        page.updated_by_profile_id = actor.id

        await NotificationService(self.db).notify_page_updated(page, actor)

        await self.db.flush()
        await self.db.refresh(page)
        logger.info(
            "page_updated",
            page_id=str(page.id),
            version_number=version.version_number,
        )
        return page

    async def update_page(self, page_id: UUID, data: PageUpdate, actor: Profile) -> Page:
        page = await self._apply_update(page_id, data, actor)
        await self.cache.invalidate_chapters()
        return page

    @transactional
    async def _remove(self, page_id: UUID) -> None:
        page = await self._get_by_id(page_id, options=[])
        await self.db.delete(page)

    async def delete_page(self, page_id: UUID) -> None:
        await self._remove(page_id)
        await self.cache.invalidate_chapters()
        await self.cache.invalidate_paragraphs(page_id)
        logger.info("page_deleted", page_id=str(page_id))

    @transactional
    async def _move(self, page_id: UUID, new_index: int) -> list[Page]:
        page = await self._get_by_id(page_id, options=[])
        result = await self.db.execute(
            select(Page)
            .where(Page.chapter_id == page.chapter_id)
            .order_by(Page.order_index, Page.created_at)
            .with_for_update()
        )
        ordered = move_item(list(result.scalars().all()), page_id, new_index)
        await self.db.flush()
        return ordered

    async def reorder_page(self, page_id: UUID, new_index: int) -> list[Page]:
        ordered = await self._move(page_id, new_index)
        await self.cache.invalidate_chapters()
        return ordered

    @transactional
    async def _save_translation(
        self, page_id: UUID, language: str, data: TitleTranslationUpsert
    ) -> PageTranslation:
        await self._get_by_id(page_id, options=[])
        return await upsert_translation(
            self.db, PageTranslation, "page_id", page_id, language,
            data.model_dump(exclude_unset=True),
        )

    async def upsert_translation(
        self, page_id: UUID, language: str, data: TitleTranslationUpsert
    ) -> PageTranslation:
        translation = await self._save_translation(page_id, language, data)
        await self.cache.invalidate_chapters()
        return translation

    @transactional
    async def _drop_translation(self, page_id: UUID, language: str) -> None:
        await delete_translation(self.db, PageTranslation, "page_id", page_id, language)

    async def delete_translation(self, page_id: UUID, language: str) -> None:
        await self._drop_translation(page_id, language)
        await self.cache.invalidate_chapters()

    async def _get_visible(self, page_id: UUID, include_drafts: bool) -> Page:
        page = await self._get_by_id(page_id)
        if not self._is_visible(page, include_drafts):
            raise NotFoundError("Page", page_id)
        return page

    @staticmethod
    def _present_version(version: PageVersion, include_hidden: bool) -> PageVersionResponse:
        response = PageVersionResponse.model_validate(version)
        if not include_hidden:
            response.paragraphs_snapshot = [
                item for item in response.paragraphs_snapshot if not item.get("is_hidden")
            ]
        return response

    async def list_versions(
        self, page_id: UUID, include_drafts: bool = False
    ) -> list[PageVersionResponse]:
        """Archived states, newest first. Hidden paragraphs only for editors."""
        await self._get_visible(page_id, include_drafts)
        result = await self.db.execute(
            select(PageVersion)
            .where(PageVersion.page_id == page_id)
            .order_by(PageVersion.version_number.desc())
        )
        return [self._present_version(v, include_drafts) for v in result.scalars().all()]

    async def get_version(
        self, page_id: UUID, version_number: int, include_drafts: bool = False
    ) -> PageVersionResponse:
        await self._get_visible(page_id, include_drafts)
        result = await self.db.execute(
            select(PageVersion)
            .where(PageVersion.page_id == page_id)
            .where(PageVersion.version_number == version_number)
        )
        version = result.scalar_one_or_none()
        if version is None:
            raise NotFoundError("PageVersion", version_number)
        return self._present_version(version, include_drafts)


# ============================================================================
# Paragraphs
# ============================================================================


class ParagraphService(BaseService[Paragraph]):
    """Paragraph blocks with snapshot history."""

    model = Paragraph

    def __init__(self, db: AsyncSession, cache: DocumentCache | None = None) -> None:
        super().__init__(db)
        self.cache = cache or DocumentCache(None)

    async def _get_page(self, page_id: UUID) -> Page:
        result = await self.db.execute(
            select(Page).where(Page.id == page_id).options(selectinload(Page.chapter))
        )
        page = result.scalar_one_or_none()
        if page is None:
            raise NotFoundError("Page", page_id)
        return page

    async def _validate_block(self, block: Any) -> None:
        if isinstance(block, PageLinkBlock):
            if await self.db.get(Page, block.linked_page_id) is None:
                raise NotFoundError("Page", block.linked_page_id)

    async def list_paragraphs(
        self, page_id: UUID, language: str, include_hidden: bool = False
    ) -> list[ParagraphResponse]:
        """Paragraphs of a page in order. Public views are cached."""
        page = await self._get_page(page_id)
        if not include_hidden and (page.is_draft or page.chapter.is_draft):
            raise NotFoundError("Page", page_id)

        cache_key = DocumentCache.paragraphs_key(page_id, language)
        if not include_hidden:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return [ParagraphResponse.model_validate(item) for item in cached]

        stmt = (
            select(Paragraph)
            .where(Paragraph.page_id == page_id)
            .order_by(Paragraph.order_index, Paragraph.created_at)
        )
        if not include_hidden:
            stmt = stmt.where(Paragraph.is_hidden.is_(False))

        items = [map_paragraph(p, language) for p in (await self.db.execute(stmt)).scalars().all()]

        if not include_hidden:
            await self.cache.set(cache_key, [item.model_dump(mode="json") for item in items])
        return items

    async def get_paragraph(self, paragraph_id: UUID, include_hidden: bool = False) -> Paragraph:
        """Paragraph by id. Hidden ones and those on draft pages only for editors."""
        paragraph = await self._get_by_id(
            paragraph_id,
            options=[selectinload(Paragraph.page).selectinload(Page.chapter)],
        )
        page = paragraph.page
        if not include_hidden and (
            paragraph.is_hidden or page.is_draft or page.chapter.is_draft
        ):
            raise NotFoundError("Paragraph", paragraph_id)
        return paragraph

    @transactional
    async def _insert(self, data: ParagraphCreate, actor: Profile) -> Paragraph:
        await self._get_page(data.page_id)
        await self._validate_block(data.block)

        order_index = data.order_index
        if order_index is None:
            current_max = (
                await self.db.execute(
                    select(func.max(Paragraph.order_index)).where(Paragraph.page_id == data.page_id)
                )
            ).scalar()
            order_index = next_order_index(current_max)

        block_type, attributes = block_to_columns(data.block)
        paragraph = Paragraph(
            page_id=data.page_id,
            type=block_type,
            content=data.content,
            attributes=attributes,
            is_hidden=data.is_hidden,
            order_index=order_index,
            updated_by_profile_id=actor.id,
        )
        self.db.add(paragraph)
        await self.db.flush()
        await self.db.refresh(paragraph)
        return paragraph

    async def create_paragraph(self, data: ParagraphCreate, actor: Profile) -> Paragraph:
        paragraph = await self._insert(data, actor)
        await self.cache.invalidate_paragraphs(paragraph.page_id)
        return paragraph

    @transactional
    async def _apply_update(
        self, paragraph_id: UUID, data: ParagraphUpdate, actor: Profile
    ) -> Paragraph:
        paragraph = await self._get_by_id(paragraph_id, for_update=True)
        paragraph.bump_version(data.version)

        version = await archive_paragraph(
            self.db, paragraph, actor.id, change_description=data.change_description
        )

        if data.block is not None:
            await self._validate_block(data.block)
            paragraph.type, paragraph.attributes = block_to_columns(data.block)
        if data.content is not None:
            paragraph.content = data.content
        if data.is_hidden is not None:
            paragraph.is_hidden = data.is_hidden
        paragraph.updated_by_profile_id = actor.id

        await self.db.flush()
        await self.db.refresh(paragraph)
        logger.info(
            "paragraph_updated",
            paragraph_id=str(paragraph.id),
            version_number=version.version_number,
        )
        return paragraph

    async def update_paragraph(
        self, paragraph_id: UUID, data: ParagraphUpdate, actor: Profile
    ) -> Paragraph:
        paragraph = await self._apply_update(paragraph_id, data, actor)
        await self.cache.invalidate_paragraphs(paragraph.page_id)
        return paragraph

    @transactional
    async def _remove(self, paragraph_id: UUID) -> UUID:
        paragraph = await self._get_by_id(paragraph_id)
        page_id = paragraph.page_id
        await self.db.delete(paragraph)
        return page_id

    async def delete_paragraph(self, paragraph_id: UUID) -> None:
        page_id = await self._remove(paragraph_id)
        await self.cache.invalidate_paragraphs(page_id)

    @transactional
    async def _move(self, paragraph_id: UUID, new_index: int) -> tuple[UUID, list[Paragraph]]:
        paragraph = await self._get_by_id(paragraph_id)
        result = await self.db.execute(
            select(Paragraph)
            .where(Paragraph.page_id == paragraph.page_id)
            .order_by(Paragraph.order_index, Paragraph.created_at)
            .with_for_update()
        )
        ordered = move_item(list(result.scalars().all()), paragraph_id, new_index)
        await self.db.flush()
        return paragraph.page_id, ordered

    async def reorder_paragraph(self, paragraph_id: UUID, new_index: int) -> list[Paragraph]:
        page_id, ordered = await self._move(paragraph_id, new_index)
        await self.cache.invalidate_paragraphs(page_id)
        return ordered

    @transactional
    async def _save_translation(
        self, paragraph_id: UUID, language: str, data: ParagraphTranslationUpsert
    ) -> tuple[UUID, ParagraphTranslation]:
        paragraph = await self._get_by_id(paragraph_id)
        translation = await upsert_translation(
            self.db, ParagraphTranslation, "paragraph_id", paragraph_id, language,
            data.model_dump(exclude_unset=True),
        )
        return paragraph.page_id, translation

    async def upsert_translation(
        self, paragraph_id: UUID, language: str, data: ParagraphTranslationUpsert
    ) -> ParagraphTranslation:
        page_id, translation = await self._save_translation(paragraph_id, language, data)
        await self.cache.invalidate_paragraphs(page_id)
        return translation

    @transactional
    async def _drop_translation(self, paragraph_id: UUID, language: str) -> UUID:
        paragraph = await self._get_by_id(paragraph_id)
        await delete_translation(
            self.db, ParagraphTranslation, "paragraph_id", paragraph_id, language
        )
        return paragraph.page_id

    async def delete_translation(self, paragraph_id: UUID, language: str) -> None:
        page_id = await self._drop_translation(paragraph_id, language)
        await self.cache.invalidate_paragraphs(page_id)

    async def list_versions(
        self, paragraph_id: UUID, include_hidden: bool = False
    ) -> list[ParagraphVersion]:
        await self.get_paragraph(paragraph_id, include_hidden)
        result = await self.db.execute(
            select(ParagraphVersion)
            .where(ParagraphVersion.paragraph_id == paragraph_id)
            .order_by(ParagraphVersion.version_number.desc())
        )
        return list(result.scalars().all())

    async def get_version(
        self, paragraph_id: UUID, version_number: int, include_hidden: bool = False
    ) -> ParagraphVersion:
        await self.get_paragraph(paragraph_id, include_hidden)
        result = await self.db.execute(
            select(ParagraphVersion)
            .where(ParagraphVersion.paragraph_id == paragraph_id)
            .where(ParagraphVersion.version_number == version_number)
        )
        version = result.scalar_one_or_none()
        if version is None:
            raise NotFoundError("ParagraphVersion", version_number)
        return version
