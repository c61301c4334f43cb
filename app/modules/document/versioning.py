"""Snapshot history for pages and paragraphs.

The live row must be locked (``SELECT ... FOR UPDATE``) by the caller
before archiving, so version numbers for one entity are allocated one at
a time. The unique (entity, version_number) constraint backs this up.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.document.models import Page, PageVersion, Paragraph, ParagraphVersion


async def next_version_number(
    db: AsyncSession,
    version_model: type[PageVersion] | type[ParagraphVersion],
    owner_column: Any,
    owner_id: UUID,
) -> int:
    """Max existing version number for the owner plus one."""
    stmt = select(func.coalesce(func.max(version_model.version_number), 0)).where(
        owner_column == owner_id
    )
    current = (await db.execute(stmt)).scalar() or 0
    return int(current) + 1


def paragraph_state(paragraph: Paragraph) -> dict[str, Any]:
    """JSON-ready state of one paragraph for page snapshots."""
    return {
        "id": str(paragraph.id),
        "type": paragraph.type,
        "content": paragraph.content,
        "attributes": dict(paragraph.attributes or {}),
        "order_index": paragraph.order_index,
        "is_hidden": paragraph.is_hidden,
    }


async def archive_paragraph(
    db: AsyncSession,
    paragraph: Paragraph,
    actor_id: UUID,
    *,
    change_description: str | None = None,
    suggestion_id: UUID | None = None,
) -> ParagraphVersion:
    """Write the paragraph's current state as its next version."""
    number = await next_version_number(
        db, ParagraphVersion, ParagraphVersion.paragraph_id, paragraph.id
    )
    version = ParagraphVersion(
        paragraph_id=paragraph.id,
        version_number=number,
        type=paragraph.type,
        content=paragraph.content,
        attributes=dict(paragraph.attributes or {}),
        change_description=change_description,
        suggestion_id=suggestion_id,
        updated_by_profile_id=actor_id,
    )
    db.add(version)
    return version


async def archive_page(
    db: AsyncSession,
    page: Page,
    paragraphs: list[Paragraph],
    actor_id: UUID,
    *,
    change_description: str | None = None,
) -> PageVersion:
    """Write the page's current state, paragraphs included, as its next version."""
    number = await next_version_number(db, PageVersion, PageVersion.page_id, page.id)
    version = PageVersion(
        page_id=page.id,
        version_number=number,
        title=page.title,
        description=page.description,
        paragraphs_snapshot=[paragraph_state(p) for p in paragraphs],
        change_description=change_description,
        updated_by_profile_id=actor_id,
    )
    db.add(version)
    return version
