"""Lookup and paging helpers shared by the module services."""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.core.base_model import Base
from app.core.exceptions import NotFoundError

ModelT = TypeVar("ModelT", bound=Base)


class BaseService(Generic[ModelT]):
    """Holds the request session and knows its model.

    Subclasses set ``model`` and may override ``_get_default_options``
    to eager-load what their responses render.
    """

    model: type[ModelT]

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _get_default_options(self) -> list[Any]:
        return []

    async def _get_by_id(
        self,
        entity_id: UUID,
        *,
        options: list[Any] | None = None,
        include_deleted: bool = False,
        for_update: bool = False,
    ) -> ModelT:
        """Fetch one row or raise ``NotFoundError``.

        Soft-deleted rows count as missing unless ``include_deleted``.
        ``for_update`` takes a row lock held until the transaction ends.
        """
        stmt = select(self.model).where(self.model.id == entity_id)

        if not include_deleted and hasattr(self.model, "deleted_at"):
            stmt = stmt.where(self.model.deleted_at.is_(None))

        load_options = self._get_default_options() if options is None else options
        if load_options:
            stmt = stmt.options(*load_options)
        if for_update:
            stmt = stmt.with_for_update(of=self.model)

        entity = (await self.db.execute(stmt)).scalar_one_or_none()
        if entity is None:
            raise NotFoundError(self.model.__name__, entity_id)
        return entity

    async def _paginate(
        self,
        base_query: Select,
        page: int,
        page_size: int,
        *,
        options: list[Any] | None = None,
        order_by: list[Any] | None = None,
    ) -> tuple[list[ModelT], int]:
        """One page of ``base_query`` plus the unpaged total, 1-based pages."""
        total = (
            await self.db.execute(select(func.count()).select_from(base_query.subquery()))
        ).scalar() or 0

        stmt = base_query
        load_options = self._get_default_options() if options is None else options
        if load_options:
            stmt = stmt.options(*load_options)
        if order_by:
            stmt = stmt.order_by(*order_by)

        rows = await self.db.execute(stmt.offset((page - 1) * page_size).limit(page_size))
        return list(rows.scalars().all()), total
