"""Helpers for translated content across document models."""

from typing import Any, Iterable, Protocol, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import AlreadyExistsError, UnsupportedLanguageError


class Translation(Protocol):
    language: str


TranslationT = TypeVar("TranslationT", bound=Translation)


def normalize_language(language: str | None) -> str:
    """Lower-case a language code and check it is supported.

    ``None`` or an empty value falls back to the default language.
    """
    if not language:
        return settings.default_language

    code = language.strip().lower()
    if code not in settings.supported_languages:
        raise UnsupportedLanguageError(language, settings.supported_languages)
    return code


def pick_translation(
    translations: Iterable[TranslationT],
    language: str,
) -> TranslationT | None:
    """Return the row for ``language`` or None."""
    for translation in translations:
        if translation.language == language:
            return translation
    return None


def localized(base: Any, translation: Any | None, field: str) -> Any:
    """Translated field value, falling back to the base entity's value."""
    if translation is not None:
        value = getattr(translation, field, None)
        if value:
            return value
    return getattr(base, field)


async def check_slug_unique(
    db: AsyncSession,
    model: type,
    slug: str,
    exclude_id: UUID | None = None,
) -> None:
    """Raise AlreadyExistsError if another ``model`` row uses ``slug``."""
    stmt = select(model.id).where(model.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)

    result = await db.execute(stmt.limit(1))
    if result.scalar_one_or_none() is not None:
        raise AlreadyExistsError(model.__name__, "slug", slug)
