"""Process-wide read-through cache over the settings table."""

import asyncio
import time
from typing import Annotated, Callable

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.modules.settings.models import Setting

logger = get_logger(__name__)

_TRUE_VALUES = {"true", "1", "yes", "on"}


class SettingsCache:
    """Read-through cache of all settings.

    The first read (and the first read after the TTL expires or after
    ``invalidate``) loads every row with the caller's session. Writers
    must call ``invalidate`` after committing a change.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._values: dict[str, str] = {}
        self._loaded_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def is_stale(self) -> bool:
        if self._loaded_at is None:
            return True
        return self._clock() - self._loaded_at >= self.ttl_seconds

    def invalidate(self) -> None:
        self._loaded_at = None

    async def _ensure_loaded(self, db: AsyncSession) -> None:
        if not self.is_stale:
            return

        async with self._lock:
            # Another request may have refreshed while we waited
            if not self.is_stale:
                return

            result = await db.execute(select(Setting))
            self._values = {row.key: row.value for row in result.scalars().all()}
            self._loaded_at = self._clock()
            logger.debug("settings_cache_refreshed", count=len(self._values))

    async def warm(self, db: AsyncSession) -> None:
        """Load the settings now instead of on the first read."""
        await self._ensure_loaded(db)

    async def get(self, db: AsyncSession, key: str, default: str | None = None) -> str | None:
        await self._ensure_loaded(db)
        return self._values.get(key, default)

    async def get_int(self, db: AsyncSession, key: str, default: int) -> int:
        raw = await self.get(db, key)
        if raw is None or raw.strip() == "":
            return default
        try:
            return int(raw)
        except ValueError:
            logger.warning("setting_not_an_integer", key=key, value=raw)
            return default

    async def get_bool(self, db: AsyncSession, key: str, default: bool) -> bool:
        raw = await self.get(db, key)
        if raw is None or raw.strip() == "":
            return default
        return raw.strip().lower() in _TRUE_VALUES

    async def get_list(self, db: AsyncSession, key: str) -> list[str]:
        raw = await self.get(db, key)
        if not raw:
            return []
        return [item.strip() for item in raw.split(",") if item.strip()]


def get_settings_cache(request: Request) -> SettingsCache:
    """FastAPI dependency returning the application's settings cache."""
    return request.app.state.settings_cache


SettingsCacheDep = Annotated[SettingsCache, Depends(get_settings_cache)]
