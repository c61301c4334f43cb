"""Settings service - listing and writes that invalidate the cache."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import transactional
from app.core.logging import get_logger
from app.modules.settings.cache import SettingsCache
from app.modules.settings.models import DEFAULT_SETTINGS, Setting
from app.modules.settings.schemas import SettingUpdate

logger = get_logger(__name__)


class SettingsService:
    """Service for managing platform settings."""

    def __init__(self, db: AsyncSession, cache: SettingsCache) -> None:
        self.db = db
        self.cache = cache

    async def list_settings(self) -> list[Setting]:
        result = await self.db.execute(select(Setting).order_by(Setting.key))
        return list(result.scalars().all())

    async def set(self, key: str, data: SettingUpdate) -> Setting:
        """Upsert a setting and drop the cached values."""
        setting = await self._upsert(key, data)
        self.cache.invalidate()
        logger.info("setting_updated", key=key)
        return setting

    @transactional
    async def _upsert(self, key: str, data: SettingUpdate) -> Setting:
        setting = await self.db.get(Setting, key)
        if setting is None:
            setting = Setting(key=key, value=data.value, description=data.description)
            self.db.add(setting)
        else:
            setting.value = data.value
            if data.description is not None:
                setting.description = data.description

        await self.db.flush()
        await self.db.refresh(setting)
        return setting

    @transactional
    async def ensure_defaults(self) -> int:
        """Insert missing default settings. Returns the number created."""
        existing = set((await self.db.execute(select(Setting.key))).scalars().all())
        created = 0
        for key, (value, description) in DEFAULT_SETTINGS.items():
            if key not in existing:
                self.db.add(Setting(key=key, value=value, description=description))
                created += 1

        await self.db.flush()
        self.cache.invalidate()
        return created
