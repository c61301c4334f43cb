"""Admin routes for platform settings."""

from fastapi import APIRouter, Depends, Path

from app.core.dependencies import DBSession
from app.core.security import require_admin
from app.modules.settings.cache import SettingsCacheDep
from app.modules.settings.schemas import SettingResponse, SettingUpdate
from app.modules.settings.service import SettingsService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get(
    "/admin/settings",
    response_model=list[SettingResponse],
    summary="List settings",
)
async def list_settings(db: DBSession, cache: SettingsCacheDep) -> list[SettingResponse]:
    service = SettingsService(db, cache)
    return [SettingResponse.model_validate(s) for s in await service.list_settings()]


@router.put(
    "/admin/settings/{key}",
    response_model=SettingResponse,
    summary="Create or update a setting",
)
async def update_setting(
    data: SettingUpdate,
    db: DBSession,
    cache: SettingsCacheDep,
    key: str = Path(..., min_length=1, max_length=100),
) -> SettingResponse:
    """Write a setting. The settings cache reloads on the next read."""
    service = SettingsService(db, cache)
    return SettingResponse.model_validate(await service.set(key, data))
