from fastapi import APIRouter, Depends

from app.cache import invalidate_settings_cache
from app.crud import settings_crud
from app.deps import Actor, can_read_settings, can_update_settings
from app.schemas import SystemSettingsResponse, SystemSettingsUpdate

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=SystemSettingsResponse)
async def get_settings(
    _: Actor = Depends(can_read_settings),
) -> SystemSettingsResponse:
    return await settings_crud.get()


@router.put("/", response_model=SystemSettingsResponse)
async def update_settings(
    payload: SystemSettingsUpdate,
    current_user: Actor = Depends(can_update_settings),
) -> SystemSettingsResponse:
    updated = await settings_crud.update(payload, updated_by=current_user.id)
    await invalidate_settings_cache()
    return updated
