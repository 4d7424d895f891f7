"""
Site settings endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.security import Actor, require_roles
from eventhub.db.session import get_db
from eventhub.models.user import UserRole
from eventhub.schemas.setting import SettingResponse, SettingUpdate
from eventhub.services import setting_service

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/", response_model=SettingResponse)
async def get_settings_endpoint(db: AsyncSession = Depends(get_db)):
    """Public; the row is created with defaults on first read."""
    return await setting_service.get_settings_row(db)


@router.put("/", response_model=SettingResponse)
async def update_settings_endpoint(
    data: SettingUpdate,
    actor: Actor = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await setting_service.update_settings(db, actor, data)
