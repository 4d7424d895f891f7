"""
Site settings singleton, created with defaults on first read.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.logging import get_logger
from eventhub.core.security import Actor
from eventhub.db.store import ConstraintViolation, EntityStore
from eventhub.models.setting import SETTINGS_ROW_ID, Setting
from eventhub.schemas.setting import SettingUpdate
from eventhub.services.access_policy import ensure_admin

logger = get_logger(__name__)


async def get_settings_row(db: AsyncSession) -> Setting:
    store = EntityStore(db, Setting)
    setting = await store.get(SETTINGS_ROW_ID)
    if setting is not None:
        return setting
    try:
        setting = await store.create(id=SETTINGS_ROW_ID)
        logger.info("settings_initialized")
    except ConstraintViolation:
        # Another request created the row first
        setting = await store.get(SETTINGS_ROW_ID)
    return setting


async def update_settings(db: AsyncSession, actor: Actor, data: SettingUpdate) -> Setting:
    ensure_admin(actor)
    setting = await get_settings_row(db)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    for name, value in changes.items():
        setattr(setting, name, value)
    setting = await EntityStore(db, Setting).save(setting)
    logger.info("settings_updated", fields=sorted(changes), actor_id=actor.user_id)
    return setting
