"""
Category service. Categories are admin-managed reference data.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.exceptions import DuplicateName, NotFoundError
from eventhub.core.logging import get_logger
from eventhub.core.security import Actor
from eventhub.db.store import ConstraintViolation, EntityStore
from eventhub.models.category import Category
from eventhub.schemas.category import CategoryCreate, CategoryUpdate

logger = get_logger(__name__)


async def list_categories(db: AsyncSession) -> list[Category]:
    return await EntityStore(db, Category).find_many(order_by=(Category.name.asc(),))


async def get_category(db: AsyncSession, category_id: int) -> Category:
    category = await EntityStore(db, Category).get(category_id)
    if category is None:
        raise NotFoundError("Category")
    return category


async def create_category(db: AsyncSession, actor: Actor, category_data: CategoryCreate) -> Category:
    store = EntityStore(db, Category)
    name = category_data.name.strip()
    if await store.find_one(Category.name == name):
        raise DuplicateName("Category", name)

    try:
        category = await store.create(name=name, description=category_data.description)
    except ConstraintViolation:
        raise DuplicateName("Category", name)

    logger.info("category_created", category_id=category.id, name=name, actor_id=actor.user_id)
    return category


async def update_category(
    db: AsyncSession, actor: Actor, category_id: int, category_data: CategoryUpdate
) -> Category:
    store = EntityStore(db, Category)
    category = await get_category(db, category_id)

    changes = category_data.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        name = changes["name"].strip()
        if name != category.name and await store.find_one(Category.name == name, Category.id != category.id):
            raise DuplicateName("Category", name)
        category.name = name
    if "description" in changes:
        category.description = changes["description"]

    try:
        category = await store.save(category)
    except ConstraintViolation:
        raise DuplicateName("Category", category_data.name or "")

    logger.info("category_updated", category_id=category.id, actor_id=actor.user_id)
    return category


async def delete_category(db: AsyncSession, actor: Actor, category_id: int) -> None:
    category = await get_category(db, category_id)
    await EntityStore(db, Category).soft_delete(category, actor.user_id)
    logger.info("category_deleted", category_id=category_id, actor_id=actor.user_id)
