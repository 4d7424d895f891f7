"""
Category endpoints: public reads, admin writes.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.security import Actor, require_roles
from eventhub.db.session import get_db
from eventhub.models.user import UserRole
from eventhub.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from eventhub.schemas.common import MessageResponse
from eventhub.services import category_service

router = APIRouter(prefix="/categories", tags=["Categories"])

ADMIN = require_roles(UserRole.ADMIN)


@router.get("/", response_model=list[CategoryResponse])
async def list_categories_endpoint(db: AsyncSession = Depends(get_db)):
    return await category_service.list_categories(db)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category_endpoint(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.get_category(db, category_id)


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category_endpoint(
    category_data: CategoryCreate,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    return await category_service.create_category(db, actor, category_data)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category_endpoint(
    category_id: int,
    category_data: CategoryUpdate,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    return await category_service.update_category(db, actor, category_id, category_data)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category_endpoint(
    category_id: int,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    await category_service.delete_category(db, actor, category_id)
    return MessageResponse(message="Category deleted")
