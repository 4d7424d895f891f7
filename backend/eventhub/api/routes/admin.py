"""
Admin endpoints: user management and platform statistics.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.config import get_settings
from eventhub.core.security import Actor, require_roles
from eventhub.db.base import utcnow
from eventhub.db.session import get_db
from eventhub.models.user import UserRole
from eventhub.schemas.admin import AdminDashboardStats, EventActivityPoint
from eventhub.schemas.common import MessageResponse, Page
from eventhub.schemas.user import RoleUpdate, UserResponse
from eventhub.services import admin_service

settings = get_settings()
router = APIRouter(prefix="/admin", tags=["Admin"])

ADMIN = require_roles(UserRole.ADMIN)


@router.get("/users", response_model=Page[UserResponse])
async def list_users_endpoint(
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    users, total = await admin_service.list_users(db, actor, role, search, page, limit)
    return Page[UserResponse].build(
        [UserResponse.model_validate(u) for u in users], total, page, limit
    )


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def update_role_endpoint(
    user_id: int,
    body: RoleUpdate,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.update_user_role(db, actor, user_id, body.role)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user_endpoint(
    user_id: int,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    await admin_service.delete_user(db, actor, user_id)
    return MessageResponse(message="User deleted")


@router.get("/dashboard-stats", response_model=AdminDashboardStats)
async def dashboard_stats_endpoint(
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.get_dashboard_stats(db, actor)


@router.get("/event-activity-stats", response_model=list[EventActivityPoint])
async def event_activity_endpoint(
    year: Optional[int] = Query(None, ge=1970, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    """Events per month of ``year`` (default: current year), or per day of ``month``."""
    return await admin_service.get_event_activity(db, actor, year or utcnow().year, month)
