"""
Endpoints about the current user: profile and dashboards.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.config import get_settings
from eventhub.core.security import Actor, get_current_actor
from eventhub.db.session import get_db
from eventhub.schemas.common import Page
from eventhub.schemas.event import EventParticipantsCount, EventResponse, OrganizerDashboardStats
from eventhub.schemas.user import UserResponse, UserUpdate
from eventhub.services import user_service

settings = get_settings()
router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me_endpoint(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_me(db, actor)


@router.put("/me", response_model=UserResponse)
async def update_me_endpoint(
    user_data: UserUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_me(db, actor, user_data)


@router.get("/me/participated-events", response_model=Page[EventResponse])
async def participated_events_endpoint(
    search: Optional[str] = Query(None, max_length=200),
    category_id: Optional[int] = Query(None),
    is_online: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(6, ge=1, le=settings.MAX_PAGE_SIZE),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    events, total = await user_service.list_participated_events(
        db, actor, search, category_id, is_online, page, limit
    )
    return Page[EventResponse].build(
        [EventResponse.model_validate(e) for e in events], total, page, limit
    )


@router.get("/me/dashboard-stats", response_model=OrganizerDashboardStats)
async def dashboard_stats_endpoint(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_organizer_dashboard_stats(db, actor)


@router.get("/me/events-with-participants", response_model=list[EventParticipantsCount])
async def events_with_participants_endpoint(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_events_with_participants(db, actor)
