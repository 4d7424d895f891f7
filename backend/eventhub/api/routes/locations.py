"""
Location (venue) endpoints. Moderation actions are admin-only.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.config import get_settings
from eventhub.core.security import Actor, get_current_actor, get_optional_actor, require_roles
from eventhub.db.session import get_db
from eventhub.models.user import UserRole
from eventhub.schemas.common import MessageResponse, Page
from eventhub.schemas.location import LocationCreate, LocationResponse, LocationUpdate
from eventhub.services import location_service

settings = get_settings()
router = APIRouter(prefix="/locations", tags=["Locations"])

ADMIN = require_roles(UserRole.ADMIN)
MANAGERS = require_roles(UserRole.ORGANIZER, UserRole.ADMIN)


@router.post("/", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location_endpoint(
    location_data: LocationCreate,
    actor: Actor = Depends(MANAGERS),
    db: AsyncSession = Depends(get_db),
):
    """Propose a venue; it stays pending until an admin approves it."""
    return await location_service.create_location(db, actor, location_data)


@router.get("/", response_model=Page[LocationResponse])
async def list_locations_endpoint(
    validated: bool = Query(False, description="Only approved locations"),
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
):
    locations, total = await location_service.list_locations(db, actor, validated, search, page, limit)
    return Page[LocationResponse].build(
        [LocationResponse.model_validate(loc) for loc in locations], total, page, limit
    )


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location_endpoint(
    location_id: int,
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
):
    return await location_service.get_location(db, actor, location_id)


@router.put("/{location_id}", response_model=LocationResponse)
async def update_location_endpoint(
    location_id: int,
    location_data: LocationUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Owner or admin."""
    return await location_service.update_location(db, actor, location_id, location_data)


@router.delete("/{location_id}", response_model=MessageResponse)
async def delete_location_endpoint(
    location_id: int,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    await location_service.delete_location(db, actor, location_id)
    return MessageResponse(message="Location deleted")


@router.patch("/{location_id}/approve", response_model=LocationResponse)
async def approve_location_endpoint(
    location_id: int,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    return await location_service.moderate_location(db, actor, location_id, "approve")


@router.patch("/{location_id}/reject", response_model=LocationResponse)
async def reject_location_endpoint(
    location_id: int,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    return await location_service.moderate_location(db, actor, location_id, "reject")


@router.patch("/{location_id}/set-pending", response_model=LocationResponse)
async def set_pending_location_endpoint(
    location_id: int,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    return await location_service.moderate_location(db, actor, location_id, "set_pending")
