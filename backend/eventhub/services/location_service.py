"""
Location (venue) service: CRUD, listing and admin moderation.

Moderation here is deliberately flat: any admin action overwrites the
status whatever it was, and records (or clears) the validating admin.
"""

from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.exceptions import DuplicateName
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_location_transition
from eventhub.core.security import Actor
from eventhub.db.store import ConstraintViolation, EntityStore
from eventhub.models.location import Location, LocationStatus
from eventhub.schemas.location import LocationCreate, LocationUpdate
from eventhub.services.access_policy import (
    ensure_admin, ensure_can_manage, ensure_visible_location, location_visibility_clause,
)

logger = get_logger(__name__)

# action -> (target status, whether the acting admin is recorded)
MODERATION_ACTIONS = {
    "approve": (LocationStatus.APPROVED, True),
    "reject": (LocationStatus.REJECTED, True),
    "set_pending": (LocationStatus.PENDING, False),
}


def _normalize_name(name: str) -> str:
    # Uniqueness is exact and case-sensitive once surrounding whitespace is gone
    return name.strip()


def _location_fields(data: dict[str, Any]) -> dict[str, Any]:
    fields = dict(data)
    if "coordinates" in fields:
        coordinates = fields.pop("coordinates")
        fields["latitude"] = coordinates["latitude"] if coordinates else None
        fields["longitude"] = coordinates["longitude"] if coordinates else None
    if "name" in fields and fields["name"] is not None:
        fields["name"] = _normalize_name(fields["name"])
    return fields


async def _ensure_name_free(store: EntityStore, name: str, exclude_id: Optional[int] = None) -> None:
    criteria = [Location.name == name]
    if exclude_id is not None:
        criteria.append(Location.id != exclude_id)
    if await store.find_one(*criteria):
        raise DuplicateName("Location", name)


async def create_location(db: AsyncSession, actor: Actor, location_data: LocationCreate) -> Location:
    """New locations always start pending, owned by their creator."""
    store = EntityStore(db, Location)
    fields = _location_fields(location_data.model_dump())
    await _ensure_name_free(store, fields["name"])

    try:
        location = await store.create(
            **fields,
            status=LocationStatus.PENDING,
            created_by_id=actor.user_id,
        )
    except ConstraintViolation:
        raise DuplicateName("Location", fields["name"])

    logger.info("location_created", location_id=location.id, name=location.name, actor_id=actor.user_id)
    return location


async def get_location(db: AsyncSession, actor: Optional[Actor], location_id: int) -> Location:
    return ensure_visible_location(actor, await EntityStore(db, Location).get(location_id))


async def list_locations(
    db: AsyncSession,
    actor: Optional[Actor],
    validated: bool = False,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Location], int]:
    """
    ``validated=True`` restricts to approved venues for every caller (used by
    event forms); otherwise the role-based visibility applies.
    """
    if validated:
        conditions = [Location.status == LocationStatus.APPROVED]
    else:
        conditions = [location_visibility_clause(actor)]
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(
            or_(
                Location.name.ilike(pattern),
                Location.description.ilike(pattern),
                Location.address.ilike(pattern),
            )
        )

    store = EntityStore(db, Location)
    total = await store.count(*conditions)
    locations = await store.find_many(
        *conditions,
        order_by=(Location.name.asc(), Location.id.asc()),
        offset=(page - 1) * limit,
        limit=limit,
    )
    return locations, total


async def update_location(
    db: AsyncSession, actor: Actor, location_id: int, location_data: LocationUpdate
) -> Location:
    store = EntityStore(db, Location)
    location = ensure_visible_location(actor, await store.get(location_id))
    ensure_can_manage(actor, location)

    changes = {
        k: v for k, v in _location_fields(location_data.model_dump(exclude_unset=True)).items()
        if v is not None or k in ("description", "address", "latitude", "longitude")
    }
    if "name" in changes and changes["name"] != location.name:
        await _ensure_name_free(store, changes["name"], exclude_id=location.id)

    for name, value in changes.items():
        setattr(location, name, value)
    try:
        location = await store.save(location)
    except ConstraintViolation:
        raise DuplicateName("Location", changes.get("name", location.name))

    logger.info("location_updated", location_id=location.id, fields=sorted(changes))
    return location


async def delete_location(db: AsyncSession, actor: Actor, location_id: int) -> None:
    ensure_admin(actor)
    store = EntityStore(db, Location)
    location = ensure_visible_location(actor, await store.get(location_id))
    await store.soft_delete(location, actor.user_id)
    logger.info("location_deleted", location_id=location_id, actor_id=actor.user_id)


async def moderate_location(db: AsyncSession, actor: Actor, location_id: int, action: str) -> Location:
    """Apply approve / reject / set_pending unconditionally."""
    ensure_admin(actor)
    target, records_admin = MODERATION_ACTIONS[action]

    store = EntityStore(db, Location)
    location = ensure_visible_location(actor, await store.get(location_id))
    previous = location.status

    location.status = target
    location.validated_by_id = actor.user_id if records_admin else None
    location = await store.save(location)

    record_location_transition(action)
    logger.info(
        "location_transition",
        location_id=location.id,
        action=action,
        from_status=previous.value,
        to_status=target.value,
        actor_id=actor.user_id,
    )
    return location
