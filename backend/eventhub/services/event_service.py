"""
Event service handling CRUD, listing and the finished-events sweep.
"""

import asyncio
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.exceptions import CapacityExceeded, ValidationError
from eventhub.core.logging import get_logger
from eventhub.core.metrics import events_finished
from eventhub.core.security import Actor
from eventhub.db.base import as_utc, utcnow
from eventhub.db.session import get_sessionmaker
from eventhub.db.store import ConstraintViolation, EntityStore
from eventhub.models.category import Category
from eventhub.models.event import Event, EventStatus
from eventhub.models.location import Location
from eventhub.models.ticket import Ticket, TicketStatus
from eventhub.models.user import User
from eventhub.schemas.event import EventCreate, EventUpdate
from eventhub.services.access_policy import (
    can_view_location, ensure_can_manage, ensure_visible_event, event_status_clause,
    event_visibility_clause,
)
from eventhub.services.cache_service import invalidate_event_cache

logger = get_logger(__name__)

ONLINE_URL_PATTERN = re.compile(r"^(https?|ftp)://[^\s/$.?#].[^\s]*$", re.IGNORECASE)

# Fields whose combination is validated as a whole on every write
_SHAPE_FIELDS = ("start_date", "end_date", "is_online", "online_url", "location_id")

_REQUIRED_FIELDS = (
    "name", "description", "start_date", "end_date", "is_online", "category_id",
    "price", "max_participants", "images",
)


@dataclass
class EventFilters:
    category_id: Optional[int] = None
    location_id: Optional[int] = None
    date_from: Optional[datetime] = None
    search: Optional[str] = None
    is_online: Optional[bool] = None
    status: Optional[EventStatus] = None
    mine: bool = False


def validate_event_shape(fields: dict[str, Any]) -> dict[str, Any]:
    """
    Enforce date ordering and the online/in-person venue rules on the merged
    field set. Online events drop their location; in-person events drop their
    URL. Returns the normalized fields.
    """
    start = as_utc(fields["start_date"])
    end = as_utc(fields["end_date"])
    if end < start:
        raise ValidationError("The end date must be on or after the start date")

    normalized = dict(fields, start_date=start, end_date=end)
    if fields.get("is_online"):
        url = (fields.get("online_url") or "").strip()
        if not url:
            raise ValidationError("An online URL is required for online events")
        if not ONLINE_URL_PATTERN.match(url):
            raise ValidationError("The online URL must be a valid http, https or ftp URL")
        normalized.update(online_url=url, location_id=None)
    else:
        if fields.get("location_id") is None:
            raise ValidationError("A location is required for in-person events")
        normalized["online_url"] = None
    return normalized


async def _check_references(db: AsyncSession, actor: Actor, fields: dict[str, Any]) -> None:
    if "category_id" in fields:
        if await EntityStore(db, Category).get(fields["category_id"]) is None:
            raise ValidationError("Unknown category")
    if fields.get("location_id") is not None:
        location = await EntityStore(db, Location).get(fields["location_id"])
        if location is None or not can_view_location(actor, location):
            raise ValidationError("Unknown location")


async def create_event(db: AsyncSession, actor: Actor, event_data: EventCreate) -> Event:
    """Create a new event in draft, owned by the calling organizer/admin."""
    fields = event_data.model_dump()
    fields.update(validate_event_shape({k: fields[k] for k in _SHAPE_FIELDS}))
    await _check_references(db, actor, fields)

    event = await EntityStore(db, Event).create(
        **fields,
        organizer_id=actor.user_id,
        status=EventStatus.DRAFT,
        participant_count=0,
    )
    logger.info("event_created", event_id=event.id, name=event.name, organizer_id=actor.user_id)
    return event


async def get_event(db: AsyncSession, actor: Optional[Actor], event_id: int) -> Event:
    """Get a single event the actor is allowed to see; anything else is 404."""
    return ensure_visible_event(actor, await EntityStore(db, Event).get(event_id))


async def list_participants(db: AsyncSession, event_id: int) -> list[User]:
    query = (
        EntityStore(db, User)
        .select()
        .join(Ticket, Ticket.user_id == User.id)
        .where(Ticket.event_id == event_id, Ticket.status != TicketStatus.CANCELLED)
        .order_by(Ticket.created_at, Ticket.id)
    )
    return list((await db.execute(query)).scalars().all())


async def list_events(
    db: AsyncSession,
    actor: Optional[Actor],
    filters: EventFilters,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Event], int]:
    """
    List events visible to ``actor`` with optional filters and pagination.
    Status filtering and public visibility both use the effective status, so
    published events past their end date are treated as finished without
    having to wait for the sweep.
    """
    now = utcnow()
    conditions = [event_visibility_clause(actor, now)]

    if filters.category_id is not None:
        conditions.append(Event.category_id == filters.category_id)
    if filters.location_id is not None:
        conditions.append(Event.location_id == filters.location_id)
    if filters.date_from is not None:
        conditions.append(Event.start_date >= as_utc(filters.date_from))
    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        conditions.append(or_(Event.name.ilike(pattern), Event.description.ilike(pattern)))
    if filters.is_online is not None:
        conditions.append(Event.is_online.is_(filters.is_online))
    if filters.status is not None:
        conditions.append(event_status_clause(filters.status, now))
    if filters.mine and actor is not None:
        conditions.append(Event.organizer_id == actor.user_id)

    store = EntityStore(db, Event)
    total = await store.count(*conditions)
    events = await store.find_many(
        *conditions,
        order_by=(Event.start_date.asc(), Event.id.asc()),
        offset=(page - 1) * limit,
        limit=limit,
    )
    return events, total


async def update_event(db: AsyncSession, actor: Actor, event_id: int, event_data: EventUpdate) -> Event:
    """
    Apply a partial update. The merged result is validated as a whole before
    any attribute is written, and everything lands in a single flush.
    Status is never writable by the caller; it only moves through the
    workflow. Two implicit moves happen here: an event that has effectively
    finished is persisted as finished, so new dates cannot reopen it, and
    an organizer editing their rejected event sends it back to draft.
    """
    store = EntityStore(db, Event)
    event = ensure_visible_event(actor, await store.get(event_id))
    ensure_can_manage(actor, event)

    changes = event_data.model_dump(exclude_unset=True)
    # Explicit nulls on non-nullable columns mean "leave unchanged"
    for required in _REQUIRED_FIELDS:
        if required in changes and changes[required] is None:
            del changes[required]

    merged = {name: getattr(event, name) for name in _SHAPE_FIELDS}
    merged.update({k: v for k, v in changes.items() if k in _SHAPE_FIELDS})
    changes.update(validate_event_shape(merged))

    effective = event.effective_status_at(utcnow())
    if effective != event.status:
        changes["status"] = effective
    elif event.status == EventStatus.REJECTED and not actor.is_admin:
        changes.update(status=EventStatus.DRAFT, rejection_reason=None)

    new_capacity = changes.get("max_participants")
    if new_capacity is not None and new_capacity < event.participant_count:
        raise CapacityExceeded(
            f"Capacity cannot be lower than the current number of participants "
            f"({event.participant_count})"
        )
    await _check_references(
        db,
        actor,
        {
            k: v for k, v in changes.items()
            if k in ("category_id", "location_id") and v != getattr(event, k)
        },
    )

    for name, value in changes.items():
        setattr(event, name, value)
    try:
        event = await store.save(event)
    except ConstraintViolation:
        # Only the capacity check constraint can fail after validation
        raise CapacityExceeded("Capacity cannot be lower than the current number of participants")

    logger.info("event_updated", event_id=event.id, fields=sorted(changes))
    return event


async def delete_event(db: AsyncSession, actor: Actor, event_id: int) -> None:
    store = EntityStore(db, Event)
    event = ensure_visible_event(actor, await store.get(event_id))
    ensure_can_manage(actor, event)
    await store.soft_delete(event, actor.user_id)
    logger.info("event_deleted", event_id=event_id, actor_id=actor.user_id)


async def mark_past_events_finished(db: AsyncSession) -> int:
    """
    Idempotent bulk update: published events whose end date has passed become
    finished. Safe to run from several instances at once.
    """
    modified = await EntityStore(db, Event).update_where(
        Event.status == EventStatus.PUBLISHED,
        Event.end_date < utcnow(),
        values={"status": EventStatus.FINISHED},
    )
    if modified:
        events_finished.inc(modified)
        logger.info("events_marked_finished", count=modified)
    return modified


async def sweep_finished_events() -> int:
    """One sweep in its own session; cached listings are dropped after the commit."""
    async with get_sessionmaker()() as session:
        modified = await mark_past_events_finished(session)
        await session.commit()
    if modified:
        await invalidate_event_cache()
    return modified


async def run_finish_sweeper(interval_seconds: int) -> None:
    """Background loop started from the application lifespan."""
    while True:
        try:
            await sweep_finished_events()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("finish_sweep_failed", error=str(e))
        await asyncio.sleep(interval_seconds)
