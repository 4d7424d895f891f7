"""
Profile and dashboard queries for the authenticated user.
"""

from typing import Optional

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.exceptions import DuplicateName, NotFoundError
from eventhub.core.logging import get_logger
from eventhub.core.security import Actor, hash_password
from eventhub.db.base import utcnow
from eventhub.db.store import ConstraintViolation, EntityStore
from eventhub.models.event import Event, EventStatus
from eventhub.models.ticket import Ticket, TicketStatus
from eventhub.models.user import User
from eventhub.schemas.event import EventParticipantsCount, OrganizerDashboardStats
from eventhub.schemas.user import UserUpdate
from eventhub.services.access_policy import event_status_clause
from eventhub.services.auth_service import normalize_email

logger = get_logger(__name__)


async def get_me(db: AsyncSession, actor: Actor) -> User:
    user = await EntityStore(db, User).get(actor.user_id)
    if user is None:
        raise NotFoundError("User")
    return user


async def update_me(db: AsyncSession, actor: Actor, user_data: UserUpdate) -> User:
    """Fields left out (or null) keep their current value."""
    store = EntityStore(db, User)
    user = await get_me(db, actor)
    changes = {k: v for k, v in user_data.model_dump(exclude_unset=True).items() if v is not None}

    if "email" in changes:
        email = normalize_email(changes["email"])
        if email != user.email and await store.find_one(User.email == email, User.id != user.id):
            raise DuplicateName("User", email)
        user.email = email
    if "first_name" in changes:
        user.first_name = changes["first_name"].strip()
    if "last_name" in changes:
        user.last_name = changes["last_name"].strip()
    if "password" in changes:
        user.hashed_password = hash_password(changes["password"])

    try:
        user = await store.save(user)
    except ConstraintViolation:
        raise DuplicateName("User", changes.get("email", ""))

    logger.info("profile_updated", user_id=user.id, fields=sorted(changes))
    return user


async def list_participated_events(
    db: AsyncSession,
    actor: Actor,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    is_online: Optional[bool] = None,
    page: int = 1,
    limit: int = 6,
) -> tuple[list[Event], int]:
    """Published events the caller holds an active ticket for, newest first."""
    holds_ticket = Event.id.in_(
        select(Ticket.event_id).where(
            Ticket.user_id == actor.user_id,
            Ticket.status != TicketStatus.CANCELLED,
        )
    )
    conditions = [holds_ticket, Event.status == EventStatus.PUBLISHED]
    if search:
        conditions.append(Event.name.ilike(f"%{search.strip()}%"))
    if category_id is not None:
        conditions.append(Event.category_id == category_id)
    if is_online is not None:
        conditions.append(Event.is_online.is_(is_online))

    store = EntityStore(db, Event)
    total = await store.count(*conditions)
    events = await store.find_many(
        *conditions,
        order_by=(Event.start_date.desc(), Event.id.desc()),
        offset=(page - 1) * limit,
        limit=limit,
    )
    return events, total


async def get_organizer_dashboard_stats(db: AsyncSession, actor: Actor) -> OrganizerDashboardStats:
    store = EntityStore(db, Event)
    mine = Event.organizer_id == actor.user_id
    now = utcnow()

    async def by_status(status: EventStatus) -> int:
        return await store.count(mine, event_status_clause(status, now))

    unique_participants = (
        await db.execute(
            select(func.count(distinct(Ticket.user_id)))
            .join(Event, Event.id == Ticket.event_id)
            .where(mine, Event.deleted.is_(False), Ticket.status != TicketStatus.CANCELLED)
        )
    ).scalar_one()

    return OrganizerDashboardStats(
        total_events_created=await store.count(mine, Event.status != EventStatus.DRAFT),
        published_events=await by_status(EventStatus.PUBLISHED),
        pending_approval_events=await by_status(EventStatus.PENDING_APPROVAL),
        draft_events=await by_status(EventStatus.DRAFT),
        rejected_events=await by_status(EventStatus.REJECTED),
        cancelled_events=await by_status(EventStatus.CANCELLED),
        finished_events=await by_status(EventStatus.FINISHED),
        total_participants=unique_participants,
    )


async def list_events_with_participants(db: AsyncSession, actor: Actor) -> list[EventParticipantsCount]:
    """The organizer's non-draft events with their participant counts, by name."""
    events = await EntityStore(db, Event).find_many(
        Event.organizer_id == actor.user_id,
        Event.status != EventStatus.DRAFT,
        order_by=(Event.name.asc(), Event.id.asc()),
    )
    return [
        EventParticipantsCount(id=e.id, name=e.name, participants_count=e.participant_count)
        for e in events
    ]
