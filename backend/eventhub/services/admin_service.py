"""
Admin-only user management and platform statistics.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.exceptions import NotFoundError, ValidationError
from eventhub.core.logging import get_logger
from eventhub.core.security import Actor
from eventhub.db.base import utcnow
from eventhub.db.store import EntityStore
from eventhub.models.category import Category
from eventhub.models.event import Event, EventStatus
from eventhub.models.location import Location, LocationStatus
from eventhub.models.ticket import Ticket
from eventhub.models.user import User, UserRole
from eventhub.schemas.admin import AdminDashboardStats, EventActivityPoint
from eventhub.services.access_policy import ensure_admin, event_status_clause

logger = get_logger(__name__)


async def list_users(
    db: AsyncSession,
    actor: Actor,
    role: Optional[UserRole] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[User], int]:
    ensure_admin(actor)
    conditions = []
    if role is not None:
        conditions.append(User.role == role)
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(
            or_(User.email.ilike(pattern), User.first_name.ilike(pattern), User.last_name.ilike(pattern))
        )

    store = EntityStore(db, User)
    total = await store.count(*conditions)
    users = await store.find_many(
        *conditions,
        order_by=(User.created_at.desc(), User.id.desc()),
        offset=(page - 1) * limit,
        limit=limit,
    )
    return users, total


async def _get_user(db: AsyncSession, user_id: int) -> User:
    user = await EntityStore(db, User).get(user_id)
    if user is None:
        raise NotFoundError("User")
    return user


async def update_user_role(db: AsyncSession, actor: Actor, user_id: int, role: UserRole) -> User:
    """The new role applies from the user's next login."""
    ensure_admin(actor)
    if user_id == actor.user_id and role != UserRole.ADMIN:
        raise ValidationError("Administrators cannot demote themselves")

    user = await _get_user(db, user_id)
    previous = user.role
    user.role = role
    user = await EntityStore(db, User).save(user)
    logger.info("user_role_changed", user_id=user.id, from_role=previous.value, to_role=role.value, actor_id=actor.user_id)
    return user


async def delete_user(db: AsyncSession, actor: Actor, user_id: int) -> None:
    ensure_admin(actor)
    if user_id == actor.user_id:
        raise ValidationError("Administrators cannot delete their own account")

    user = await _get_user(db, user_id)
    await EntityStore(db, User).soft_delete(user, actor.user_id)
    logger.info("user_deleted", user_id=user_id, actor_id=actor.user_id)


async def _count_by(db: AsyncSession, column, *criteria) -> dict[str, int]:
    rows = await db.execute(select(column, func.count()).where(*criteria).group_by(column))
    return {value.value if hasattr(value, "value") else str(value): count for value, count in rows.all()}


async def get_dashboard_stats(db: AsyncSession, actor: Actor) -> AdminDashboardStats:
    ensure_admin(actor)
    now = utcnow()
    events = EntityStore(db, Event)

    users_by_role = {r.value: 0 for r in UserRole}
    users_by_role.update(await _count_by(db, User.role, User.deleted.is_(False)))

    # Effective status: published events past their end read as finished
    events_by_status = {
        s.value: await events.count(event_status_clause(s, now)) for s in EventStatus
    }

    locations_by_status = {s.value: 0 for s in LocationStatus}
    locations_by_status.update(await _count_by(db, Location.status, Location.deleted.is_(False)))

    return AdminDashboardStats(
        total_users=sum(users_by_role.values()),
        users_by_role=users_by_role,
        total_events=await events.count(),
        events_by_status=events_by_status,
        locations_by_status=locations_by_status,
        total_categories=await EntityStore(db, Category).count(),
        total_tickets=await EntityStore(db, Ticket).count(),
    )


async def get_event_activity(
    db: AsyncSession, actor: Actor, year: int, month: Optional[int] = None
) -> list[EventActivityPoint]:
    """
    Non-draft events by start month for ``year``, or by start day when a
    ``month`` is given. Periods without events are omitted.
    """
    ensure_admin(actor)
    if month is None:
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        end = datetime(year + (month == 12), month % 12 + 1, 1, tzinfo=timezone.utc)

    rows = await db.execute(
        select(Event.start_date).where(
            Event.deleted.is_(False),
            Event.status != EventStatus.DRAFT,
            Event.start_date >= start,
            Event.start_date < end,
        )
    )
    buckets = Counter(d.month if month is None else d.day for d in rows.scalars().all())
    return [EventActivityPoint(period=p, events=n) for p, n in sorted(buckets.items())]
