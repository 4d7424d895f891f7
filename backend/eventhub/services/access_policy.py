"""
Access and visibility policy.

Single place that answers "may this actor see / manage this entity" for
events and locations, both as a predicate over a loaded entity and as a
SQL clause for list queries. Lookups the policy denies are reported as
not found, never as forbidden, so existence is not confirmed.
"""

from datetime import datetime
from typing import Optional, Union

from sqlalchemy import ColumnElement, and_, or_, true

from eventhub.core.exceptions import ForbiddenError, NotFoundError
from eventhub.core.security import Actor
from eventhub.db.base import utcnow
from eventhub.models.event import Event, EventStatus
from eventhub.models.location import Location, LocationStatus

Owned = Union[Event, Location]


def is_owner(actor: Optional[Actor], entity: Owned) -> bool:
    return actor is not None and entity.owner_id == actor.user_id


def is_public_event(event: Event, now: Optional[datetime] = None) -> bool:
    return event.effective_status_at(now) == EventStatus.PUBLISHED


def can_view_event(actor: Optional[Actor], event: Event, now: Optional[datetime] = None) -> bool:
    if actor is not None and actor.is_admin:
        return True
    return is_owner(actor, event) or is_public_event(event, now)


def can_view_location(actor: Optional[Actor], location: Location) -> bool:
    if actor is not None and actor.is_admin:
        return True
    return is_owner(actor, location) or location.status == LocationStatus.APPROVED


def public_event_clause(now: datetime) -> ColumnElement:
    return and_(Event.status == EventStatus.PUBLISHED, Event.end_date >= now)


def event_status_clause(status: EventStatus, now: datetime) -> ColumnElement:
    """Filter on effective status rather than the stored column."""
    if status == EventStatus.PUBLISHED:
        return public_event_clause(now)
    if status == EventStatus.FINISHED:
        return or_(
            Event.status == EventStatus.FINISHED,
            and_(Event.status == EventStatus.PUBLISHED, Event.end_date < now),
        )
    return Event.status == status


def event_visibility_clause(actor: Optional[Actor], now: Optional[datetime] = None) -> ColumnElement:
    now = now or utcnow()
    if actor is not None and actor.is_admin:
        return true()
    if actor is not None and actor.is_organizer:
        return or_(Event.organizer_id == actor.user_id, public_event_clause(now))
    return public_event_clause(now)


def location_visibility_clause(actor: Optional[Actor]) -> ColumnElement:
    if actor is not None and actor.is_admin:
        return true()
    if actor is not None and actor.is_organizer:
        return or_(Location.created_by_id == actor.user_id, Location.status == LocationStatus.APPROVED)
    return Location.status == LocationStatus.APPROVED


def ensure_visible_event(actor: Optional[Actor], event: Optional[Event]) -> Event:
    if event is None or not can_view_event(actor, event):
        raise NotFoundError("Event")
    return event


def ensure_visible_location(actor: Optional[Actor], location: Optional[Location]) -> Location:
    if location is None or not can_view_location(actor, location):
        raise NotFoundError("Location")
    return location


def ensure_can_manage(actor: Actor, entity: Owned) -> None:
    """Owner or admin may mutate an entity."""
    if not (actor.is_admin or is_owner(actor, entity)):
        raise ForbiddenError("Action not allowed")


def ensure_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise ForbiddenError("Administrator role required")
