"""
Ticket issuance engine with concurrency-safe capacity accounting.

CONCURRENCY STRATEGY: Conditional claim + unique index
======================================================

Problem:
  Two registrations read participant_count = max - 1 and both insert a
  ticket, or the same user double-clicks "register" and gets two tickets.

Solution:
  1. Claim a seat with a single conditional UPDATE, issued as the first
     statement of the transaction:

       UPDATE events SET participant_count = participant_count + 1
       WHERE id = :event_id AND status = 'published' AND end_date >= :now
         AND participant_count < max_participants AND organizer_id != :user
         AND <price branch>

     rows_affected == 0 means the event is not open to this user right now;
     the row is then re-read only to report the precise reason.
  2. INSERT the ticket in the same transaction. The partial unique index on
     (event_id, user_id) over non-cancelled tickets rejects a second active
     ticket; the rollback also returns the claimed seat.
  3. An IntegrityError is either that duplicate (reported as
     DuplicateRegistration) or a ticket_number collision, which is the only
     retried condition.

  Ticket and counter are written in one transaction, so there is no window
  where one exists without the other. reconcile_participant_count() is the
  compensating re-check for rows written outside this path.
"""

import secrets
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.config import get_settings
from eventhub.core.exceptions import (
    CapacityExceeded, DuplicateRegistration, ForbiddenError, InternalError, NotFoundError,
    RegistrationClosed, ValidationError,
)
from eventhub.core.logging import get_logger
from eventhub.core.metrics import ticket_number_retries
from eventhub.core.security import Actor
from eventhub.db.base import utcnow
from eventhub.db.store import EntityStore
from eventhub.models.event import Event, EventStatus
from eventhub.models.ticket import Ticket, TicketStatus
from eventhub.services.access_policy import ensure_visible_event

logger = get_logger(__name__)

TICKET_PREFIX = "TKT"

FREE = "free"
PAID = "paid"


def generate_ticket_number(event_id: int, user_id: int, suffix_bytes: Optional[int] = None) -> str:
    """TKT-<event tail>-<user tail>-<random hex>, e.g. ``TKT-00042-00007-9F3A``."""
    suffix_bytes = suffix_bytes or get_settings().TICKET_SUFFIX_BYTES
    event_part = str(event_id).zfill(5)[-5:].upper()
    user_part = str(user_id).zfill(5)[-5:].upper()
    return f"{TICKET_PREFIX}-{event_part}-{user_part}-{secrets.token_hex(suffix_bytes).upper()}"


async def find_active_ticket(db: AsyncSession, event_id: int, user_id: int) -> Optional[Ticket]:
    return await EntityStore(db, Ticket).find_one(
        Ticket.event_id == event_id,
        Ticket.user_id == user_id,
        Ticket.status != TicketStatus.CANCELLED,
    )


def _price_clause(path: str):
    return Event.price == 0 if path == FREE else Event.price > 0


async def _explain_refusal(db: AsyncSession, actor: Actor, event_id: int, path: str) -> None:
    """The claim matched no row; find out why and raise the matching error."""
    event = await db.get(Event, event_id, populate_existing=True)
    if event is not None and event.deleted:
        event = None
    event = ensure_visible_event(actor, event)

    if event.organizer_id == actor.user_id:
        raise ForbiddenError("Organizers cannot register for their own events")
    if await find_active_ticket(db, event_id, actor.user_id) is not None:
        raise DuplicateRegistration()
    if event.effective_status_at(utcnow()) != EventStatus.PUBLISHED:
        raise RegistrationClosed()
    if path == FREE and not event.is_free:
        raise ValidationError("This event requires payment; use the payment endpoint")
    if path == PAID and event.is_free:
        raise ValidationError("This event is free; use the free registration endpoint")
    if event.participant_count >= event.max_participants:
        raise CapacityExceeded()
    # Nothing explains it: the row changed between the claim and this read
    raise InternalError("Registration could not be completed, please retry")


async def issue_ticket(db: AsyncSession, actor: Actor, event_id: int, path: str = FREE) -> Ticket:
    """
    Issue a ticket for ``actor`` on ``event_id`` and count them in, atomically.
    Ticket number collisions are retried up to TICKET_NUMBER_MAX_ATTEMPTS.
    """
    max_attempts = get_settings().TICKET_NUMBER_MAX_ATTEMPTS
    store = EntityStore(db, Event)

    for attempt in range(1, max_attempts + 1):
        claimed = await store.update_where(
            Event.id == event_id,
            Event.status == EventStatus.PUBLISHED,
            Event.end_date >= utcnow(),
            Event.participant_count < Event.max_participants,
            Event.organizer_id != actor.user_id,
            _price_clause(path),
            values={"participant_count": Event.participant_count + 1},
        )
        if claimed == 0:
            await db.rollback()
            await _explain_refusal(db, actor, event_id, path)

        price = (await db.execute(select(Event.price).where(Event.id == event_id))).scalar_one()
        ticket_number = generate_ticket_number(event_id, actor.user_id)
        ticket = Ticket(
            event_id=event_id,
            user_id=actor.user_id,
            ticket_number=ticket_number,
            qr_code_data=ticket_number,
            status=TicketStatus.VALID,
            purchase_date=utcnow(),
            price_at_purchase=price,
        )
        db.add(ticket)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            if await find_active_ticket(db, event_id, actor.user_id) is not None:
                logger.info("registration_duplicate", event_id=event_id, user_id=actor.user_id)
                raise DuplicateRegistration()
            ticket_number_retries.inc()
            logger.warning(
                "ticket_number_collision",
                event_id=event_id,
                user_id=actor.user_id,
                attempt=attempt,
            )
            continue

        await db.refresh(ticket)
        logger.info(
            "ticket_issued",
            ticket_id=ticket.id,
            ticket_number=ticket.ticket_number,
            event_id=event_id,
            user_id=actor.user_id,
            path=path,
            attempt=attempt,
        )
        return ticket

    logger.error("ticket_number_exhausted", event_id=event_id, user_id=actor.user_id, attempts=max_attempts)
    raise InternalError("Could not allocate a unique ticket number")


async def cancel_active_ticket(db: AsyncSession, actor: Actor, event_id: int) -> Ticket:
    """
    Cancel the caller's active ticket and release the seat in one transaction.
    The ticket row is kept for history; the partial unique index lets the user
    register again later.
    """
    event = ensure_visible_event(actor, await EntityStore(db, Event).get(event_id))
    ticket = await find_active_ticket(db, event.id, actor.user_id)
    if ticket is None:
        raise ValidationError("You are not registered for this event")

    cancelled = await EntityStore(db, Ticket).update_where(
        Ticket.id == ticket.id,
        Ticket.status != TicketStatus.CANCELLED,
        values={"status": TicketStatus.CANCELLED},
    )
    if cancelled == 0:
        # A concurrent unregister got there first
        raise ValidationError("You are not registered for this event")

    await EntityStore(db, Event).update_where(
        Event.id == event.id,
        Event.participant_count > 0,
        values={"participant_count": Event.participant_count - 1},
    )
    await db.refresh(ticket)

    logger.info("ticket_cancelled", ticket_id=ticket.id, event_id=event.id, user_id=actor.user_id)
    return ticket


async def get_user_tickets(db: AsyncSession, user_id: int) -> list[Ticket]:
    """All tickets of a user, newest first."""
    return await EntityStore(db, Ticket).find_many(
        Ticket.user_id == user_id,
        order_by=(Ticket.created_at.desc(), Ticket.id.desc()),
    )


async def count_active_tickets(db: AsyncSession, event_id: int) -> int:
    return await EntityStore(db, Ticket).count(
        Ticket.event_id == event_id,
        Ticket.status != TicketStatus.CANCELLED,
    )


async def reconcile_participant_count(db: AsyncSession, event_id: int) -> tuple[int, bool]:
    """
    Recompute the materialized counter from active tickets. Returns the
    authoritative count and whether the stored value had drifted.
    """
    event = await EntityStore(db, Event).get(event_id)
    if event is None:
        raise NotFoundError("Event")

    active = await count_active_tickets(db, event_id)
    updated = await EntityStore(db, Event).update_where(
        Event.id == event_id,
        Event.participant_count != active,
        values={"participant_count": active},
    )
    if updated:
        logger.error(
            "participant_count_drift",
            event_id=event_id,
            stored=event.participant_count,
            actual=active,
        )
    await db.refresh(event)
    return active, bool(updated)


async def ticket_counts_by_event(db: AsyncSession, event_ids: list[int]) -> dict[int, int]:
    if not event_ids:
        return {}
    rows = await db.execute(
        select(Ticket.event_id, func.count())
        .where(Ticket.event_id.in_(event_ids), Ticket.status != TicketStatus.CANCELLED)
        .group_by(Ticket.event_id)
    )
    return {event_id: count for event_id, count in rows.all()}
