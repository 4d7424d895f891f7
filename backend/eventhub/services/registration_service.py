"""
Registration coordinator: free and simulated-paid join paths and unregister.

The ticket engine does the writes; this layer picks the price branch, keeps
the registration metrics and captures the confirmation payload while the
session is still open, so the email can be sent after the response.
"""

import time
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.exceptions import (
    AppError, CapacityExceeded, DuplicateRegistration, RegistrationClosed,
)
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_registration, registration_latency
from eventhub.core.security import Actor
from eventhub.models.event import Event
from eventhub.models.ticket import Ticket
from eventhub.models.user import User
from eventhub.services import ticket_service
from eventhub.services.notification_service import TicketConfirmation

logger = get_logger(__name__)

_RESULTS = {
    DuplicateRegistration: "duplicate",
    CapacityExceeded: "full",
    RegistrationClosed: "closed",
}


def build_confirmation(ticket: Ticket, event: Event, user: User) -> TicketConfirmation:
    location = event.location
    return TicketConfirmation(
        email=user.email,
        full_name=user.full_name,
        ticket_number=ticket.ticket_number,
        event_name=event.name,
        start_date=event.start_date,
        end_date=event.end_date,
        is_online=event.is_online,
        online_url=event.online_url,
        location_name=location.name if location is not None else None,
        location_address=location.address if location is not None else None,
        price=ticket.price_at_purchase,
    )


async def _register(
    db: AsyncSession, actor: Actor, event_id: int, path: str
) -> tuple[Ticket, TicketConfirmation]:
    start = time.perf_counter()
    try:
        ticket = await ticket_service.issue_ticket(db, actor, event_id, path)
    except AppError as e:
        record_registration(path, _RESULTS.get(type(e), "rejected"))
        raise
    except Exception:
        record_registration(path, "error")
        raise
    finally:
        registration_latency.observe(time.perf_counter() - start)

    record_registration(path, "success")
    event = await db.get(Event, event_id, populate_existing=True)
    user = await db.get(User, actor.user_id)
    return ticket, build_confirmation(ticket, event, user)


async def register_free(db: AsyncSession, actor: Actor, event_id: int) -> tuple[Ticket, TicketConfirmation]:
    """Join a free event."""
    return await _register(db, actor, event_id, ticket_service.FREE)


async def register_paid(db: AsyncSession, actor: Actor, event_id: int) -> tuple[Ticket, TicketConfirmation]:
    """
    Join a priced event after a simulated payment. No gateway is involved;
    the ticket snapshots the price at this moment.
    """
    ticket, confirmation = await _register(db, actor, event_id, ticket_service.PAID)
    logger.info(
        "payment_simulated",
        event_id=event_id,
        user_id=actor.user_id,
        amount=str(ticket.price_at_purchase),
    )
    return ticket, confirmation


async def unregister(db: AsyncSession, actor: Actor, event_id: int) -> Ticket:
    """Cancel the caller's ticket for ``event_id`` and free the seat."""
    ticket = await ticket_service.cancel_active_ticket(db, actor, event_id)
    record_registration("unregister", "success")
    return ticket


async def is_registered(db: AsyncSession, actor: Optional[Actor], event_id: int) -> bool:
    if actor is None:
        return False
    return await ticket_service.find_active_ticket(db, event_id, actor.user_id) is not None
