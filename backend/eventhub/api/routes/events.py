"""
Event endpoints: CRUD, moderation transitions and registration.

Anonymous list pages are cached in Redis; every write to events or
registrations commits and then invalidates them.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.config import get_settings
from eventhub.core.logging import get_logger
from eventhub.core.security import Actor, get_optional_actor, require_roles
from eventhub.db.session import get_db
from eventhub.models.event import EventStatus
from eventhub.models.user import UserRole
from eventhub.schemas.common import MessageResponse, Page
from eventhub.schemas.event import (
    EventCreate, EventDetailResponse, EventResponse, EventUpdate, RejectRequest, SweepResponse,
    TransitionResponse,
)
from eventhub.schemas.ticket import ReconcileResponse, RegistrationResponse, TicketResponse
from eventhub.schemas.user import UserSummary
from eventhub.services import event_service, registration_service, ticket_service
from eventhub.services.cache_service import get_cached_events, invalidate_event_cache, set_cached_events
from eventhub.services.event_workflow import SUCCESS_MESSAGES, apply_transition, rejection_notice
from eventhub.services.notification_service import (
    Notifier, get_notifier, send_event_rejected, send_ticket_confirmation,
)

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/events", tags=["Events"])

ADMIN = require_roles(UserRole.ADMIN)
MANAGERS = require_roles(UserRole.ORGANIZER, UserRole.ADMIN)
PARTICIPANT = require_roles(UserRole.PARTICIPANT)


async def _commit_and_invalidate(db: AsyncSession) -> None:
    """Commit first, so a concurrent anonymous list cannot re-cache the old rows."""
    await db.commit()
    await invalidate_event_cache()


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    actor: Actor = Depends(MANAGERS),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event in draft. Organizers and admins only."""
    event = await event_service.create_event(db, actor, event_data)
    await _commit_and_invalidate(db)
    return event


@router.get("/", response_model=Page[EventResponse])
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    category_id: Optional[int] = Query(None),
    location_id: Optional[int] = Query(None),
    date_from: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    is_online: Optional[bool] = Query(None),
    event_status: Optional[EventStatus] = Query(None, alias="status"),
    mine: bool = Query(False),
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
):
    """
    List events visible to the caller. Anonymous pages are cached in Redis
    for REDIS_CACHE_TTL seconds.
    """
    filters = event_service.EventFilters(
        category_id=category_id,
        location_id=location_id,
        date_from=date_from,
        search=search,
        is_online=is_online,
        status=event_status,
        mine=mine,
    )
    cache_key = None
    if actor is None:
        cache_key = {
            "page": page,
            "limit": limit,
            "category_id": category_id,
            "location_id": location_id,
            "date_from": date_from.isoformat() if date_from else None,
            "search": search,
            "is_online": is_online,
            "status": event_status.value if event_status else None,
        }
        cached = await get_cached_events(cache_key)
        if cached:
            logger.info("events_list_cache_hit", page=page)
            cached["cached"] = True
            return Page[EventResponse](**cached)

    events, total = await event_service.list_events(db, actor, filters, page, limit)
    result = Page[EventResponse].build(
        [EventResponse.model_validate(e) for e in events], total, page, limit
    )
    if cache_key is not None:
        await set_cached_events(cache_key, result.model_dump(mode="json"))
    return result


@router.patch("/mark-past-as-finished", response_model=SweepResponse)
async def mark_past_as_finished_endpoint(
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    """Run the finished-events sweep now."""
    modified = await event_service.mark_past_events_finished(db)
    if modified:
        await _commit_and_invalidate(db)
    return SweepResponse(message=f"{modified} event(s) marked as finished", modified_count=modified)


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event_endpoint(
    event_id: int,
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
):
    """Event detail with its participants. Events the caller may not see are 404."""
    event = await event_service.get_event(db, actor, event_id)
    detail = EventDetailResponse.model_validate(event)
    participants = await event_service.list_participants(db, event.id)
    detail.participants = [UserSummary.model_validate(u) for u in participants]
    return detail


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    actor: Actor = Depends(MANAGERS),
    db: AsyncSession = Depends(get_db),
):
    event = await event_service.update_event(db, actor, event_id, event_data)
    await _commit_and_invalidate(db)
    return event


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event_endpoint(
    event_id: int,
    actor: Actor = Depends(MANAGERS),
    db: AsyncSession = Depends(get_db),
):
    await event_service.delete_event(db, actor, event_id)
    await _commit_and_invalidate(db)
    return MessageResponse(message="Event deleted")


# --- Registration ---

@router.post("/{event_id}/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register_endpoint(
    event_id: int,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(PARTICIPANT),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Register for a free event; the ticket is emailed after the response."""
    ticket, confirmation = await registration_service.register_free(db, actor, event_id)
    background_tasks.add_task(send_ticket_confirmation, notifier, confirmation)
    await _commit_and_invalidate(db)
    return RegistrationResponse(
        message="Registration confirmed", ticket=TicketResponse.model_validate(ticket)
    )


@router.post(
    "/{event_id}/simulate-payment",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def simulate_payment_endpoint(
    event_id: int,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(PARTICIPANT),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Register for a priced event. Payment is simulated; no gateway is called."""
    ticket, confirmation = await registration_service.register_paid(db, actor, event_id)
    background_tasks.add_task(send_ticket_confirmation, notifier, confirmation)
    await _commit_and_invalidate(db)
    return RegistrationResponse(
        message="Payment simulated, registration confirmed",
        ticket=TicketResponse.model_validate(ticket),
    )


@router.delete("/{event_id}/register", response_model=RegistrationResponse)
async def unregister_endpoint(
    event_id: int,
    actor: Actor = Depends(PARTICIPANT),
    db: AsyncSession = Depends(get_db),
):
    ticket = await registration_service.unregister(db, actor, event_id)
    await _commit_and_invalidate(db)
    return RegistrationResponse(
        message="Unregistered; your ticket has been cancelled",
        ticket=TicketResponse.model_validate(ticket),
    )


@router.post("/{event_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_endpoint(
    event_id: int,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    """Recompute the participant counter from active tickets."""
    count, corrected = await ticket_service.reconcile_participant_count(db, event_id)
    if corrected:
        await _commit_and_invalidate(db)
    return ReconcileResponse(event_id=event_id, participant_count=count, corrected=corrected)


# --- Moderation transitions ---

async def _transition(
    db: AsyncSession, actor: Actor, event_id: int, action: str, reason: Optional[str] = None
) -> TransitionResponse:
    event = await apply_transition(db, actor, event_id, action, reason)
    await _commit_and_invalidate(db)
    return TransitionResponse(message=SUCCESS_MESSAGES[action], event=EventResponse.model_validate(event))


@router.patch("/{event_id}/submit-for-approval", response_model=TransitionResponse)
async def submit_for_approval_endpoint(
    event_id: int,
    actor: Actor = Depends(MANAGERS),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, actor, event_id, "submit")


@router.patch("/{event_id}/approve", response_model=TransitionResponse)
async def approve_endpoint(
    event_id: int,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, actor, event_id, "approve")


@router.patch("/{event_id}/reject", response_model=TransitionResponse)
async def reject_endpoint(
    event_id: int,
    body: RejectRequest,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Reject with a reason; the organizer is notified after the response."""
    event = await apply_transition(db, actor, event_id, "reject", body.rejection_reason)
    background_tasks.add_task(send_event_rejected, notifier, rejection_notice(event))
    await _commit_and_invalidate(db)
    return TransitionResponse(message=SUCCESS_MESSAGES["reject"], event=EventResponse.model_validate(event))


@router.patch("/{event_id}/cancel", response_model=TransitionResponse)
async def cancel_endpoint(
    event_id: int,
    actor: Actor = Depends(MANAGERS),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, actor, event_id, "cancel")


@router.patch("/{event_id}/cancel-approval", response_model=TransitionResponse)
async def cancel_approval_endpoint(
    event_id: int,
    actor: Actor = Depends(MANAGERS),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, actor, event_id, "cancel_approval")


@router.patch("/{event_id}/revert-to-draft", response_model=TransitionResponse)
async def revert_to_draft_endpoint(
    event_id: int,
    actor: Actor = Depends(MANAGERS),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, actor, event_id, "revert_to_draft")


@router.patch("/{event_id}/revert-from-rejection", response_model=TransitionResponse)
async def revert_from_rejection_endpoint(
    event_id: int,
    actor: Actor = Depends(MANAGERS),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, actor, event_id, "revert_from_rejection")


@router.patch("/{event_id}/revert-rejected-to-draft", response_model=TransitionResponse)
async def revert_rejected_to_draft_endpoint(
    event_id: int,
    actor: Actor = Depends(ADMIN),
    db: AsyncSession = Depends(get_db),
):
    """Admin counterpart of revert-from-rejection."""
    return await _transition(db, actor, event_id, "revert_from_rejection")
