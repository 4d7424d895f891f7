"""
Event moderation state machine.

    draft ──submit──▶ pending_approval ──approve──▶ published ──(end date passes)──▶ finished
      ▲                 │        │
      │                 │        └─reject(reason)──▶ rejected ──revert──▶ draft
      └─cancel_approval─┘
    {draft, pending_approval, published} ──cancel──▶ cancelled ──revert_to_draft──▶ draft

Transitions are applied with a conditional UPDATE on the status the check
was made against, so two moderators racing on the same event cannot both
succeed: the loser re-reads the row and gets InvalidStateTransition.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.exceptions import ForbiddenError, InvalidStateTransition, ValidationError
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_transition
from eventhub.core.security import Actor
from eventhub.db.base import utcnow
from eventhub.db.store import EntityStore
from eventhub.models.event import Event, EventStatus
from eventhub.services.access_policy import ensure_can_manage, ensure_visible_event
from eventhub.services.notification_service import RejectionNotice

logger = get_logger(__name__)

S = EventStatus


@dataclass(frozen=True)
class Transition:
    action: str
    sources: frozenset
    target: EventStatus
    admin_only: bool = False
    clears_reason: bool = False

    @property
    def required(self) -> str:
        return " or ".join(sorted(s.value for s in self.sources))


TRANSITIONS: dict[str, Transition] = {
    t.action: t
    for t in (
        Transition("submit", frozenset({S.DRAFT}), S.PENDING_APPROVAL),
        Transition("approve", frozenset({S.PENDING_APPROVAL}), S.PUBLISHED, admin_only=True, clears_reason=True),
        Transition("reject", frozenset({S.PENDING_APPROVAL}), S.REJECTED, admin_only=True),
        Transition("cancel_approval", frozenset({S.PENDING_APPROVAL}), S.DRAFT),
        Transition("cancel", frozenset({S.DRAFT, S.PENDING_APPROVAL, S.PUBLISHED}), S.CANCELLED),
        Transition("revert_to_draft", frozenset({S.CANCELLED, S.REJECTED}), S.DRAFT, clears_reason=True),
        Transition("revert_from_rejection", frozenset({S.REJECTED}), S.DRAFT, clears_reason=True),
    )
}

SUCCESS_MESSAGES = {
    "submit": "Event submitted for approval",
    "approve": "Event approved",
    "reject": "Event rejected",
    "cancel_approval": "Approval request withdrawn; event is back to draft",
    "cancel": "Event cancelled",
    "revert_to_draft": "Event reverted to draft",
    "revert_from_rejection": "Rejected event reverted to draft",
}


def check_transition(action: str, actor: Actor, event: Event) -> Transition:
    """Validate actor and source state for ``action``; pure, no I/O."""
    transition = TRANSITIONS[action]
    if transition.admin_only and not actor.is_admin:
        raise ForbiddenError("Administrator role required")
    ensure_can_manage(actor, event)

    current = event.effective_status_at(utcnow())
    if current not in transition.sources:
        raise InvalidStateTransition(action, current.value, transition.required)
    return transition


async def apply_transition(
    db: AsyncSession,
    actor: Actor,
    event_id: int,
    action: str,
    reason: Optional[str] = None,
) -> Event:
    if action == "reject":
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")

    store = EntityStore(db, Event)
    event = ensure_visible_event(actor, await store.get(event_id))
    transition = check_transition(action, actor, event)
    source = event.status

    values: dict = {"status": transition.target}
    if action == "reject":
        values["rejection_reason"] = reason
    elif transition.clears_reason:
        values["rejection_reason"] = None

    updated = await store.update_where(Event.id == event.id, Event.status == source, values=values)
    await db.refresh(event)
    if updated == 0:
        # Someone else moved the event first
        raise InvalidStateTransition(action, event.effective_status.value, transition.required)

    record_transition(action)
    logger.info(
        "event_transition",
        event_id=event.id,
        action=action,
        from_status=source.value,
        to_status=transition.target.value,
        actor_id=actor.user_id,
    )
    return event


def rejection_notice(event: Event) -> RejectionNotice:
    """Payload for the organizer's rejection email, captured before the session closes."""
    organizer = event.organizer
    return RejectionNotice(
        email=organizer.email,
        full_name=organizer.full_name,
        event_name=event.name,
        reason=event.rejection_reason or "",
    )
