"""
Ticket endpoints for the authenticated user.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.security import Actor, get_current_actor
from eventhub.db.session import get_db
from eventhub.schemas.ticket import TicketWithEvent
from eventhub.services.ticket_service import get_user_tickets

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("/my-tickets", response_model=list[TicketWithEvent])
async def my_tickets(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """All tickets of the current user, newest first, cancelled ones included."""
    return await get_user_tickets(db, actor.user_id)
