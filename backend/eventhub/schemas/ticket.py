"""
Pydantic schemas for tickets and registration results.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from eventhub.models.ticket import TicketStatus
from eventhub.schemas.location import LocationSummary


class TicketResponse(BaseModel):
    id: int
    event_id: int
    user_id: int
    ticket_number: str
    qr_code_data: str
    status: TicketStatus
    purchase_date: datetime
    price_at_purchase: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class TicketEventSummary(BaseModel):
    id: int
    name: str
    start_date: datetime
    end_date: datetime
    images: list[str]
    is_online: bool
    online_url: Optional[str]
    location: Optional[LocationSummary] = None

    model_config = {"from_attributes": True}


class TicketWithEvent(TicketResponse):
    event: TicketEventSummary


class RegistrationResponse(BaseModel):
    message: str
    ticket: TicketResponse


class ReconcileResponse(BaseModel):
    event_id: int
    participant_count: int
    corrected: bool
