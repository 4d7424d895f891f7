"""
Pydantic schemas for event-related request/response validation.

Cross-field rules (date ordering, online/offline venue requirements) are
domain rules checked in ``eventhub.services.event_service`` against the
merged state of an event, so they hold for partial updates as well.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from eventhub.models.event import EventStatus
from eventhub.schemas.category import CategorySummary
from eventhub.schemas.location import LocationSummary
from eventhub.schemas.user import UserSummary


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=5000)
    start_date: datetime
    end_date: datetime
    is_online: bool = False
    online_url: Optional[str] = Field(None, max_length=2048)
    location_id: Optional[int] = None
    category_id: int
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    max_participants: int = Field(..., ge=1, le=1_000_000)
    images: list[str] = Field(default_factory=list, max_length=10)


class EventUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_online: Optional[bool] = None
    online_url: Optional[str] = Field(None, max_length=2048)
    location_id: Optional[int] = None
    category_id: Optional[int] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    max_participants: Optional[int] = Field(None, ge=1, le=1_000_000)
    images: Optional[list[str]] = Field(None, max_length=10)


class RejectRequest(BaseModel):
    rejection_reason: str = Field(..., max_length=2000)


class EventResponse(BaseModel):
    id: int
    name: str
    description: str
    start_date: datetime
    end_date: datetime
    is_online: bool
    online_url: Optional[str]
    location_id: Optional[int]
    category_id: int
    organizer_id: int
    # Published events past their end date read as finished
    status: EventStatus = Field(validation_alias=AliasChoices("effective_status", "status"))
    rejection_reason: Optional[str]
    price: Decimal
    max_participants: int
    participant_count: int
    images: list[str]
    location: Optional[LocationSummary] = None
    category: Optional[CategorySummary] = None
    organizer: Optional[UserSummary] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class EventDetailResponse(EventResponse):
    participants: list[UserSummary] = Field(default_factory=list)


class TransitionResponse(BaseModel):
    message: str
    event: EventResponse


class SweepResponse(BaseModel):
    message: str
    modified_count: int


class EventParticipantsCount(BaseModel):
    id: int
    name: str
    participants_count: int


class OrganizerDashboardStats(BaseModel):
    total_events_created: int
    published_events: int
    pending_approval_events: int
    draft_events: int
    rejected_events: int
    cancelled_events: int
    finished_events: int
    total_participants: int
