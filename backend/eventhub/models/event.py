"""
Event model with moderation status and capacity tracking.

Key design decisions:
- `participant_count` is a materialized counter of active tickets. It only
  changes inside the same transaction as a ticket write, through a
  conditional UPDATE, so it can never exceed `max_participants`
- `status` holds the stored moderation state; `effective_status` also
  reports a published event whose end date has passed as finished
- Index on `start_date` for date-from filtering and ordering
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, Enum, ForeignKey, Index, Integer, Numeric, String,
)
from sqlalchemy.orm import relationship

from eventhub.db.base import Base, SoftDeleteMixin, TimestampMixin, UTCDateTime, utcnow


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    PUBLISHED = "published"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    FINISHED = "finished"


class Event(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(5000), nullable=False)
    start_date = Column(UTCDateTime(), nullable=False)
    end_date = Column(UTCDateTime(), nullable=False)
    is_online = Column(Boolean, nullable=False, default=False)
    online_url = Column(String(2048), nullable=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        Enum(EventStatus, native_enum=False, length=30, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=EventStatus.DRAFT,
    )
    rejection_reason = Column(String(2000), nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    max_participants = Column(Integer, nullable=False)
    participant_count = Column(Integer, nullable=False, default=0)
    images = Column(JSON, nullable=False, default=list)

    location = relationship("Location", lazy="selectin")
    category = relationship("Category", lazy="selectin")
    organizer = relationship("User", foreign_keys=[organizer_id], lazy="selectin")

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="check_event_dates_ordered"),
        CheckConstraint("price >= 0", name="check_event_price_non_negative"),
        CheckConstraint("max_participants >= 1", name="check_event_capacity_positive"),
        CheckConstraint("participant_count >= 0", name="check_participants_non_negative"),
        CheckConstraint(
            "participant_count <= max_participants", name="check_participants_lte_capacity"
        ),
        Index("ix_events_start_date", "start_date"),
        Index("ix_events_status_end_date", "status", "end_date"),
    )

    @property
    def owner_id(self) -> int:
        return self.organizer_id

    def effective_status_at(self, now: Optional[datetime] = None) -> EventStatus:
        now = now or utcnow()
        if self.status == EventStatus.PUBLISHED and self.end_date < now:
            return EventStatus.FINISHED
        return self.status

    @property
    def effective_status(self) -> EventStatus:
        return self.effective_status_at()

    @property
    def is_free(self) -> bool:
        return self.price == 0

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, name={self.name}, status={self.status}, "
            f"participants={self.participant_count}/{self.max_participants})>"
        )
