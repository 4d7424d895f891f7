"""
Ticket model: proof of registration with a scannable identity.

Key design decisions:
- At most one non-cancelled ticket per (event, user): partial unique index,
  so a concurrent duplicate insert fails at the database
- `ticket_number` is globally unique and never regenerated; the QR payload
  is the ticket number itself
- `price_at_purchase` snapshots the event price at issuance
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.orm import relationship

from eventhub.db.base import Base, TimestampMixin, UTCDateTime, utcnow


class TicketStatus(str, enum.Enum):
    VALID = "valid"
    SCANNED = "scanned"
    CANCELLED = "cancelled"


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    ticket_number = Column(String(64), nullable=False, unique=True)
    qr_code_data = Column(String(64), nullable=False)
    status = Column(
        Enum(TicketStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TicketStatus.VALID,
    )
    purchase_date = Column(UTCDateTime(), nullable=False, default=utcnow)
    price_at_purchase = Column(Numeric(10, 2), nullable=False)

    event = relationship("Event", lazy="selectin")
    user = relationship("User", lazy="selectin")

    __table_args__ = (
        Index(
            "uq_tickets_event_user_active",
            "event_id",
            "user_id",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, number={self.ticket_number}, status={self.status})>"
