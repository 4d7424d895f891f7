"""
Venues. A location is moderated by admins before it is publicly listed.

Key design decisions:
- Name is unique among non-deleted locations (partial unique index)
- `validated_by_id` records the admin behind the last approve/reject
"""

import enum

from sqlalchemy import JSON, Column, Enum, Float, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from eventhub.db.base import Base, SoftDeleteMixin, TimestampMixin


class LocationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Location(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    address = Column(String(500), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    status = Column(
        Enum(LocationStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=LocationStatus.PENDING,
    )
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    validated_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_by = relationship("User", foreign_keys=[created_by_id], lazy="selectin")
    validated_by = relationship("User", foreign_keys=[validated_by_id], lazy="selectin")

    __table_args__ = (
        Index(
            "uq_locations_name_live",
            "name",
            unique=True,
            postgresql_where=text("deleted = false"),
            sqlite_where=text("deleted = 0"),
        ),
        Index("ix_locations_status", "status"),
    )

    @property
    def owner_id(self) -> int:
        return self.created_by_id

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, name={self.name}, status={self.status})>"
