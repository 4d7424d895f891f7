"""
Declarative base, shared column mixins and the UTC datetime type.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, false, func
from sqlalchemy.orm import DeclarativeBase, declared_attr
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored in UTC.

    SQLite drops tzinfo on the way in and returns naive values; this keeps
    every datetime the application sees aware and in UTC on both backends.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at = Column(UTCDateTime(), nullable=False, server_default=func.now())
    updated_at = Column(
        UTCDateTime(), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class SoftDeleteMixin:
    """
    Tombstone columns. Rows carrying ``deleted=True`` are excluded from every
    default query issued through ``eventhub.db.store.EntityStore`` and from the
    partial unique indexes declared on the models.
    """

    deleted = Column(Boolean, nullable=False, default=False, server_default=false(), index=True)
    deleted_at = Column(UTCDateTime(), nullable=True)

    @declared_attr
    def deleted_by_id(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=True)
