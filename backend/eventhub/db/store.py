"""
Typed entity store over a single mapped model.

Services never build raw queries against soft-deletable tables themselves:
every read and conditional update issued here carries the tombstone filter
unless the caller explicitly asks for deleted rows.
"""

from typing import Any, Generic, Optional, Sequence, TypeVar

from sqlalchemy import ColumnElement, Select, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.db.base import Base, SoftDeleteMixin, utcnow

ModelT = TypeVar("ModelT", bound=Base)


class ConstraintViolation(Exception):
    """A unique index or check constraint rejected an insert or update."""

    def __init__(self, model: type, original: IntegrityError):
        super().__init__(f"Constraint violated for {model.__name__}: {original.orig}")
        self.model = model
        self.original = original


class EntityStore(Generic[ModelT]):
    def __init__(self, db: AsyncSession, model: type[ModelT]):
        self.db = db
        self.model = model
        self.soft_deletable = issubclass(model, SoftDeleteMixin)

    def _live(self, criteria: Sequence[ColumnElement], include_deleted: bool) -> list:
        conditions = list(criteria)
        if self.soft_deletable and not include_deleted:
            conditions.append(self.model.deleted.is_(False))
        return conditions

    def select(self, *criteria: ColumnElement, include_deleted: bool = False) -> Select:
        """Base SELECT with the tombstone filter applied; callers may extend it."""
        return select(self.model).where(*self._live(criteria, include_deleted))

    async def get(self, entity_id: int, include_deleted: bool = False) -> Optional[ModelT]:
        return await self.find_one(self.model.id == entity_id, include_deleted=include_deleted)

    async def find_one(self, *criteria: ColumnElement, include_deleted: bool = False) -> Optional[ModelT]:
        result = await self.db.execute(self.select(*criteria, include_deleted=include_deleted).limit(1))
        return result.scalar_one_or_none()

    async def find_many(
        self,
        *criteria: ColumnElement,
        order_by: Sequence[Any] = (),
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        include_deleted: bool = False,
    ) -> list[ModelT]:
        query = self.select(*criteria, include_deleted=include_deleted)
        if order_by:
            query = query.order_by(*order_by)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(self, *criteria: ColumnElement, include_deleted: bool = False) -> int:
        query = (
            select(func.count())
            .select_from(self.model)
            .where(*self._live(criteria, include_deleted))
        )
        return (await self.db.execute(query)).scalar_one()

    async def create(self, **values: Any) -> ModelT:
        entity = self.model(**values)
        self.db.add(entity)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConstraintViolation(self.model, exc) from exc
        await self.db.refresh(entity)
        return entity

    async def save(self, entity: ModelT) -> ModelT:
        """Flush pending attribute changes on an already loaded entity."""
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConstraintViolation(self.model, exc) from exc
        await self.db.refresh(entity)
        return entity

    async def update_where(self, *criteria: ColumnElement, values: dict[str, Any]) -> int:
        """
        Conditional (or bulk) UPDATE. Returns the number of rows matched, so
        callers can express "apply only if the row is still in state X".
        """
        statement = (
            update(self.model)
            .where(*self._live(criteria, include_deleted=False))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(statement)
        return result.rowcount

    async def soft_delete(self, entity: ModelT, actor_id: Optional[int]) -> None:
        if not self.soft_deletable:
            raise TypeError(f"{self.model.__name__} does not support soft delete")
        entity.deleted = True
        entity.deleted_at = utcnow()
        entity.deleted_by_id = actor_id
        await self.db.flush()
