"""
Event categories: simple reference data.
"""

from sqlalchemy import Column, Index, Integer, String, text

from eventhub.db.base import Base, SoftDeleteMixin, TimestampMixin


class Category(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    description = Column(String(1000), nullable=True)

    __table_args__ = (
        Index(
            "uq_categories_name_live",
            "name",
            unique=True,
            postgresql_where=text("deleted = false"),
            sqlite_where=text("deleted = 0"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name})>"
