"""
Shared response envelopes.
"""

import math
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    cached: bool = False

    @classmethod
    def build(cls, items: list, total: int, page: int, limit: int) -> "Page[T]":
        return cls(
            items=items,
            current_page=page,
            total_pages=math.ceil(total / limit) if limit else 0,
            total_count=total,
            limit=limit,
        )


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    message: str
    error: Optional[Any] = None
