"""
Pydantic schemas for locations (venues).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from eventhub.models.location import LocationStatus
from eventhub.schemas.user import UserSummary


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    address: Optional[str] = Field(None, max_length=500)
    coordinates: Optional[Coordinates] = None
    images: list[str] = Field(default_factory=list, max_length=10)


class LocationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    address: Optional[str] = Field(None, max_length=500)
    coordinates: Optional[Coordinates] = None
    images: Optional[list[str]] = Field(None, max_length=10)


class LocationResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    address: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    images: list[str]
    status: LocationStatus
    created_by_id: int
    validated_by_id: Optional[int]
    created_by: Optional[UserSummary] = None
    validated_by: Optional[UserSummary] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LocationSummary(BaseModel):
    id: int
    name: str
    address: Optional[str] = None

    model_config = {"from_attributes": True}
