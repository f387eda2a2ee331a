from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius: int = Field(..., gt=0, description="Geofence radius in meters")

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field must not be empty")
        return v.strip()


class LocationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    radius: int | None = Field(default=None, gt=0)
    is_active: bool | None = None


class LocationResponse(BaseModel):
    id: int
    name: str
    description: str | None
    latitude: float
    longitude: float
    radius: int
    is_active: bool
    created_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class NearbyLocationResponse(BaseModel):
    id: int
    name: str
    latitude: float
    longitude: float
    radius: float
    distance: float
