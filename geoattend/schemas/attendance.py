from datetime import date, datetime
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from geoattend.services.status_policy import AttendanceStatus

T = TypeVar("T")


def _strip_or_none(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


class CheckInRequest(BaseModel):
    location_id: int = Field(..., gt=0)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    photo_url: str | None = Field(default=None, max_length=500)
    notes: str | None = None

    @field_validator("photo_url", "notes")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return _strip_or_none(v)


class CheckOutRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    notes: str | None = None

    @field_validator("notes")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return _strip_or_none(v)


class ValidateLocationRequest(BaseModel):
    location_id: int = Field(..., gt=0)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ValidateLocationResponse(BaseModel):
    is_valid: bool
    distance: float


class AttendanceResponse(BaseModel):
    id: int | None
    user_id: UUID
    user_name: str | None = None
    location_id: int
    location_name: str | None = None
    work_date: date
    check_in_time: datetime
    check_out_time: datetime | None
    check_in_latitude: float
    check_in_longitude: float
    check_out_latitude: float | None
    check_out_longitude: float | None
    distance_from_location: float
    status: AttendanceStatus
    notes: str | None
    photo_url: str | None
    work_duration: str | None = None


class AttendanceStatusResponse(BaseModel):
    has_checked_in: bool
    has_checked_out: bool
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    location: str | None = None
    status: AttendanceStatus | None = None
    message: str | None = None


class Page(BaseModel, Generic[T]):
    data: list[T]
    total: int
    page: int
    limit: int
    total_page: int
