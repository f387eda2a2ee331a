from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from geoattend.schemas.location import LocationResponse


def _check_work_days(v: list[int]) -> list[int]:
    if not v:
        raise ValueError("work_days must not be empty")
    if any(d < 1 or d > 7 for d in v):
        raise ValueError("work_days must contain ISO weekdays 1..7")
    return sorted(set(v))


class ScheduleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    check_in_start: time
    check_in_end: time
    check_out_start: time
    work_days: list[int] = Field(..., description="ISO weekdays, 1 = Monday")

    @field_validator("work_days")
    @classmethod
    def valid_days(cls, v: list[int]) -> list[int]:
        return _check_work_days(v)

    @model_validator(mode="after")
    def window_in_order(self) -> "ScheduleCreate":
        if not (self.check_in_start <= self.check_in_end <= self.check_out_start):
            raise ValueError("Expected check_in_start <= check_in_end <= check_out_start")
        return self


class ScheduleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    check_in_start: time | None = None
    check_in_end: time | None = None
    check_out_start: time | None = None
    work_days: list[int] | None = None

    @field_validator("work_days")
    @classmethod
    def valid_days(cls, v: list[int] | None) -> list[int] | None:
        return _check_work_days(v) if v is not None else None


class ScheduleResponse(BaseModel):
    id: int
    name: str
    check_in_start: time
    check_in_end: time
    check_out_start: time
    work_days: list[int]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class AssignScheduleRequest(BaseModel):
    user_id: UUID
    schedule_id: int = Field(..., gt=0)
    location_id: int = Field(..., gt=0)
    effective_from: date
    effective_to: date | None = Field(default=None, description="Exclusive end date")

    @model_validator(mode="after")
    def range_not_empty(self) -> "AssignScheduleRequest":
        if self.effective_to is not None and self.effective_to <= self.effective_from:
            raise ValueError("effective_to must be after effective_from")
        return self


class UserScheduleResponse(BaseModel):
    id: int
    user_id: UUID
    schedule_id: int
    location_id: int
    effective_from: date
    effective_to: date | None
    created_at: datetime | None = None
    schedule: ScheduleResponse | None = None
    location: LocationResponse | None = None

    model_config = {"from_attributes": True}
