"""
Read-side views of locations and work schedules consumed by the attendance
engine. The engine only depends on the two protocols below; the SQL
implementations are wired per request in ``geoattend.api.deps``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, time
from typing import Protocol, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from geoattend.db.models import AttendanceLocation, UserSchedule, WorkSchedule
from geoattend.services.geo import GeoPoint


@dataclass(frozen=True)
class Geofence:
    id: int
    name: str
    center: GeoPoint
    radius_meters: float
    active: bool = True


@dataclass(frozen=True)
class WorkWindow:
    id: int
    name: str
    check_in_start: time
    check_in_end: time
    check_out_start: time
    work_days: frozenset[int]

    def applies_on(self, day: date) -> bool:
        return day.isoweekday() in self.work_days


class LocationDirectory(Protocol):
    async def get_geofence(self, location_id: int) -> Geofence | None: ...

    async def list_active(self) -> Sequence[Geofence]: ...


class ScheduleDirectory(Protocol):
    async def get_active_assignment(self, user_id: uuid.UUID, day: date) -> WorkWindow | None: ...


def geofence_from_row(row: AttendanceLocation) -> Geofence:
    return Geofence(
        id=row.id,
        name=row.name,
        center=GeoPoint(float(row.latitude), float(row.longitude)),
        radius_meters=float(row.radius),
        active=bool(row.is_active),
    )


def window_from_row(row: WorkSchedule) -> WorkWindow:
    return WorkWindow(
        id=row.id,
        name=row.name,
        check_in_start=row.check_in_start,
        check_in_end=row.check_in_end,
        check_out_start=row.check_out_start,
        work_days=frozenset(int(d) for d in row.work_days or ()),
    )


class SqlLocationDirectory:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_geofence(self, location_id: int) -> Geofence | None:
        row = await self._db.get(AttendanceLocation, location_id)
        return geofence_from_row(row) if row is not None else None

    async def list_active(self) -> Sequence[Geofence]:
        result = await self._db.execute(
            select(AttendanceLocation)
            .where(AttendanceLocation.is_active.is_(True))
            .order_by(AttendanceLocation.id)
        )
        return [geofence_from_row(r) for r in result.scalars().all()]


class SqlScheduleDirectory:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_active_assignment(self, user_id: uuid.UUID, day: date) -> WorkWindow | None:
        # Overlapping assignments are allowed; the most recently started one wins.
        result = await self._db.execute(
            select(WorkSchedule)
            .join(UserSchedule, UserSchedule.schedule_id == WorkSchedule.id)
            .where(
                UserSchedule.user_id == user_id,
                UserSchedule.effective_from <= day,
                or_(UserSchedule.effective_to.is_(None), UserSchedule.effective_to > day),
            )
            .order_by(UserSchedule.effective_from.desc(), UserSchedule.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return window_from_row(row) if row is not None else None
