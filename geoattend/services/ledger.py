"""
Attendance ledger: one record per (user, work date).

``AttendanceLedger`` is the storage interface the engine is constructed
with. ``SqlAttendanceLedger`` persists through an ``AsyncSession`` and relies
on the ``uq_attendance_user_day`` unique constraint to reject concurrent
duplicate check-ins.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from geoattend.db.models import Attendance, AttendanceLocation, User
from geoattend.services.geo import GeoPoint
from geoattend.services.status_policy import AttendanceStatus

logger = logging.getLogger(__name__)

_USER_DAY_CONSTRAINT = "uq_attendance_user_day"


class DuplicateAttendanceError(Exception):
    """Insert hit the (user_id, work_date) uniqueness constraint."""


@dataclass(frozen=True)
class AttendanceRecord:
    user_id: uuid.UUID
    location_id: int
    work_date: date
    check_in_time: datetime
    check_in_point: GeoPoint
    distance_from_location: float
    status: AttendanceStatus
    notes: str | None = None
    photo_url: str | None = None
    check_out_time: datetime | None = None
    check_out_point: GeoPoint | None = None
    id: int | None = None
    location_name: str | None = None
    user_name: str | None = None

    @property
    def checked_out(self) -> bool:
        return self.check_out_time is not None


@dataclass(frozen=True)
class AttendanceQuery:
    """Admin listing filters; every field is optional and they combine with AND."""

    user_id: uuid.UUID | None = None
    location_id: int | None = None
    status: AttendanceStatus | None = None
    date_from: date | None = None
    date_to: date | None = None


class AttendanceLedger(Protocol):
    async def get_for_day(self, user_id: uuid.UUID, work_date: date) -> AttendanceRecord | None: ...

    async def add(self, record: AttendanceRecord) -> AttendanceRecord:
        """Persist a new check-in. Raises DuplicateAttendanceError on a (user, day) clash."""
        ...

    async def record_check_out(self, record: AttendanceRecord) -> bool:
        """Store check-out fields; False if the record was already checked out."""
        ...

    async def list_for_user(
        self, user_id: uuid.UUID, limit: int, offset: int
    ) -> tuple[Sequence[AttendanceRecord], int]: ...

    async def list_filtered(
        self, query: AttendanceQuery, limit: int, offset: int
    ) -> tuple[Sequence[AttendanceRecord], int]: ...


def _to_record(row: Attendance, location_name: str | None = None, user_name: str | None = None) -> AttendanceRecord:
    check_out_point = None
    if row.check_out_latitude is not None and row.check_out_longitude is not None:
        check_out_point = GeoPoint(float(row.check_out_latitude), float(row.check_out_longitude))
    return AttendanceRecord(
        id=row.id,
        user_id=row.user_id,
        location_id=row.location_id,
        work_date=row.work_date,
        check_in_time=row.check_in_time,
        check_in_point=GeoPoint(float(row.check_in_latitude), float(row.check_in_longitude)),
        distance_from_location=float(row.distance_from_location),
        status=AttendanceStatus(row.status),
        notes=row.notes,
        photo_url=row.photo_url,
        check_out_time=row.check_out_time,
        check_out_point=check_out_point,
        location_name=location_name,
        user_name=user_name,
    )


class SqlAttendanceLedger:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def _select(self):
        return (
            select(Attendance, AttendanceLocation.name, User.full_name)
            .outerjoin(AttendanceLocation, AttendanceLocation.id == Attendance.location_id)
            .outerjoin(User, User.id == Attendance.user_id)
        )

    async def get_for_day(self, user_id: uuid.UUID, work_date: date) -> AttendanceRecord | None:
        result = await self._db.execute(
            self._select().where(
                Attendance.user_id == user_id,
                Attendance.work_date == work_date,
            )
        )
        row = result.one_or_none()
        if row is None:
            return None
        return _to_record(*row)

    async def add(self, record: AttendanceRecord) -> AttendanceRecord:
        row = Attendance(
            user_id=record.user_id,
            location_id=record.location_id,
            work_date=record.work_date,
            check_in_time=record.check_in_time,
            check_in_latitude=record.check_in_point.latitude,
            check_in_longitude=record.check_in_point.longitude,
            distance_from_location=round(record.distance_from_location, 2),
            status=record.status.value,
            notes=record.notes,
            photo_url=record.photo_url,
        )
        self._db.add(row)
        try:
            await self._db.commit()
        except IntegrityError as exc:
            await self._db.rollback()
            if _USER_DAY_CONSTRAINT in str(exc.orig):
                logger.warning(
                    "Unique constraint rejected second check-in: user=%s day=%s",
                    record.user_id, record.work_date,
                )
                raise DuplicateAttendanceError(str(exc.orig)) from exc
            raise
        await self._db.refresh(row)
        return _to_record(row, record.location_name, record.user_name)

    async def record_check_out(self, record: AttendanceRecord) -> bool:
        if record.id is None or record.check_out_point is None:
            raise ValueError("check-out needs a stored record id and a check-out point")
        result = await self._db.execute(
            update(Attendance)
            .where(Attendance.id == record.id, Attendance.check_out_time.is_(None))
            .values(
                check_out_time=record.check_out_time,
                check_out_latitude=record.check_out_point.latitude,
                check_out_longitude=record.check_out_point.longitude,
                notes=record.notes,
            )
        )
        await self._db.commit()
        return result.rowcount > 0

    async def _page(self, where: list[Any], limit: int, offset: int) -> tuple[list[AttendanceRecord], int]:
        total = await self._db.scalar(
            select(func.count()).select_from(Attendance).where(*where)
        )
        result = await self._db.execute(
            self._select()
            .where(*where)
            .order_by(Attendance.check_in_time.desc())
            .limit(limit)
            .offset(offset)
        )
        return [_to_record(*row) for row in result.all()], int(total or 0)

    async def list_for_user(
        self, user_id: uuid.UUID, limit: int, offset: int
    ) -> tuple[list[AttendanceRecord], int]:
        return await self._page([Attendance.user_id == user_id], limit, offset)

    async def list_filtered(
        self, query: AttendanceQuery, limit: int, offset: int
    ) -> tuple[list[AttendanceRecord], int]:
        where: list[Any] = []
        if query.user_id is not None:
            where.append(Attendance.user_id == query.user_id)
        if query.location_id is not None:
            where.append(Attendance.location_id == query.location_id)
        if query.status is not None:
            where.append(Attendance.status == query.status.value)
        if query.date_from is not None:
            where.append(Attendance.work_date >= query.date_from)
        if query.date_to is not None:
            where.append(Attendance.work_date <= query.date_to)
        return await self._page(where, limit, offset)
