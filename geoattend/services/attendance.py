"""
Attendance engine: geofenced check-in / check-out and the read paths.

Per user and calendar day the ledger moves through

    no record -> checked in -> checked out

Check-in creates the record, check-out fills its check-out fields once.
Every rejected call leaves the ledger as it was. All collaborators are
passed in, so the engine runs unchanged against SQL or in-memory stores.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, Sequence
from zoneinfo import ZoneInfo

from geoattend.core.config import settings
from geoattend.core.errors import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    LocationInactiveError,
    LocationNotFoundError,
    NoCheckInTodayError,
    NoRecordTodayError,
    OutsideGeofenceError,
)
from geoattend.services.directory import Geofence, LocationDirectory, ScheduleDirectory
from geoattend.services.geo import GeoPoint, validate_point
from geoattend.services.ledger import (
    AttendanceLedger,
    AttendanceQuery,
    AttendanceRecord,
    DuplicateAttendanceError,
)
from geoattend.services.status_policy import AttendanceStatus, ScheduleAwarePolicy

logger = logging.getLogger(__name__)

NOTES_SEPARATOR = " | "

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current time in the configured day-bucketing timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE))


def append_note(existing: str | None, note: str | None) -> str | None:
    if not note:
        return existing
    if existing:
        return f"{existing}{NOTES_SEPARATOR}{note}"
    return note


@dataclass(frozen=True)
class TodayStatus:
    has_checked_in: bool
    has_checked_out: bool = False
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    location: str | None = None
    status: AttendanceStatus | None = None
    message: str | None = None


class AttendanceEngine:
    def __init__(
        self,
        ledger: AttendanceLedger,
        locations: LocationDirectory,
        schedules: ScheduleDirectory | None = None,
        *,
        policy: ScheduleAwarePolicy | None = None,
        clock: Clock = local_now,
    ) -> None:
        self._ledger = ledger
        self._locations = locations
        self._schedules = schedules
        self._policy = policy or ScheduleAwarePolicy.from_settings()
        self._clock = clock

    def _today(self) -> date:
        return self._clock().date()

    async def _resolve_geofence(self, location_id: int) -> Geofence:
        geofence = await self._locations.get_geofence(location_id)
        if geofence is None:
            raise LocationNotFoundError()
        if not geofence.active:
            raise LocationInactiveError()
        return geofence

    async def validate_location(self, location_id: int, point: GeoPoint) -> tuple[bool, float]:
        """Check a point against an active geofence without touching the ledger."""
        geofence = await self._resolve_geofence(location_id)
        return validate_point(point, geofence.center, geofence.radius_meters)

    async def _require_inside(self, location_id: int, point: GeoPoint, user_id: uuid.UUID) -> tuple[Geofence, float]:
        geofence = await self._resolve_geofence(location_id)
        inside, dist = validate_point(point, geofence.center, geofence.radius_meters)
        if not inside:
            logger.warning(
                "Geofence rejected: user=%s location=%s distance=%.2f radius=%s",
                user_id, location_id, dist, geofence.radius_meters,
            )
            raise OutsideGeofenceError(dist, geofence.radius_meters)
        return geofence, dist

    async def _classify(self, user_id: uuid.UUID, at: datetime) -> AttendanceStatus:
        window = None
        if self._schedules is not None:
            window = await self._schedules.get_active_assignment(user_id, at.date())
        return self._policy.classify(at, window)

    async def check_in(
        self,
        user_id: uuid.UUID,
        location_id: int,
        point: GeoPoint,
        *,
        note: str | None = None,
        photo_url: str | None = None,
    ) -> AttendanceRecord:
        now = self._clock()
        today = now.date()

        if await self._ledger.get_for_day(user_id, today) is not None:
            raise AlreadyCheckedInError()

        geofence, dist = await self._require_inside(location_id, point, user_id)
        status = await self._classify(user_id, now)

        record = AttendanceRecord(
            user_id=user_id,
            location_id=geofence.id,
            work_date=today,
            check_in_time=now,
            check_in_point=point,
            distance_from_location=dist,
            status=status,
            notes=note or None,
            photo_url=photo_url or None,
            location_name=geofence.name,
        )
        try:
            saved = await self._ledger.add(record)
        except DuplicateAttendanceError as exc:
            raise AlreadyCheckedInError() from exc

        logger.info(
            "Check-in: user=%s location=%s distance=%.2f status=%s",
            user_id, geofence.id, dist, status.value,
        )
        return saved

    async def check_out(
        self,
        user_id: uuid.UUID,
        point: GeoPoint,
        *,
        note: str | None = None,
    ) -> AttendanceRecord:
        now = self._clock()

        record = await self._ledger.get_for_day(user_id, now.date())
        if record is None:
            raise NoCheckInTodayError()
        if record.checked_out:
            raise AlreadyCheckedOutError()

        # Check-out is validated against the geofence used at check-in.
        await self._require_inside(record.location_id, point, user_id)

        updated = replace(
            record,
            check_out_time=now,
            check_out_point=point,
            notes=append_note(record.notes, note),
        )
        if not await self._ledger.record_check_out(updated):
            raise AlreadyCheckedOutError()

        logger.info("Check-out: user=%s location=%s", user_id, record.location_id)
        return updated

    async def has_checked_in_today(self, user_id: uuid.UUID) -> bool:
        return await self._ledger.get_for_day(user_id, self._today()) is not None

    async def get_today(self, user_id: uuid.UUID) -> AttendanceRecord:
        record = await self._ledger.get_for_day(user_id, self._today())
        if record is None:
            raise NoRecordTodayError()
        return record

    async def get_status(self, user_id: uuid.UUID) -> TodayStatus:
        record = await self._ledger.get_for_day(user_id, self._today())
        if record is None:
            return TodayStatus(has_checked_in=False, message="You haven't checked in today")

        location_name = record.location_name
        if location_name is None:
            geofence = await self._locations.get_geofence(record.location_id)
            location_name = geofence.name if geofence is not None else None

        return TodayStatus(
            has_checked_in=True,
            has_checked_out=record.checked_out,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
            location=location_name,
            status=record.status,
        )

    async def get_history(
        self, user_id: uuid.UUID, limit: int, offset: int
    ) -> tuple[Sequence[AttendanceRecord], int]:
        return await self._ledger.list_for_user(user_id, limit, offset)

    async def get_all_filtered(
        self, query: AttendanceQuery, limit: int, offset: int
    ) -> tuple[Sequence[AttendanceRecord], int]:
        return await self._ledger.list_filtered(query, limit, offset)

    async def nearby_locations(self, point: GeoPoint, radius_km: float) -> list[Geofence]:
        radius_m = radius_km * 1000
        return [
            g
            for g in await self._locations.list_active()
            if validate_point(point, g.center, radius_m)[0]
        ]
