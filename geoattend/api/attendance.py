"""
Attendance API routes.

``router`` serves the signed-in user's own check-in / check-out flow and is
mounted at ``/api/attendance``; ``admin_router`` exposes the cross-user
listing under ``/api/admin/attendances``.
"""

import math
import uuid
from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query, status

from geoattend.api.deps import get_attendance_engine, page_params
from geoattend.core.config import settings
from geoattend.core.middleware import get_current_user, require_admin
from geoattend.db.models import User
from geoattend.schemas.attendance import (
    AttendanceResponse,
    AttendanceStatusResponse,
    CheckInRequest,
    CheckOutRequest,
    Page,
    ValidateLocationRequest,
    ValidateLocationResponse,
)
from geoattend.schemas.location import NearbyLocationResponse
from geoattend.services.attendance import AttendanceEngine
from geoattend.services.geo import GeoPoint, distance
from geoattend.services.ledger import AttendanceQuery, AttendanceRecord
from geoattend.services.status_policy import AttendanceStatus

router = APIRouter()
admin_router = APIRouter()


def format_work_duration(delta: timedelta) -> str:
    """Whole minutes, rendered as e.g. ``8h30m0s``; ``0s`` under a minute."""
    total_minutes = max(int(delta.total_seconds() // 60), 0)
    hours, minutes = divmod(total_minutes, 60)
    if hours:
        return f"{hours}h{minutes}m0s"
    if minutes:
        return f"{minutes}m0s"
    return "0s"


def _to_response(record: AttendanceRecord) -> AttendanceResponse:
    work_duration = None
    if record.check_out_time is not None:
        work_duration = format_work_duration(record.check_out_time - record.check_in_time)
    return AttendanceResponse(
        id=record.id,
        user_id=record.user_id,
        user_name=record.user_name,
        location_id=record.location_id,
        location_name=record.location_name,
        work_date=record.work_date,
        check_in_time=record.check_in_time,
        check_out_time=record.check_out_time,
        check_in_latitude=record.check_in_point.latitude,
        check_in_longitude=record.check_in_point.longitude,
        check_out_latitude=record.check_out_point.latitude if record.check_out_point else None,
        check_out_longitude=record.check_out_point.longitude if record.check_out_point else None,
        distance_from_location=round(record.distance_from_location, 2),
        status=record.status,
        notes=record.notes,
        photo_url=record.photo_url,
        work_duration=work_duration,
    )


def _envelope(records, total: int, page: int, limit: int) -> Page[AttendanceResponse]:
    return Page[AttendanceResponse](
        data=[_to_response(r) for r in records],
        total=total,
        page=page,
        limit=limit,
        total_page=math.ceil(total / limit),
    )


@router.post(
    "/check-in",
    response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check in at a geofenced location",
)
async def check_in(
    body: CheckInRequest,
    engine: AttendanceEngine = Depends(get_attendance_engine),
    current_user: User = Depends(get_current_user),
) -> AttendanceResponse:
    record = await engine.check_in(
        current_user.id,
        body.location_id,
        GeoPoint(body.latitude, body.longitude),
        note=body.notes,
        photo_url=body.photo_url,
    )
    return _to_response(record)


@router.post(
    "/check-out",
    response_model=AttendanceResponse,
    summary="Check out at the location used for today's check-in",
)
async def check_out(
    body: CheckOutRequest,
    engine: AttendanceEngine = Depends(get_attendance_engine),
    current_user: User = Depends(get_current_user),
) -> AttendanceResponse:
    record = await engine.check_out(
        current_user.id,
        GeoPoint(body.latitude, body.longitude),
        note=body.notes,
    )
    return _to_response(record)


@router.get("/today", response_model=AttendanceResponse, summary="Today's attendance record")
async def get_today(
    engine: AttendanceEngine = Depends(get_attendance_engine),
    current_user: User = Depends(get_current_user),
) -> AttendanceResponse:
    return _to_response(await engine.get_today(current_user.id))


@router.get(
    "/status",
    response_model=AttendanceStatusResponse,
    response_model_exclude_none=True,
    summary="Whether the user has checked in / out today",
)
async def get_status(
    engine: AttendanceEngine = Depends(get_attendance_engine),
    current_user: User = Depends(get_current_user),
) -> AttendanceStatusResponse:
    today = await engine.get_status(current_user.id)
    return AttendanceStatusResponse(
        has_checked_in=today.has_checked_in,
        has_checked_out=today.has_checked_out,
        check_in_time=today.check_in_time,
        check_out_time=today.check_out_time,
        location=today.location,
        status=today.status,
        message=today.message,
    )


@router.get(
    "/history",
    response_model=Page[AttendanceResponse],
    summary="The user's attendance history, newest first",
)
async def get_history(
    page: int = Query(default=1),
    limit: int = Query(default=settings.HISTORY_DEFAULT_LIMIT),
    engine: AttendanceEngine = Depends(get_attendance_engine),
    current_user: User = Depends(get_current_user),
) -> Page[AttendanceResponse]:
    page, limit, offset = page_params(page, limit)
    records, total = await engine.get_history(current_user.id, limit, offset)
    return _envelope(records, total, page, limit)


@router.get(
    "/locations",
    response_model=list[NearbyLocationResponse],
    summary="Active locations near the given coordinates",
)
async def nearby_locations(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(..., ge=0.1, le=settings.NEARBY_MAX_RADIUS_KM),
    engine: AttendanceEngine = Depends(get_attendance_engine),
    _current_user: User = Depends(get_current_user),
) -> list[NearbyLocationResponse]:
    point = GeoPoint(latitude, longitude)
    geofences = await engine.nearby_locations(point, radius_km)
    return [
        NearbyLocationResponse(
            id=g.id,
            name=g.name,
            latitude=g.center.latitude,
            longitude=g.center.longitude,
            radius=g.radius_meters,
            distance=round(distance(point, g.center), 2),
        )
        for g in geofences
    ]


@router.post(
    "/validate-location",
    response_model=ValidateLocationResponse,
    summary="Check whether coordinates fall inside a location's geofence",
)
async def validate_location(
    body: ValidateLocationRequest,
    engine: AttendanceEngine = Depends(get_attendance_engine),
    _current_user: User = Depends(get_current_user),
) -> ValidateLocationResponse:
    is_valid, dist = await engine.validate_location(
        body.location_id, GeoPoint(body.latitude, body.longitude)
    )
    return ValidateLocationResponse(is_valid=is_valid, distance=round(dist, 2))


@admin_router.get(
    "",
    response_model=Page[AttendanceResponse],
    summary="All attendance records with optional filters (admin only)",
)
async def list_attendances(
    user_id: uuid.UUID | None = Query(default=None),
    location_id: int | None = Query(default=None),
    status_: AttendanceStatus | None = Query(default=None, alias="status"),
    date_from: date | None = Query(default=None, description="ISO date YYYY-MM-DD"),
    date_to: date | None = Query(default=None, description="ISO date YYYY-MM-DD"),
    page: int = Query(default=1),
    limit: int = Query(default=settings.ADMIN_LIST_DEFAULT_LIMIT),
    engine: AttendanceEngine = Depends(get_attendance_engine),
    _current_user: User = Depends(require_admin),
) -> Page[AttendanceResponse]:
    page, limit, offset = page_params(page, limit)
    query = AttendanceQuery(
        user_id=user_id,
        location_id=location_id,
        status=status_,
        date_from=date_from,
        date_to=date_to,
    )
    records, total = await engine.get_all_filtered(query, limit, offset)
    return _envelope(records, total, page, limit)
