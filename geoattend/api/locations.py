import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from geoattend.core.errors import LocationNotFoundError
from geoattend.core.middleware import require_admin
from geoattend.db.models import AttendanceLocation, User
from geoattend.db.session import get_db
from geoattend.schemas.location import LocationCreate, LocationResponse, LocationUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_or_404(db: AsyncSession, location_id: int) -> AttendanceLocation:
    location = await db.get(AttendanceLocation, location_id)
    if location is None:
        raise LocationNotFoundError()
    return location


@router.get("", response_model=list[LocationResponse], summary="List locations (admin only)")
async def list_locations(
    is_active: bool | None = Query(default=None, description="Filter by active flag"),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> list[LocationResponse]:
    q = select(AttendanceLocation)
    if is_active is not None:
        q = q.where(AttendanceLocation.is_active.is_(is_active))
    result = await db.execute(q.order_by(AttendanceLocation.id))
    return [LocationResponse.model_validate(loc) for loc in result.scalars().all()]


@router.get("/{location_id}", response_model=LocationResponse, summary="Get a location (admin only)")
async def get_location(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> LocationResponse:
    return LocationResponse.model_validate(await _get_or_404(db, location_id))


@router.post(
    "",
    response_model=LocationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a geofenced location (admin only)",
)
async def create_location(
    body: LocationCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> LocationResponse:
    location = AttendanceLocation(
        name=body.name,
        description=body.description,
        latitude=body.latitude,
        longitude=body.longitude,
        radius=body.radius,
        is_active=True,
        created_by=current_user.id,
    )
    db.add(location)
    await db.commit()
    await db.refresh(location)
    logger.info("Location created: id=%s name=%s radius=%s", location.id, location.name, location.radius)
    return LocationResponse.model_validate(location)


@router.put("/{location_id}", response_model=LocationResponse, summary="Update a location (admin only)")
async def update_location(
    location_id: int,
    body: LocationUpdate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> LocationResponse:
    location = await _get_or_404(db, location_id)

    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        setattr(location, field, value)

    await db.commit()
    await db.refresh(location)
    logger.info("Location updated: id=%s", location.id)
    return LocationResponse.model_validate(location)


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a location (admin only)")
async def delete_location(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> None:
    location = await _get_or_404(db, location_id)
    await db.delete(location)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Location is referenced by attendance records or schedules; deactivate it instead",
        )
    logger.info("Location deleted: id=%s", location_id)
