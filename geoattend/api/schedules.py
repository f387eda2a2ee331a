import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from geoattend.core.errors import LocationNotFoundError, NotFoundError, ScheduleNotFoundError
from geoattend.core.middleware import require_admin
from geoattend.db.models import AttendanceLocation, User, UserSchedule, WorkSchedule
from geoattend.db.session import get_db
from geoattend.schemas.schedule import (
    AssignScheduleRequest,
    ScheduleCreate,
    ScheduleResponse,
    ScheduleUpdate,
    UserScheduleResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_or_404(db: AsyncSession, schedule_id: int) -> WorkSchedule:
    schedule = await db.get(WorkSchedule, schedule_id)
    if schedule is None:
        raise ScheduleNotFoundError()
    return schedule


@router.get("", response_model=list[ScheduleResponse], summary="List work schedules (admin only)")
async def list_schedules(
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> list[ScheduleResponse]:
    result = await db.execute(select(WorkSchedule).order_by(WorkSchedule.id))
    return [ScheduleResponse.model_validate(s) for s in result.scalars().all()]


@router.get("/user", response_model=list[UserScheduleResponse], summary="Schedules assigned to a user (admin only)")
async def list_user_schedules(
    user_id: uuid.UUID = Query(...),
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> list[UserScheduleResponse]:
    result = await db.execute(
        select(UserSchedule)
        .where(UserSchedule.user_id == user_id)
        .options(selectinload(UserSchedule.schedule), selectinload(UserSchedule.location))
        .order_by(UserSchedule.effective_from.desc())
    )
    return [UserScheduleResponse.model_validate(us) for us in result.scalars().all()]


@router.get("/{schedule_id}", response_model=ScheduleResponse, summary="Get a work schedule (admin only)")
async def get_schedule(
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> ScheduleResponse:
    return ScheduleResponse.model_validate(await _get_or_404(db, schedule_id))


@router.post(
    "",
    response_model=ScheduleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a work schedule (admin only)",
)
async def create_schedule(
    body: ScheduleCreate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> ScheduleResponse:
    schedule = WorkSchedule(
        name=body.name,
        check_in_start=body.check_in_start,
        check_in_end=body.check_in_end,
        check_out_start=body.check_out_start,
        work_days=body.work_days,
    )
    db.add(schedule)
    await db.commit()
    await db.refresh(schedule)
    logger.info("Schedule created: id=%s name=%s", schedule.id, schedule.name)
    return ScheduleResponse.model_validate(schedule)


@router.put("/{schedule_id}", response_model=ScheduleResponse, summary="Update a work schedule (admin only)")
async def update_schedule(
    schedule_id: int,
    body: ScheduleUpdate,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> ScheduleResponse:
    schedule = await _get_or_404(db, schedule_id)

    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(schedule, field, value)

    if not (schedule.check_in_start <= schedule.check_in_end <= schedule.check_out_start):
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Expected check_in_start <= check_in_end <= check_out_start",
        )

    await db.commit()
    await db.refresh(schedule)
    logger.info("Schedule updated: id=%s", schedule.id)
    return ScheduleResponse.model_validate(schedule)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a work schedule (admin only)")
async def delete_schedule(
    schedule_id: int,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> None:
    schedule = await _get_or_404(db, schedule_id)
    await db.delete(schedule)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Schedule is still assigned to users",
        )
    logger.info("Schedule deleted: id=%s", schedule_id)


@router.post(
    "/assign",
    response_model=UserScheduleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a work schedule and location to a user (admin only)",
)
async def assign_schedule(
    body: AssignScheduleRequest,
    db: AsyncSession = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> UserScheduleResponse:
    await _get_or_404(db, body.schedule_id)
    if await db.get(AttendanceLocation, body.location_id) is None:
        raise LocationNotFoundError()
    if await db.get(User, body.user_id) is None:
        raise NotFoundError("User not found")

    assignment = UserSchedule(
        user_id=body.user_id,
        schedule_id=body.schedule_id,
        location_id=body.location_id,
        effective_from=body.effective_from,
        effective_to=body.effective_to,
    )
    db.add(assignment)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User already has an assignment starting on {body.effective_from.isoformat()}",
        )

    result = await db.execute(
        select(UserSchedule)
        .where(UserSchedule.id == assignment.id)
        .options(selectinload(UserSchedule.schedule), selectinload(UserSchedule.location))
    )
    assignment = result.scalar_one()
    logger.info(
        "Schedule assigned: user=%s schedule=%s location=%s from=%s to=%s",
        body.user_id, body.schedule_id, body.location_id, body.effective_from, body.effective_to,
    )
    return UserScheduleResponse.model_validate(assignment)
