from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from geoattend.core.config import settings
from geoattend.db.session import get_db
from geoattend.services.attendance import AttendanceEngine
from geoattend.services.directory import SqlLocationDirectory, SqlScheduleDirectory
from geoattend.services.ledger import SqlAttendanceLedger


async def get_attendance_engine(db: AsyncSession = Depends(get_db)) -> AttendanceEngine:
    """Request-scoped engine bound to the request's database session."""
    return AttendanceEngine(
        SqlAttendanceLedger(db),
        SqlLocationDirectory(db),
        SqlScheduleDirectory(db),
    )


def page_params(page: int, limit: int) -> tuple[int, int, int]:
    """Clamp page to >= 1 and limit to [1, MAX_PAGE_LIMIT]; returns (page, limit, offset)."""
    page = max(page, 1)
    limit = min(max(limit, 1), settings.MAX_PAGE_LIMIT)
    return page, limit, (page - 1) * limit
