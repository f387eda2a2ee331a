"""
Business errors raised by the attendance engine and its collaborators.

Each error carries the HTTP status it is rendered with; the handler in
``geoattend.main`` turns them into ``{"detail": ...}`` responses, the same
shape FastAPI uses for ``HTTPException``.
"""

from fastapi import status


class AttendanceError(Exception):
    """Base class for client-facing attendance rule violations."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Attendance request rejected"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AlreadyCheckedInError(AttendanceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already checked in today"


class AlreadyCheckedOutError(AttendanceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already checked out today"


class NoCheckInTodayError(AttendanceError):
    default_message = "No check-in found for today"


class NotFoundError(AttendanceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class NoRecordTodayError(NotFoundError):
    default_message = "No attendance record found for today"


class LocationNotFoundError(NotFoundError):
    default_message = "Location not found"


class ScheduleNotFoundError(NotFoundError):
    default_message = "Schedule not found"


class LocationInactiveError(AttendanceError):
    default_message = "Location is not active"


class OutsideGeofenceError(AttendanceError):
    default_message = "You are outside the allowed radius"

    def __init__(self, distance: float, radius: float, message: str | None = None) -> None:
        self.distance = distance
        self.radius = radius
        super().__init__(
            message
            or f"You are outside the allowed radius ({distance:.2f} m away, allowed {radius:g} m)"
        )
