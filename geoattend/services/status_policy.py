"""
Attendance status classification, decided once at check-in.

``ScheduleAwarePolicy`` compares the check-in time against the user's
assigned work window for that day. When no window applies (no assignment,
or the day is not one of the window's work days) it defers to
``FixedHourPolicy``, the plain hour table:

    hour <= 9       -> present
    9 < hour < 12   -> late
    hour >= 12      -> half_day
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from geoattend.core.config import settings
from geoattend.services.directory import WorkWindow


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    LATE = "late"
    HALF_DAY = "half_day"


@dataclass(frozen=True)
class FixedHourPolicy:
    present_until_hour: int = 9
    half_day_from_hour: int = 12

    def classify(self, checked_in_at: datetime) -> AttendanceStatus:
        hour = checked_in_at.hour
        if hour <= self.present_until_hour:
            return AttendanceStatus.PRESENT
        if hour < self.half_day_from_hour:
            return AttendanceStatus.LATE
        return AttendanceStatus.HALF_DAY


@dataclass(frozen=True)
class ScheduleAwarePolicy:
    fallback: FixedHourPolicy = field(default_factory=FixedHourPolicy)
    late_grace_minutes: int = 0
    half_day_after_minutes: int = 180

    @classmethod
    def from_settings(cls) -> "ScheduleAwarePolicy":
        return cls(
            fallback=FixedHourPolicy(
                present_until_hour=settings.FALLBACK_PRESENT_UNTIL_HOUR,
                half_day_from_hour=settings.FALLBACK_HALF_DAY_FROM_HOUR,
            ),
            late_grace_minutes=settings.LATE_GRACE_MINUTES,
            half_day_after_minutes=settings.HALF_DAY_AFTER_MINUTES,
        )

    def classify(self, checked_in_at: datetime, window: WorkWindow | None) -> AttendanceStatus:
        if window is None or not window.applies_on(checked_in_at.date()):
            return self.fallback.classify(checked_in_at)

        # Compare wall-clock times on the check-in day, ignoring tzinfo.
        local = checked_in_at.replace(tzinfo=None)
        deadline = datetime.combine(local.date(), window.check_in_end)
        if local <= deadline + timedelta(minutes=self.late_grace_minutes):
            return AttendanceStatus.PRESENT
        if local < deadline + timedelta(minutes=self.half_day_after_minutes):
            return AttendanceStatus.LATE
        return AttendanceStatus.HALF_DAY
