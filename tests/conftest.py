"""
conftest.py: shared fixtures for the attendance tests.

Strategy:
- The engine is exercised against in-memory implementations of its three
  collaborators (ledger, location directory, schedule directory), so no
  PostgreSQL is needed.
- A controllable clock pins "now" to Monday 2026-10-19 08:30 UTC; tests move
  it with ``clock.advance(...)``.
- The HTTP ``client`` fixture runs the real FastAPI app over ASGITransport
  with ``get_attendance_engine`` and ``get_current_user`` overridden.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, timezone
from typing import Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from geoattend.api.deps import get_attendance_engine
from geoattend.core.middleware import get_current_user
from geoattend.db.models import User
from geoattend.db.session import get_db
from geoattend.main import app
from geoattend.services.attendance import AttendanceEngine
from geoattend.services.directory import Geofence, WorkWindow
from geoattend.services.geo import EARTH_RADIUS_M, GeoPoint
from geoattend.services.ledger import (
    AttendanceQuery,
    AttendanceRecord,
    DuplicateAttendanceError,
)
from geoattend.services.status_policy import ScheduleAwarePolicy

# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

OFFICE = Geofence(id=1, name="Head Office", center=GeoPoint(-6.2, 106.8167), radius_meters=50)
BRANCH = Geofence(id=2, name="Bandung Branch", center=GeoPoint(-6.9175, 107.6191), radius_meters=100)
WAREHOUSE = Geofence(
    id=3, name="Old Warehouse", center=GeoPoint(-6.21, 106.82), radius_meters=30, active=False
)

OFFICE_HOURS = WorkWindow(
    id=1,
    name="Standard Office Hours",
    check_in_start=time(8, 0),
    check_in_end=time(9, 0),
    check_out_start=time(17, 0),
    work_days=frozenset({1, 2, 3, 4, 5}),
)

MONDAY_0830 = datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc)


def north_of(point: GeoPoint, meters: float) -> GeoPoint:
    """Point ``meters`` due north of ``point`` along the meridian."""
    return GeoPoint(point.latitude + math.degrees(meters / EARTH_RADIUS_M), point.longitude)


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class InMemoryLedger:
    """Dict-backed ledger enforcing the same (user, day) uniqueness as the database."""

    def __init__(self) -> None:
        self.records: dict[int, AttendanceRecord] = {}
        self._next_id = 1

    async def get_for_day(self, user_id: uuid.UUID, work_date: date) -> AttendanceRecord | None:
        for record in self.records.values():
            if record.user_id == user_id and record.work_date == work_date:
                return record
        return None

    async def add(self, record: AttendanceRecord) -> AttendanceRecord:
        for existing in self.records.values():
            if existing.user_id == record.user_id and existing.work_date == record.work_date:
                raise DuplicateAttendanceError("uq_attendance_user_day")
        saved = replace(record, id=self._next_id)
        self.records[saved.id] = saved
        self._next_id += 1
        return saved

    async def record_check_out(self, record: AttendanceRecord) -> bool:
        current = self.records[record.id]
        if current.checked_out:
            return False
        self.records[record.id] = record
        return True

    def _page(self, records: list[AttendanceRecord], limit: int, offset: int):
        ordered = sorted(records, key=lambda r: r.check_in_time, reverse=True)
        return ordered[offset:offset + limit], len(ordered)

    async def list_for_user(self, user_id: uuid.UUID, limit: int, offset: int):
        return self._page([r for r in self.records.values() if r.user_id == user_id], limit, offset)

    async def list_filtered(self, query: AttendanceQuery, limit: int, offset: int):
        def matches(r: AttendanceRecord) -> bool:
            return (
                (query.user_id is None or r.user_id == query.user_id)
                and (query.location_id is None or r.location_id == query.location_id)
                and (query.status is None or r.status == query.status)
                and (query.date_from is None or r.work_date >= query.date_from)
                and (query.date_to is None or r.work_date <= query.date_to)
            )

        return self._page([r for r in self.records.values() if matches(r)], limit, offset)


class InMemoryLocations:
    def __init__(self, *geofences: Geofence) -> None:
        self.geofences = {g.id: g for g in geofences}

    async def get_geofence(self, location_id: int) -> Geofence | None:
        return self.geofences.get(location_id)

    async def list_active(self) -> Sequence[Geofence]:
        return [g for g in self.geofences.values() if g.active]


@dataclass(frozen=True)
class FakeAssignment:
    id: int
    user_id: uuid.UUID
    window: WorkWindow
    effective_from: date
    effective_to: date | None = None


class InMemorySchedules:
    """Resolves like SqlScheduleDirectory: [from, to) covers the day, latest start wins."""

    def __init__(self) -> None:
        self.assignments: list[FakeAssignment] = []

    def assign(
        self,
        user_id: uuid.UUID,
        window: WorkWindow,
        effective_from: date,
        effective_to: date | None = None,
    ) -> None:
        self.assignments.append(
            FakeAssignment(len(self.assignments) + 1, user_id, window, effective_from, effective_to)
        )

    async def get_active_assignment(self, user_id: uuid.UUID, day: date) -> WorkWindow | None:
        covering = [
            a
            for a in self.assignments
            if a.user_id == user_id
            and a.effective_from <= day
            and (a.effective_to is None or day < a.effective_to)
        ]
        if not covering:
            return None
        return max(covering, key=lambda a: (a.effective_from, a.id)).window


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(MONDAY_0830)


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def locations() -> InMemoryLocations:
    return InMemoryLocations(OFFICE, BRANCH, WAREHOUSE)


@pytest.fixture
def schedules() -> InMemorySchedules:
    return InMemorySchedules()


@pytest.fixture
def engine(ledger, locations, schedules, clock) -> AttendanceEngine:
    return AttendanceEngine(
        ledger,
        locations,
        schedules,
        policy=ScheduleAwarePolicy(),
        clock=clock,
    )


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


# ---------------------------------------------------------------------------
# HTTP client fixtures
# ---------------------------------------------------------------------------


def make_user(role: str = "user", user_id: uuid.UUID | None = None) -> User:
    return User(
        id=user_id or uuid.uuid4(),
        email=f"qa_{role}_{uuid.uuid4().hex[:8]}@example.com",
        full_name=f"QA {role.title()}",
        role=role,
        is_active=True,
    )


async def no_db():
    """Stands in for get_db on routes that must fail before touching the database."""
    yield None


@pytest.fixture
def current_user(user_id) -> User:
    """The signed-in user for ``client``; tests may flip ``role`` to ``admin``."""
    return make_user("user", user_id)


@pytest_asyncio.fixture
async def client(engine, current_user) -> AsyncClient:
    """HTTPX client against the app, wired to the in-memory engine."""
    app.dependency_overrides[get_attendance_engine] = lambda: engine
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_db] = no_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
