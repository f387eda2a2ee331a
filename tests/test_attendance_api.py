"""
Attendance HTTP API tests.

Tests:
  - check-in / check-out round trip with work_duration
  - business errors rendered as {"detail": ...} with 400 / 404 / 409
  - request validation (422) for coordinates, schedules, locations, assignments
  - today / status payloads
  - history envelope: total, page, limit, total_page and clamping
  - nearby locations and validate-location
  - admin listing: role check and filters
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient

from geoattend.api.attendance import format_work_duration
from tests.conftest import BRANCH, OFFICE, north_of

INSIDE = north_of(OFFICE.center, 30)
OUTSIDE = north_of(OFFICE.center, 80)


def check_in_body(point=INSIDE, location_id: int = OFFICE.id, **extra) -> dict:
    return {
        "location_id": location_id,
        "latitude": point.latitude,
        "longitude": point.longitude,
        **extra,
    }


def check_out_body(point=INSIDE, **extra) -> dict:
    return {"latitude": point.latitude, "longitude": point.longitude, **extra}


# ---------------------------------------------------------------------------
# Check-in / check-out
# ---------------------------------------------------------------------------


class TestCheckInEndpoint:
    async def test_check_in_created(self, client: AsyncClient, user_id) -> None:
        resp = await client.post("/api/attendance/check-in", json=check_in_body(notes="Hello"))
        assert resp.status_code == 201, resp.text

        data = resp.json()
        assert data["user_id"] == str(user_id)
        assert data["location_id"] == OFFICE.id
        assert data["location_name"] == "Head Office"
        assert data["work_date"] == "2026-10-19"
        assert data["status"] == "present"
        assert data["distance_from_location"] == pytest.approx(30, abs=0.01)
        assert data["notes"] == "Hello"
        assert data["check_out_time"] is None
        assert data["work_duration"] is None

    async def test_outside_radius(self, client: AsyncClient, ledger) -> None:
        resp = await client.post("/api/attendance/check-in", json=check_in_body(OUTSIDE))
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("You are outside the allowed radius")
        assert ledger.records == {}

    async def test_duplicate_check_in(self, client: AsyncClient) -> None:
        first = await client.post("/api/attendance/check-in", json=check_in_body())
        assert first.status_code == 201

        second = await client.post("/api/attendance/check-in", json=check_in_body())
        assert second.status_code == 409
        assert second.json() == {"detail": "Already checked in today"}

    async def test_unknown_location(self, client: AsyncClient) -> None:
        resp = await client.post("/api/attendance/check-in", json=check_in_body(location_id=999))
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Location not found"}

    async def test_inactive_location(self, client: AsyncClient) -> None:
        resp = await client.post("/api/attendance/check-in", json=check_in_body(location_id=3))
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Location is not active"}

    @pytest.mark.parametrize(
        "body",
        [
            {"location_id": 1, "latitude": 91, "longitude": 0},
            {"location_id": 1, "latitude": 0, "longitude": -181},
            {"location_id": 0, "latitude": 0, "longitude": 0},
            {"latitude": 0, "longitude": 0},
            {"location_id": 1, "latitude": 0, "longitude": 0, "photo_url": "x" * 501},
        ],
    )
    async def test_invalid_payload(self, client: AsyncClient, body: dict) -> None:
        resp = await client.post("/api/attendance/check-in", json=body)
        assert resp.status_code == 422


class TestCheckOutEndpoint:
    async def test_without_check_in(self, client: AsyncClient) -> None:
        resp = await client.post("/api/attendance/check-out", json=check_out_body())
        assert resp.status_code == 400
        assert resp.json() == {"detail": "No check-in found for today"}

    async def test_round_trip(self, client: AsyncClient, clock) -> None:
        await client.post("/api/attendance/check-in", json=check_in_body(notes="In"))
        clock.advance(hours=8, minutes=30)

        resp = await client.post("/api/attendance/check-out", json=check_out_body(notes="Out"))
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["check_out_time"] is not None
        assert data["check_out_latitude"] == pytest.approx(INSIDE.latitude)
        assert data["notes"] == "In | Out"
        assert data["work_duration"] == "8h30m0s"

    async def test_twice(self, client: AsyncClient, clock) -> None:
        await client.post("/api/attendance/check-in", json=check_in_body())
        clock.advance(hours=8)
        await client.post("/api/attendance/check-out", json=check_out_body())

        resp = await client.post("/api/attendance/check-out", json=check_out_body())
        assert resp.status_code == 409
        assert resp.json() == {"detail": "Already checked out today"}

    async def test_outside_radius(self, client: AsyncClient, clock) -> None:
        await client.post("/api/attendance/check-in", json=check_in_body())
        clock.advance(hours=8)

        resp = await client.post("/api/attendance/check-out", json=check_out_body(OUTSIDE))
        assert resp.status_code == 400

        today = await client.get("/api/attendance/today")
        assert today.json()["check_out_time"] is None


# ---------------------------------------------------------------------------
# Today / status
# ---------------------------------------------------------------------------


class TestTodayAndStatus:
    async def test_today_without_record(self, client: AsyncClient) -> None:
        resp = await client.get("/api/attendance/today")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "No attendance record found for today"}

    async def test_status_not_checked_in(self, client: AsyncClient) -> None:
        resp = await client.get("/api/attendance/status")
        assert resp.status_code == 200
        assert resp.json() == {
            "has_checked_in": False,
            "has_checked_out": False,
            "message": "You haven't checked in today",
        }

    async def test_status_after_check_in(self, client: AsyncClient) -> None:
        await client.post("/api/attendance/check-in", json=check_in_body())

        data = (await client.get("/api/attendance/status")).json()
        assert data["has_checked_in"] is True
        assert data["has_checked_out"] is False
        assert data["location"] == "Head Office"
        assert data["status"] == "present"
        assert "message" not in data
        assert "check_out_time" not in data


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class TestHistory:
    async def _seed(self, engine, user_id, clock, days: int = 25) -> None:
        for _ in range(days):
            await engine.check_in(user_id, OFFICE.id, INSIDE)
            clock.advance(days=1)

    async def test_envelope(self, client: AsyncClient, engine, user_id, clock) -> None:
        await self._seed(engine, user_id, clock)

        resp = await client.get("/api/attendance/history", params={"page": 3, "limit": 10})
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 25
        assert data["page"] == 3
        assert data["limit"] == 10
        assert data["total_page"] == 3
        assert len(data["data"]) == 5

    async def test_defaults(self, client: AsyncClient, engine, user_id, clock) -> None:
        await self._seed(engine, user_id, clock)

        data = (await client.get("/api/attendance/history")).json()
        assert data["page"] == 1
        assert data["limit"] == 10
        assert len(data["data"]) == 10
        assert data["data"][0]["work_date"] == "2026-11-12"

    async def test_clamping(self, client: AsyncClient, engine, user_id, clock) -> None:
        await self._seed(engine, user_id, clock, days=3)

        data = (
            await client.get("/api/attendance/history", params={"page": 0, "limit": 1000})
        ).json()
        assert data["page"] == 1
        assert data["limit"] == 100
        assert data["total_page"] == 1

    async def test_empty(self, client: AsyncClient) -> None:
        data = (await client.get("/api/attendance/history")).json()
        assert data["data"] == []
        assert data["total"] == 0
        assert data["total_page"] == 0


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


class TestLocationLookup:
    async def test_nearby(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/attendance/locations",
            params={"latitude": INSIDE.latitude, "longitude": INSIDE.longitude, "radius_km": 5},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert [loc["id"] for loc in data] == [OFFICE.id]
        assert data[0]["distance"] == pytest.approx(30, abs=0.01)

    async def test_nearby_radius_bounds(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/attendance/locations",
            params={"latitude": 0, "longitude": 0, "radius_km": 51},
        )
        assert resp.status_code == 422

    async def test_validate_location(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/attendance/validate-location",
            json={"location_id": OFFICE.id, "latitude": OUTSIDE.latitude, "longitude": OUTSIDE.longitude},
        )
        assert resp.status_code == 200
        assert resp.json()["is_valid"] is False
        assert resp.json()["distance"] == pytest.approx(80, abs=0.01)

        resp = await client.post(
            "/api/attendance/validate-location",
            json={"location_id": OFFICE.id, "latitude": INSIDE.latitude, "longitude": INSIDE.longitude},
        )
        assert resp.json()["is_valid"] is True


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class TestAdminAttendances:
    async def test_requires_admin(self, client: AsyncClient) -> None:
        resp = await client.get("/api/admin/attendances")
        assert resp.status_code == 403

    async def test_filters(self, client: AsyncClient, engine, current_user, clock) -> None:
        current_user.role = "admin"
        await engine.check_in(current_user.id, OFFICE.id, INSIDE)
        clock.advance(hours=2)
        other = await engine.check_in(uuid.uuid4(), BRANCH.id, BRANCH.center)

        resp = await client.get("/api/admin/attendances")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 2
        assert data["limit"] == 20

        late = (await client.get("/api/admin/attendances", params={"status": "late"})).json()
        assert late["total"] == 1
        assert late["data"][0]["user_id"] == str(other.user_id)

        by_location = (
            await client.get("/api/admin/attendances", params={"location_id": OFFICE.id})
        ).json()
        assert [r["location_id"] for r in by_location["data"]] == [OFFICE.id]

        none_yet = (
            await client.get("/api/admin/attendances", params={"date_from": "2026-10-20"})
        ).json()
        assert none_yet["total"] == 0

    async def test_invalid_status_filter(self, client: AsyncClient, current_user) -> None:
        current_user.role = "admin"
        resp = await client.get("/api/admin/attendances", params={"status": "absent"})
        assert resp.status_code == 422


class TestAdminValidation:
    async def test_location_radius_must_be_positive(self, client: AsyncClient, current_user) -> None:
        current_user.role = "admin"
        resp = await client.post(
            "/api/admin/locations",
            json={"name": "HQ", "latitude": -6.2, "longitude": 106.8, "radius": 0},
        )
        assert resp.status_code == 422

    async def test_schedule_window_order(self, client: AsyncClient, current_user) -> None:
        current_user.role = "admin"
        resp = await client.post(
            "/api/admin/schedules",
            json={
                "name": "Broken",
                "check_in_start": "09:00:00",
                "check_in_end": "08:00:00",
                "check_out_start": "17:00:00",
                "work_days": [1, 2, 3],
            },
        )
        assert resp.status_code == 422

    async def test_schedule_work_days_range(self, client: AsyncClient, current_user) -> None:
        current_user.role = "admin"
        resp = await client.post(
            "/api/admin/schedules",
            json={
                "name": "Eight days a week",
                "check_in_start": "08:00:00",
                "check_in_end": "09:00:00",
                "check_out_start": "17:00:00",
                "work_days": [1, 8],
            },
        )
        assert resp.status_code == 422

    async def test_assignment_range(self, client: AsyncClient, current_user) -> None:
        current_user.role = "admin"
        resp = await client.post(
            "/api/admin/schedules/assign",
            json={
                "user_id": str(current_user.id),
                "schedule_id": 1,
                "location_id": 1,
                "effective_from": "2026-10-19",
                "effective_to": "2026-10-19",
            },
        )
        assert resp.status_code == 422

    async def test_schedules_require_admin(self, client: AsyncClient) -> None:
        resp = await client.get("/api/admin/schedules")
        assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(hours=8, minutes=30), "8h30m0s"),
        (timedelta(hours=2), "2h0m0s"),
        (timedelta(minutes=45, seconds=59), "45m0s"),
        (timedelta(seconds=30), "0s"),
        (timedelta(seconds=-5), "0s"),
    ],
)
def test_format_work_duration(delta: timedelta, expected: str) -> None:
    assert format_work_duration(delta) == expected


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}
