"""
Great-circle distance helpers used for geofence validation.

Distances are computed with the haversine formula on a spherical Earth of
radius 6,371,000 m. Coordinates are WGS84 degrees.
"""

from __future__ import annotations

import math
from typing import NamedTuple

EARTH_RADIUS_M = 6_371_000


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


def distance(p1: GeoPoint, p2: GeoPoint) -> float:
    """Distance in metres between two points."""
    lat1 = math.radians(p1.latitude)
    lat2 = math.radians(p2.latitude)
    dlat = math.radians(p2.latitude - p1.latitude)
    dlon = math.radians(p2.longitude - p1.longitude)

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Rounding can push a just past 1 for antipodal pairs.
    c = 2 * math.asin(math.sqrt(min(1.0, a)))
    return EARTH_RADIUS_M * c


def within_radius(user_point: GeoPoint, center: GeoPoint, radius_meters: float) -> bool:
    """True when the user is inside the circle; the boundary counts as inside."""
    return distance(user_point, center) <= radius_meters


def validate_point(
    user_point: GeoPoint, center: GeoPoint, radius_meters: float
) -> tuple[bool, float]:
    """Return ``(is_inside, distance_m)`` in one pass."""
    d = distance(user_point, center)
    return d <= radius_meters, d
