"""Point-to-point spherical earth calculations (haversine model)."""

from __future__ import annotations

import math
from typing import List

import numpy as np

from ..config import CIRCLE_POLYGON_POINTS, EARTH_RADIUS_M, METERS_PER_MILE
from ..models import Coordinate


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in metres between two coordinates."""

    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = math.radians(b.latitude - a.latitude)
    d_lng = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) * math.sin(d_lat / 2)
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) * math.sin(d_lng / 2)
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def initial_bearing(start: Coordinate, end: Coordinate) -> float:
    """Compass bearing in [0, 360) from ``start`` towards ``end``.

    Identical points give 0 (``atan2(0, 0)``).
    """

    start_lat = math.radians(start.latitude)
    end_lat = math.radians(end.latitude)
    d_lng = math.radians(end.longitude - start.longitude)
    x = math.sin(d_lng) * math.cos(end_lat)
    y = math.cos(start_lat) * math.sin(end_lat) - math.sin(start_lat) * math.cos(
        end_lat
    ) * math.cos(d_lng)
    return (math.degrees(math.atan2(x, y)) + 360) % 360


def destination_point(
    origin: Coordinate, distance_m: float, bearing_deg: float
) -> Coordinate:
    """Project a point ``distance_m`` from ``origin`` along ``bearing_deg``."""

    angular = distance_m / EARTH_RADIUS_M
    brng = math.radians(bearing_deg)
    lat1 = math.radians(origin.latitude)
    lng1 = math.radians(origin.longitude)
    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular)
        + math.cos(lat1) * math.sin(angular) * math.cos(brng)
    )
    lng2 = lng1 + math.atan2(
        math.sin(brng) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )
    return Coordinate(latitude=math.degrees(lat2), longitude=math.degrees(lng2))


def circle_polygon(
    center: Coordinate,
    radius_m: float,
    points: int = CIRCLE_POLYGON_POINTS,
) -> List[Coordinate]:
    """Closed ring approximating a circle of ``radius_m`` around ``center``.

    Returns ``points + 1`` vertices; the last repeats the first so the ring
    can be used directly as a GeoJSON polygon.
    """

    if points < 3:
        raise ValueError("points must be >= 3")
    bearings = np.linspace(0.0, 360.0, num=points, endpoint=False)
    ring = [destination_point(center, radius_m, float(b)) for b in bearings]
    ring.append(ring[0])
    return ring


def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE
