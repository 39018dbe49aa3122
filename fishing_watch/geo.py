"""Geospatial utilities (no external dependencies)."""

from __future__ import annotations

import math
from typing import Sequence

from fishing_watch.models import DEFAULT_INTERVAL_M, DEFAULT_MAX_STEPS, GeoPoint

EARTH_RADIUS_M = 6_371_000.0  # mean Earth radius in meters

LatLng = tuple[float, float]


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute Haversine distance in meters between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees.
        lon1: Longitude 1 in degrees.
        lat2: Latitude 2 in degrees.
        lon2: Longitude 2 in degrees.

    Returns:
        Distance in meters.
    """

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    # rounding can push a just past 1.0 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def distance_m(p1: GeoPoint, p2: GeoPoint) -> float:
    """Great-circle distance in meters between two samples."""

    return haversine_m(p1.latitude, p1.longitude, p2.latitude, p2.longitude)


def _on_segment(x: float, y: float, ax: float, ay: float, bx: float, by: float) -> bool:
    cross = (bx - ax) * (y - ay) - (by - ay) * (x - ax)
    if cross != 0.0:
        return False
    return min(ax, bx) <= x <= max(ax, bx) and min(ay, by) <= y <= max(ay, by)


def point_in_polygon(point: LatLng, polygon: Sequence[LatLng]) -> bool:
    """Ray-casting point-in-polygon test.

    The ring is closed implicitly (last vertex connects back to the first).

    Args:
        point: (lat, lng) to test.
        polygon: Ordered (lat, lng) vertices.

    Returns:
        True if the point is strictly inside. Points exactly on an edge or a
        vertex are reported as not inside. Rings with fewer than 3 vertices
        contain nothing.
    """

    n = len(polygon)
    if n < 3:
        return False

    x, y = point
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if _on_segment(x, y, xi, yi, xj, yj):
            return False
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def segment_steps(
    start: GeoPoint,
    end: GeoPoint,
    interval_m: float = DEFAULT_INTERVAL_M,
    max_steps: int | None = DEFAULT_MAX_STEPS,
) -> int:
    """Number of interpolation steps for a segment, capped at max_steps."""

    if interval_m <= 0:
        raise ValueError(f"interval_m must be positive, got {interval_m!r}")
    steps = max(1, math.floor(distance_m(start, end) / interval_m))
    if max_steps is not None:
        steps = min(steps, max(1, max_steps))
    return steps


def interpolate_segment(
    start: GeoPoint,
    end: GeoPoint,
    interval_m: float = DEFAULT_INTERVAL_M,
    max_steps: int | None = DEFAULT_MAX_STEPS,
) -> list[LatLng]:
    """Sub-sample the straight lat/lng line between two samples.

    This is planar interpolation of the coordinates, not a geodesic; at ~100 m
    spacing the difference is negligible.

    Args:
        start: First sample.
        end: Second sample.
        interval_m: Target spacing between sub-points in meters.
        max_steps: Upper bound on steps per segment (None = unbounded).

    Returns:
        steps + 1 points, both endpoints included, where
        steps = max(1, floor(distance / interval_m)).
    """

    steps = segment_steps(start, end, interval_m, max_steps)
    d_lat = end.latitude - start.latitude
    d_lng = end.longitude - start.longitude
    out: list[LatLng] = []
    for i in range(steps + 1):
        ratio = i / steps
        out.append((start.latitude + d_lat * ratio, start.longitude + d_lng * ratio))
    return out
