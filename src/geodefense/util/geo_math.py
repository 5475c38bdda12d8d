"""Geo math utilities — distances and polyline generation on lat/lng.

All functions operate on Position values. Distances are in kilometres,
polyline interpolation is done in plain degree space.
"""

from __future__ import annotations

import math
from typing import Sequence

from geodefense.models.geo import Position

EARTH_RADIUS_KM: float = 6371.0
KM_PER_DEGREE: float = 111.0


def haversine_km(a: Position, b: Position) -> float:
    """Great-circle distance between two positions in kilometres."""
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(dlng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def straight_path(start: Position, end: Position, steps: int = 50) -> list[Position]:
    """Evenly spaced points from start to end (inclusive), ``steps + 1`` long."""
    if steps <= 0:
        return [start, end]
    return [start.lerp(end, i / steps) for i in range(steps + 1)]


def curved_path(
    start: Position,
    end: Position,
    steps: int = 30,
    curvature: float = 0.05,
) -> list[Position]:
    """Deterministic gently-bowed path from start to end.

    The offset is perpendicular to the start→end vector and follows
    ``sin(t * pi)``, so both endpoints are exact.
    """
    if steps <= 0:
        return [start, end]
    dlat = end.lat - start.lat
    dlng = end.lng - start.lng
    points: list[Position] = []
    for i in range(steps + 1):
        t = i / steps
        bow = math.sin(t * math.pi) * curvature
        points.append(Position(
            start.lat + dlat * t + bow * dlng * curvature,
            start.lng + dlng * t - bow * dlat * curvature,
        ))
    return points


def resample_path(path: Sequence[Position], max_points: int) -> list[Position]:
    """Resample a polyline to ``min(2 * len(path), max_points)`` points.

    Paths of two points or fewer are returned unchanged. The last point of
    the result is always the last point of the input.
    """
    if len(path) <= 2:
        return list(path)

    total = max(2, min(len(path) * 2, max_points))
    step = (len(path) - 1) / (total - 1)
    result: list[Position] = []
    for i in range(total - 1):
        index = i * step
        base = min(int(math.floor(index)), len(path) - 2)
        result.append(path[base].lerp(path[base + 1], index - base))
    result.append(path[-1])
    return result


def offset_km(origin: Position, bearing_rad: float, distance_km: float) -> Position:
    """Point ``distance_km`` away from origin along a bearing.

    Longitude is corrected by cos(latitude) so the offset is roughly
    circular on the ground.
    """
    dlat = math.cos(bearing_rad) * distance_km / KM_PER_DEGREE
    cos_lat = max(0.01, math.cos(math.radians(origin.lat)))
    dlng = math.sin(bearing_rad) * distance_km / (KM_PER_DEGREE * cos_lat)
    return Position(origin.lat + dlat, origin.lng + dlng)
