from __future__ import annotations

import math
from typing import Optional, Tuple

from planguard.geometry.tolerance import EPS_FLOAT
from planguard.models.plan import Point, WallSegment

_RIGHT_ANGLES_DEG = (0, 90, 180, 270)


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def points_coincide(a: Point, b: Point, tol: float) -> bool:
    return abs(a.x - b.x) < tol and abs(a.y - b.y) < tol


def wall_angle_deg(start: Point, end: Point) -> float:
    """Direction of start->end in degrees, normalized to [0, 360)."""
    deg = math.degrees(math.atan2(end.y - start.y, end.x - start.x)) % 360.0
    return 0.0 if deg >= 360.0 else deg


def nearest_right_angle(angle_deg: float, tolerance_deg: float) -> Optional[int]:
    for target in _RIGHT_ANGLES_DEG:
        diff = abs(angle_deg - target)
        if diff < tolerance_deg or abs(diff - 360.0) < tolerance_deg:
            return target
    return None


def orthogonal_endpoint(start: Point, end: Point, tolerance_deg: float) -> Optional[Tuple[Point, int]]:
    """
    Rotate ``end`` about ``start`` onto the nearest axis direction.

    Returns the rotated end point (length preserved) and the target angle in degrees,
    or None when the wall is degenerate or not within ``tolerance_deg`` of a right angle.
    """
    length = distance(start, end)
    if length < EPS_FLOAT:
        return None
    target = nearest_right_angle(wall_angle_deg(start, end), tolerance_deg)
    if target is None:
        return None
    if target == 0:
        return Point(start.x + length, start.y), target
    if target == 180:
        return Point(start.x - length, start.y), target
    if target == 90:
        return Point(start.x, start.y + length), target
    return Point(start.x, start.y - length), target


def point_along(wall: WallSegment, dist: float) -> Point:
    """Absolute position ``dist`` meters from the wall start, by linear interpolation."""
    length = wall.length
    if length < EPS_FLOAT:
        return wall.start
    t = dist / length
    return Point(
        wall.start.x + t * (wall.end.x - wall.start.x),
        wall.start.y + t * (wall.end.y - wall.start.y),
    )
