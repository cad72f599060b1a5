from __future__ import annotations

import math
from decimal import Decimal
from typing import Tuple

from planguard.geometry.tolerance import EPS_GRID, KEY_DECIMALS
from planguard.models.plan import Point

PointKey = Tuple[int, int]


def grid_decimals(grid_size: float) -> int:
    """Number of decimals needed to write multiples of ``grid_size`` exactly."""
    exponent = Decimal(repr(float(grid_size))).normalize().as_tuple().exponent
    return max(0, -int(exponent))


def snap_value(value: float, grid_size: float) -> float:
    # half-up rounding, then trimmed to the grid's decimals so 0.30000000000000004 becomes 0.3
    snapped = math.floor(value / grid_size + 0.5) * grid_size
    return round(snapped, grid_decimals(grid_size)) + 0.0


def snap_point(p: Point, grid_size: float) -> Point:
    return Point(snap_value(p.x, grid_size), snap_value(p.y, grid_size))


def is_on_grid(value: float, grid_size: float, tol: float = EPS_GRID) -> bool:
    nearest = math.floor(value / grid_size + 0.5) * grid_size
    return abs(value - nearest) < tol


def has_grid_precision(value: float, decimals: int) -> bool:
    """True when the shortest decimal form of ``value`` has at most ``decimals`` places."""
    if not math.isfinite(value):
        return False
    exponent = Decimal(repr(float(value))).as_tuple().exponent
    return -int(exponent) <= decimals


def point_on_grid(p: Point, grid_size: float, tol: float = EPS_GRID) -> bool:
    return is_on_grid(p.x, grid_size, tol) and is_on_grid(p.y, grid_size, tol)


def point_key(p: Point, decimals: int = KEY_DECIMALS) -> PointKey:
    scale = 10 ** decimals
    return (int(math.floor(p.x * scale + 0.5)), int(math.floor(p.y * scale + 0.5)))


def cell_key(p: Point, grid_size: float) -> PointKey:
    """Index of the grid cell whose center is nearest to ``p``."""
    return (int(math.floor(p.x / grid_size + 0.5)), int(math.floor(p.y / grid_size + 0.5)))
