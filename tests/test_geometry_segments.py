from __future__ import annotations

import pytest

from planguard.geometry.segments import nearest_right_angle, orthogonal_endpoint, point_along, wall_angle_deg
from planguard.models.plan import Point
from planguard.testing.plans import wall


def test_wall_angle_is_normalized() -> None:
    assert wall_angle_deg(Point(0, 0), Point(1, 0)) == pytest.approx(0.0)
    assert wall_angle_deg(Point(0, 0), Point(0, -1)) == pytest.approx(270.0)
    assert wall_angle_deg(Point(0, 0), Point(-1, 0)) == pytest.approx(180.0)


def test_nearest_right_angle_wraps_around_zero() -> None:
    assert nearest_right_angle(359.5, 2.0) == 0
    assert nearest_right_angle(91.0, 2.0) == 90
    assert nearest_right_angle(45.0, 2.0) is None


def test_orthogonal_endpoint_preserves_start_and_length() -> None:
    start, end = Point(0.0, 0.0), Point(10.0, 0.2)
    result = orthogonal_endpoint(start, end, 2.0)
    assert result is not None
    rotated, target = result
    assert target == 0
    assert rotated.y == 0.0
    assert rotated.x == pytest.approx((10.0 ** 2 + 0.2 ** 2) ** 0.5)


def test_orthogonal_endpoint_ignores_steep_and_degenerate_walls() -> None:
    assert orthogonal_endpoint(Point(0, 0), Point(10, 1), 2.0) is None
    assert orthogonal_endpoint(Point(1, 1), Point(1, 1), 2.0) is None


def test_point_along_interpolates_from_wall_start() -> None:
    w = wall("w", (12.0, 10.0), (6.0, 10.0))
    p = point_along(w, 3.0)
    assert (p.x, p.y) == pytest.approx((9.0, 10.0))
    assert point_along(wall("z", (2.0, 2.0), (2.0, 2.0)), 1.0) == Point(2.0, 2.0)
