from __future__ import annotations

from typing import Optional

from shapely.geometry import Polygon as ShapelyPolygon

from planguard.models.plan import RoomZone


def room_polygon(room: RoomZone) -> Optional[ShapelyPolygon]:
    """Room outline as a valid shapely polygon, or None when absent or unusable."""
    if room.polygon is None or len(room.polygon) < 3:
        return None
    poly = ShapelyPolygon([(p.x, p.y) for p in room.polygon])
    if not poly.is_valid:
        poly = poly.buffer(0)
    if poly.is_empty or poly.geom_type != "Polygon" or poly.area <= 0.0:
        return None
    return poly


def minimum_width(poly: ShapelyPolygon) -> float:
    """Short side of the minimum rotated bounding rectangle."""
    rect = poly.minimum_rotated_rectangle
    coords = list(rect.exterior.coords)
    if len(coords) < 4:
        return 0.0
    sides = [
        ((coords[i + 1][0] - coords[i][0]) ** 2 + (coords[i + 1][1] - coords[i][1]) ** 2) ** 0.5
        for i in range(2)
    ]
    return float(min(sides))
