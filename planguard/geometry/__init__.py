"""
Planguard geometry

Shared tolerances and pure helpers (grid snapping, segment math, endpoint maps, room
polygons) used by repair, compliance and validation alike.
"""

from planguard.geometry.doctor import GeometryHealthReport, geometry_health_report, render_ascii
from planguard.geometry.endpoints import Endpoint, dangling_endpoints, endpoint_map
from planguard.geometry.grid import has_grid_precision, is_on_grid, point_key, snap_point, snap_value
from planguard.geometry.polygons import minimum_width, room_polygon
from planguard.geometry.segments import distance, point_along, wall_angle_deg

__all__ = [
    "GeometryHealthReport",
    "geometry_health_report",
    "render_ascii",
    "Endpoint",
    "dangling_endpoints",
    "endpoint_map",
    "has_grid_precision",
    "is_on_grid",
    "point_key",
    "snap_point",
    "snap_value",
    "minimum_width",
    "room_polygon",
    "distance",
    "point_along",
    "wall_angle_deg",
]
