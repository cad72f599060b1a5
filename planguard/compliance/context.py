from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon as ShapelyPolygon

from planguard.compliance.egress import analyze_egress
from planguard.compliance.issues import EgressAnalysis
from planguard.compliance.standards import BuildingCodeStandards
from planguard.geometry.polygons import room_polygon
from planguard.geometry.segments import distance, point_along
from planguard.models.plan import Opening, Plan, Point, RoomZone, WallSegment

WINDOW_ASSOCIATION_MODES = ("radius", "polygon")


@dataclass(frozen=True)
class ComplianceContext:
    """Per-pass derived data shared by all rules. Built once, read-only afterwards."""
    plan: Plan
    standards: BuildingCodeStandards
    walls_by_id: Dict[str, WallSegment]
    exterior_wall_ids: FrozenSet[str]
    exterior_doors: Tuple[Opening, ...]
    exit_positions: Tuple[Point, ...]
    exterior_windows: Tuple[Tuple[Opening, Point], ...]
    room_polygons: Dict[str, ShapelyPolygon]
    window_association: str = "radius"
    egress: Optional[EgressAnalysis] = None

    def windows_for_room(self, room: RoomZone) -> List[Opening]:
        """
        Exterior windows serving ``room``.

        The default radius mode keeps the established proximity heuristic: a window
        belongs to every room whose center lies within 0.7·√area + 2 m of it. Polygon
        mode uses the room outline instead where one is available.
        """
        polygon = self.room_polygons.get(room.id) if self.window_association == "polygon" else None
        out: List[Opening] = []
        if polygon is not None:
            margin = self.standards.window_polygon_margin
            for win, pos in self.exterior_windows:
                if polygon.distance(ShapelyPoint(pos.x, pos.y)) <= margin:
                    out.append(win)
            return out
        radius = self.standards.window_search_radius(room.area)
        for win, pos in self.exterior_windows:
            if distance(pos, room.center) < radius:
                out.append(win)
        return out


def build_context(
    plan: Plan,
    standards: BuildingCodeStandards,
    window_association: str = "radius",
) -> ComplianceContext:
    if window_association not in WINDOW_ASSOCIATION_MODES:
        raise ValueError(f"window_association must be one of {WINDOW_ASSOCIATION_MODES}, got {window_association!r}")

    walls_by_id = plan.wall_by_id()
    exterior_ids = frozenset(w.id for w in plan.walls if w.is_external)
    doors = tuple(o for o in plan.openings if o.type.is_door and o.wall_id in exterior_ids)
    exits = tuple(point_along(walls_by_id[d.wall_id], d.dist_from_start) for d in doors)
    windows = tuple(
        (o, point_along(walls_by_id[o.wall_id], o.dist_from_start))
        for o in plan.openings
        if o.type.is_window and o.wall_id in exterior_ids
    )
    polygons: Dict[str, ShapelyPolygon] = {}
    for room in plan.rooms:
        poly = room_polygon(room)
        if poly is not None:
            polygons[room.id] = poly

    return ComplianceContext(
        plan=plan,
        standards=standards,
        walls_by_id=walls_by_id,
        exterior_wall_ids=exterior_ids,
        exterior_doors=doors,
        exit_positions=exits,
        exterior_windows=windows,
        room_polygons=polygons,
        window_association=window_association,
        egress=analyze_egress(plan.rooms, exits, standards),
    )
