"""
Geometry health report for a wall list.

Read-only diagnostics used by the ``doctor`` command: bounds, endpoint classification,
grid compliance, per-wall defects, exterior-loop closure and a coarse text plot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from planguard.geometry.endpoints import Endpoint, endpoint_map
from planguard.geometry.grid import point_on_grid
from planguard.geometry.segments import distance
from planguard.geometry.tolerance import (
    DEFAULT_GRID_SIZE,
    DEFAULT_MIN_WALL_LENGTH,
    EPS_COINCIDENT,
    EPS_LOOP_CLOSURE,
)
from planguard.models.plan import Point, WallSegment


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def to_dict(self) -> Dict[str, float]:
        return {"min_x": self.min_x, "min_y": self.min_y, "max_x": self.max_x, "max_y": self.max_y}


@dataclass(frozen=True)
class GeometryIssue:
    kind: str
    message: str
    wall_id: Optional[str] = None
    point: Optional[Point] = None

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {"kind": self.kind, "message": self.message}
        if self.wall_id is not None:
            out["wall_id"] = self.wall_id
        if self.point is not None:
            out["point"] = self.point.to_dict()
        return out


@dataclass(frozen=True)
class GeometryHealthReport:
    wall_count: int
    bounds: Bounds
    endpoints: List[Endpoint]
    on_grid_points: int
    off_grid_points: int
    exterior_closed: bool
    exterior_gap: float
    issues: List[GeometryIssue] = field(default_factory=list)

    @property
    def grid_compliance(self) -> float:
        total = self.on_grid_points + self.off_grid_points
        return 100.0 if total == 0 else 100.0 * self.on_grid_points / total

    @property
    def dangling(self) -> List[Endpoint]:
        return [e for e in self.endpoints if e.status == "dangling"]

    @property
    def junctions(self) -> List[Endpoint]:
        return [e for e in self.endpoints if e.status == "junction"]

    @property
    def healthy(self) -> bool:
        return not self.issues and self.exterior_closed

    def to_dict(self) -> Dict[str, object]:
        return {
            "wall_count": self.wall_count,
            "bounds": self.bounds.to_dict(),
            "endpoints": [e.to_dict() for e in self.endpoints],
            "grid": {
                "on_grid": self.on_grid_points,
                "off_grid": self.off_grid_points,
                "compliance_pct": round(self.grid_compliance, 1),
            },
            "exterior": {"closed": self.exterior_closed, "gap": round(self.exterior_gap, 4)},
            "issues": [i.to_dict() for i in self.issues],
            "healthy": self.healthy,
        }


def wall_bounds(walls: Sequence[WallSegment], padding: float = 0.1) -> Bounds:
    """Axis-aligned extent of all endpoints, padded by a fraction of the larger side."""
    if not walls:
        return Bounds(0.0, 0.0, 10.0, 10.0)
    xy = np.array([(p.x, p.y) for w in walls for p in (w.start, w.end)], dtype=float)
    lo = xy.min(axis=0)
    hi = xy.max(axis=0)
    pad = float(max(hi[0] - lo[0], hi[1] - lo[1])) * padding
    return Bounds(float(lo[0]) - pad, float(lo[1]) - pad, float(hi[0]) + pad, float(hi[1]) + pad)


def _exterior_closure(walls: Sequence[WallSegment]) -> Tuple[bool, float]:
    ext = [w for w in walls if w.is_external]
    if len(ext) < 3:
        return False, float("inf")
    gap = distance(ext[-1].end, ext[0].start)
    return gap <= EPS_LOOP_CLOSURE, gap


def geometry_health_report(
    walls: Sequence[WallSegment],
    grid_size: float = DEFAULT_GRID_SIZE,
    minimum_wall_length: float = DEFAULT_MIN_WALL_LENGTH,
) -> GeometryHealthReport:
    emap = endpoint_map(walls)
    endpoints = list(emap.values())
    issues: List[GeometryIssue] = []

    for e in endpoints:
        if e.status == "dangling":
            issues.append(GeometryIssue(
                "dangling",
                f"Dangling endpoint at ({e.point.x:g}, {e.point.y:g}) on wall {e.wall_ids[0]}",
                wall_id=e.wall_ids[0],
                point=e.point,
            ))

    on_grid = 0
    off_grid = 0
    for wall in walls:
        for p in (wall.start, wall.end):
            if point_on_grid(p, grid_size):
                on_grid += 1
            else:
                off_grid += 1
                issues.append(GeometryIssue(
                    "off-grid",
                    f"Wall {wall.id} endpoint ({p.x:g}, {p.y:g}) is off the {grid_size:g}m grid",
                    wall_id=wall.id,
                    point=p,
                ))
        length = wall.length
        if length < EPS_COINCIDENT:
            issues.append(GeometryIssue("degenerate", f"Wall {wall.id} has zero length", wall_id=wall.id))
        elif length < minimum_wall_length:
            issues.append(GeometryIssue(
                "short",
                f"Wall {wall.id} is only {length:.3f}m long (< {minimum_wall_length:g}m)",
                wall_id=wall.id,
            ))

    closed, gap = _exterior_closure(walls)
    return GeometryHealthReport(
        wall_count=len(walls),
        bounds=wall_bounds(walls),
        endpoints=endpoints,
        on_grid_points=on_grid,
        off_grid_points=off_grid,
        exterior_closed=closed,
        exterior_gap=gap,
        issues=issues,
    )


def _line_cells(x0: int, y0: int, x1: int, y1: int) -> List[Tuple[int, int]]:
    # Bresenham
    cells: List[Tuple[int, int]] = []
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy
    while True:
        cells.append((x0, y0))
        if x0 == x1 and y0 == y1:
            return cells
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def render_ascii(walls: Sequence[WallSegment], width: int = 60, height: int = 30) -> str:
    """
    Coarse character plot of the walls, y axis up.

    Horizontal runs draw as ``─``, vertical as ``│``, crossings as ``┼`` and dangling
    endpoints as ``!``. The frame is ``#``.
    """
    if width < 3 or height < 3:
        raise ValueError("plot must be at least 3x3 characters")
    bounds = wall_bounds(walls)
    inner_w, inner_h = width - 2, height - 2
    sx = (inner_w - 1) / bounds.width if bounds.width > 0 else 0.0
    sy = (inner_h - 1) / bounds.height if bounds.height > 0 else 0.0

    def cell(p: Point) -> Tuple[int, int]:
        col = int(round((p.x - bounds.min_x) * sx))
        row = (inner_h - 1) - int(round((p.y - bounds.min_y) * sy))
        return min(max(col, 0), inner_w - 1), min(max(row, 0), inner_h - 1)

    canvas = [[" "] * inner_w for _ in range(inner_h)]
    for wall in walls:
        c0, r0 = cell(wall.start)
        c1, r1 = cell(wall.end)
        glyph = "─" if abs(c1 - c0) >= abs(r1 - r0) else "│"
        for c, r in _line_cells(c0, r0, c1, r1):
            current = canvas[r][c]
            canvas[r][c] = glyph if current in (" ", glyph) else "┼"
    for e in endpoint_map(walls).values():
        if e.status == "dangling":
            c, r = cell(e.point)
            canvas[r][c] = "!"

    border = "#" * width
    rows = [border] + ["#" + "".join(row) + "#" for row in canvas] + [border]
    return "\n".join(rows)
