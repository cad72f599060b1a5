from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from planguard.geometry.endpoints import endpoint_map
from planguard.geometry.grid import cell_key, point_key, snap_point
from planguard.geometry.segments import distance, orthogonal_endpoint
from planguard.geometry.tolerance import EPS_FLOAT
from planguard.models.plan import Point, WallSegment
from planguard.repair.config import RepairConfig

GRID_SNAPPING = "Grid Snapping"
ANGLE_NORMALIZATION = "Angle Normalization"
DUPLICATE_MERGING = "Duplicate Merging"
DANGLING_CORRECTION = "Dangling Correction"
EXTERIOR_LOOP_CLOSURE = "Exterior Loop Closure"
SHORT_WALL_ELIMINATION = "Short Wall Elimination"


@dataclass(frozen=True)
class FixRecord:
    stage: str
    kind: str
    message: str
    wall_id: Optional[str] = None
    point: Optional[Point] = None
    fixed: bool = True

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "stage": self.stage,
            "kind": self.kind,
            "severity": "fixed" if self.fixed else "warning",
            "message": self.message,
        }
        if self.wall_id is not None:
            out["wall_id"] = self.wall_id
        if self.point is not None:
            out["point"] = self.point.to_dict()
        return out


@dataclass(frozen=True)
class StageReport:
    stage: str
    fixes_applied: int
    issues: List[FixRecord] = field(default_factory=list)
    details: Dict[str, object] = field(default_factory=dict)

    @property
    def warnings(self) -> List[str]:
        return [i.message for i in self.issues if not i.fixed]

    def to_dict(self) -> Dict[str, object]:
        return {
            "stage": self.stage,
            "fixes_applied": self.fixes_applied,
            "issues": [i.to_dict() for i in self.issues],
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class StageResult:
    walls: Tuple[WallSegment, ...]
    report: StageReport


def _moved(a: Point, b: Point) -> bool:
    return distance(a, b) > EPS_FLOAT


def _moved_coordinates(a: Point, b: Point) -> int:
    return int(abs(a.x - b.x) > EPS_FLOAT) + int(abs(a.y - b.y) > EPS_FLOAT)


def snap_walls_to_grid(walls: Sequence[WallSegment], config: RepairConfig) -> StageResult:
    issues: List[FixRecord] = []
    fixes = 0
    out: List[WallSegment] = []
    for wall in walls:
        start = snap_point(wall.start, config.grid_size)
        end = snap_point(wall.end, config.grid_size)
        moved = _moved_coordinates(start, wall.start) + _moved_coordinates(end, wall.end)
        if moved:
            fixes += moved
            issues.append(
                FixRecord(
                    GRID_SNAPPING,
                    "off-grid",
                    f"Snapped wall {wall.id} to {config.grid_size:g}m grid ({moved} coordinate(s) moved)",
                    wall_id=wall.id,
                )
            )
            wall = wall.with_points(start, end)
        out.append(wall)
    return StageResult(tuple(out), StageReport(GRID_SNAPPING, fixes, issues))


def normalize_wall_angles(walls: Sequence[WallSegment], config: RepairConfig) -> StageResult:
    if not config.enforce_orthogonal:
        return StageResult(tuple(walls), StageReport(ANGLE_NORMALIZATION, 0, [], {"skipped": True}))

    issues: List[FixRecord] = []
    fixes = 0
    out: List[WallSegment] = []
    for wall in walls:
        rotated = orthogonal_endpoint(wall.start, wall.end, config.angle_tolerance)
        if rotated is not None:
            end, target = rotated
            end = snap_point(end, config.grid_size)
            if _moved(end, wall.end):
                fixes += 1
                issues.append(
                    FixRecord(
                        ANGLE_NORMALIZATION,
                        "angle",
                        f"Normalized wall {wall.id} to orthogonal ({target}°)",
                        wall_id=wall.id,
                    )
                )
                wall = wall.with_points(wall.start, end)
        out.append(wall)
    return StageResult(tuple(out), StageReport(ANGLE_NORMALIZATION, fixes, issues))


def merge_duplicate_points(walls: Sequence[WallSegment], config: RepairConfig) -> StageResult:
    clusters: Dict[Tuple[int, int], List[Point]] = {}
    for wall in walls:
        for p in (wall.start, wall.end):
            clusters.setdefault(cell_key(p, config.grid_size), []).append(p)

    mapping: Dict[Tuple[int, int], Point] = {}
    issues: List[FixRecord] = []
    fixes = 0
    for points in clusters.values():
        if len(points) < 2:
            continue
        xy = np.array([(p.x, p.y) for p in points], dtype=float)
        cx, cy = xy.mean(axis=0)
        target = snap_point(Point(float(cx), float(cy)), config.grid_size)
        moved = 0
        for p in points:
            mapping[point_key(p)] = target
            if _moved(p, target):
                moved += 1
        if moved:
            fixes += 1
            issues.append(
                FixRecord(
                    DUPLICATE_MERGING,
                    "duplicate",
                    f"Merged {len(points)} nearby points to ({target.x:g}, {target.y:g})",
                    point=target,
                )
            )

    out = []
    for wall in walls:
        start = mapping.get(point_key(wall.start), wall.start)
        end = mapping.get(point_key(wall.end), wall.end)
        if _moved(start, wall.start) or _moved(end, wall.end):
            wall = wall.with_points(start, end)
        out.append(wall)
    return StageResult(tuple(out), StageReport(DUPLICATE_MERGING, fixes, issues))


def _nearest_junction(
    p: Point,
    junction_xy: np.ndarray,
    junction_keys: Sequence[Tuple[int, int]],
    exclude: Tuple[int, int],
    tolerance: float,
) -> Optional[int]:
    # Skip by key, not distance: a distinct junction can sit under 1 mm away.
    skip = {point_key(p), exclude}
    d = np.hypot(junction_xy[:, 0] - p.x, junction_xy[:, 1] - p.y)
    for i, key in enumerate(junction_keys):
        if key in skip:
            d[i] = np.inf
    idx = int(np.argmin(d))
    if d[idx] < tolerance:
        return idx
    return None


def correct_dangling_endpoints(walls: Sequence[WallSegment], config: RepairConfig) -> StageResult:
    """
    Snap walls' loose ends onto nearby junctions, pass by pass.

    A dangling endpoint is incident to exactly one wall. Each pass snaps every dangling
    endpoint onto the nearest endpoint shared by two or more walls within
    ``config.snap_tolerance`` (never the wall's own other end). The radius is fixed for all
    passes. Moving a dangling point onto an existing junction removes it from the dangling
    set without creating a new one, so the remaining count never grows; the loop stops on
    the first pass without fixes or after ``config.max_passes``.
    """
    current: List[WallSegment] = list(walls)
    issues: List[FixRecord] = []
    history: List[int] = []
    total = 0
    passes = 0
    converged = False

    for pass_no in range(1, int(config.max_passes) + 1):
        passes = pass_no
        emap = endpoint_map(current)
        dangling = {k for k, e in emap.items() if e.connections == 1}
        history.append(len(dangling))
        junctions = [e for e in emap.values() if e.connections >= 2]
        if not dangling or not junctions:
            converged = True
            break

        junction_xy = np.array([(e.point.x, e.point.y) for e in junctions], dtype=float)
        junction_keys = [e.key for e in junctions]
        fixes_this_pass = 0
        updated: List[WallSegment] = []
        for wall in current:
            start, end = wall.start, wall.end
            start_key, end_key = point_key(start), point_key(end)
            moved = 0
            if start_key in dangling:
                idx = _nearest_junction(start, junction_xy, junction_keys, end_key, config.snap_tolerance)
                if idx is not None:
                    start = junctions[idx].point
                    moved += 1
            if end_key in dangling:
                idx = _nearest_junction(end, junction_xy, junction_keys, start_key, config.snap_tolerance)
                if idx is not None:
                    end = junctions[idx].point
                    moved += 1
            if moved:
                fixes_this_pass += moved
                issues.append(
                    FixRecord(
                        DANGLING_CORRECTION,
                        "dangling",
                        f"Fixed dangling endpoint on wall {wall.id} (pass {pass_no})",
                        wall_id=wall.id,
                    )
                )
                wall = wall.with_points(start, end)
            updated.append(wall)

        current = updated
        total += fixes_this_pass
        if fixes_this_pass == 0:
            converged = True
            break

    remaining = sum(1 for e in endpoint_map(current).values() if e.connections == 1)
    if not converged:
        issues.append(
            FixRecord(
                DANGLING_CORRECTION,
                "dangling",
                f"Dangling correction stopped after {passes} passes with {remaining} endpoint(s) still loose",
                fixed=False,
            )
        )
    details: Dict[str, object] = {
        "passes": passes,
        "converged": converged,
        "dangling_history": history,
        "remaining_dangling": remaining,
    }
    return StageResult(tuple(current), StageReport(DANGLING_CORRECTION, total, issues, details))


def _axis(wall: WallSegment) -> Optional[str]:
    if abs(wall.start.y - wall.end.y) <= EPS_FLOAT:
        return "h"
    if abs(wall.start.x - wall.end.x) <= EPS_FLOAT:
        return "v"
    return None


def _closing_corner(cur: WallSegment, nxt: WallSegment) -> Point:
    """
    Point where ``cur`` ends and ``nxt`` starts once a small gap is closed.

    Perpendicular axis-aligned walls meet where their lines cross, so neither tilts and a
    second repair finds nothing to do. When only ``cur`` is axis-aligned the gap closes on
    its end; otherwise it closes on ``nxt``'s start.
    """
    a, b = _axis(cur), _axis(nxt)
    if a == "h" and b == "v":
        return Point(nxt.start.x, cur.end.y)
    if a == "v" and b == "h":
        return Point(cur.end.x, nxt.start.y)
    if a is not None and b is None:
        return cur.end
    return nxt.start


def close_exterior_loop(walls: Sequence[WallSegment], config: RepairConfig) -> StageResult:
    current: List[WallSegment] = list(walls)
    ext_idx = [i for i, w in enumerate(current) if w.is_external]
    if not ext_idx:
        return StageResult(tuple(current), StageReport(EXTERIOR_LOOP_CLOSURE, 0))

    if len(ext_idx) < 3:
        warning = FixRecord(
            EXTERIOR_LOOP_CLOSURE,
            "open-loop",
            f"Exterior boundary has only {len(ext_idx)} wall(s); at least 3 are needed to close a loop",
            fixed=False,
        )
        return StageResult(tuple(current), StageReport(EXTERIOR_LOOP_CLOSURE, 0, [warning]))

    issues: List[FixRecord] = []
    fixes = 0
    threshold = config.closure_threshold
    n = len(ext_idx)
    for pos in range(n):
        cur = current[ext_idx[pos]]
        nxt = current[ext_idx[(pos + 1) % n]]
        gap = distance(cur.end, nxt.start)
        if gap <= EPS_FLOAT:
            continue
        if gap <= threshold:
            corner = _closing_corner(cur, nxt)
            current[ext_idx[pos]] = cur.with_points(cur.start, corner)
            current[ext_idx[(pos + 1) % n]] = nxt.with_points(corner, nxt.end)
            fixes += 1
            issues.append(
                FixRecord(
                    EXTERIOR_LOOP_CLOSURE,
                    "open-loop",
                    f"Closed exterior loop between walls {cur.id} and {nxt.id} at "
                    f"({corner.x:g}, {corner.y:g}) ({gap:.3f}m gap)",
                    wall_id=cur.id,
                    point=corner,
                )
            )
        else:
            issues.append(
                FixRecord(
                    EXTERIOR_LOOP_CLOSURE,
                    "open-loop",
                    f"Exterior loop has {gap:.2f}m gap between walls {cur.id} and {nxt.id} - too large to auto-fix",
                    wall_id=cur.id,
                    point=cur.end,
                    fixed=False,
                )
            )
    return StageResult(tuple(current), StageReport(EXTERIOR_LOOP_CLOSURE, fixes, issues))


def eliminate_short_walls(walls: Sequence[WallSegment], config: RepairConfig) -> StageResult:
    issues: List[FixRecord] = []
    kept: List[WallSegment] = []
    for wall in walls:
        length = wall.length
        if length < config.minimum_wall_length:
            issues.append(
                FixRecord(
                    SHORT_WALL_ELIMINATION,
                    "short-wall",
                    f"Removed short wall {wall.id} ({length:.3f}m < {config.minimum_wall_length:g}m)",
                    wall_id=wall.id,
                )
            )
            continue
        kept.append(wall)
    return StageResult(tuple(kept), StageReport(SHORT_WALL_ELIMINATION, len(issues), issues))


STAGES = (
    snap_walls_to_grid,
    normalize_wall_angles,
    merge_duplicate_points,
    correct_dangling_endpoints,
    close_exterior_loop,
    eliminate_short_walls,
)
