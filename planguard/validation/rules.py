"""
Topology and sanity rules for the enforcement gate.

Each rule is a small class with a stable ``id`` and an ``evaluate(plan, policy)`` method
returning severity-tiered issues. Rules never raise on plan content.
"""

from __future__ import annotations

from collections import Counter
from types import MappingProxyType
from typing import List, Mapping, Optional, Protocol

from planguard.geometry.endpoints import dangling_endpoints
from planguard.geometry.grid import grid_decimals, has_grid_precision, is_on_grid
from planguard.geometry.polygons import room_polygon
from planguard.geometry.segments import distance, points_coincide
from planguard.geometry.tolerance import (
    EPS_COINCIDENT,
    EPS_LOOP_CLOSURE,
    MAX_WALL_THICKNESS,
    MIN_WALL_THICKNESS,
)
from planguard.models.plan import Plan, RoomType
from planguard.validation.issues import ValidationIssue, ValidationSeverity
from planguard.validation.policy import ValidationPolicy

BLOCKER = ValidationSeverity.BLOCKER
CRITICAL = ValidationSeverity.CRITICAL
WARNING = ValidationSeverity.WARNING

ROOM_MINIMUM_AREAS: Mapping[RoomType, float] = MappingProxyType(
    {
        RoomType.LIVING_ROOM: 10.0,
        RoomType.BEDROOM: 6.0,
        RoomType.KITCHEN: 4.0,
        RoomType.BATHROOM: 3.0,
        RoomType.HALLWAY: 2.0,
        RoomType.ENTRY: 2.0,
        RoomType.OFFICE: 5.0,
        RoomType.STORAGE: 1.0,
        RoomType.UTILITY: 2.0,
        RoomType.BALCONY: 2.0,
        RoomType.DINING_ROOM: 6.0,
        RoomType.OTHER: 2.0,
    }
)
DEFAULT_ROOM_MINIMUM_AREA = 2.0

MIN_TOTAL_AREA = 20.0
TARGET_MIN_RATIO = 0.6
TARGET_MAX_RATIO = 1.2
MAX_SINGLE_ROOM_AREA = 100.0
AREA_MISMATCH_RATIO = 0.25


class ValidationRule(Protocol):
    id: str
    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]: ...


class RuleGridAlignment:
    id = "GEO-001"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        grid = policy.grid_size
        decimals = grid_decimals(grid)
        out: List[ValidationIssue] = []
        for wall in plan.walls:
            for label, p in (("start", wall.start), ("end", wall.end)):
                if not (is_on_grid(p.x, grid) and is_on_grid(p.y, grid)):
                    out.append(ValidationIssue(
                        self.id, "Grid Alignment", BLOCKER,
                        f"Wall {wall.id} {label} point ({p.x:g}, {p.y:g}) is not on {grid:g}m grid",
                        wall.id, "wall", p,
                    ))
                if not (has_grid_precision(p.x, decimals) and has_grid_precision(p.y, decimals)):
                    out.append(ValidationIssue(
                        self.id, "Coordinate Precision", BLOCKER,
                        f"Wall {wall.id} {label} point has incorrect precision "
                        f"(use at most {decimals} decimal place(s))",
                        wall.id, "wall", p,
                    ))
        return out


class RuleExteriorLoop:
    id = "GEO-002"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        ext = [w for w in plan.walls if w.is_external]
        if not ext:
            return [ValidationIssue(
                self.id, "No Exterior Boundary", BLOCKER, "Plan has no exterior walls marked",
            )]
        if len(ext) < 3:
            return [ValidationIssue(
                self.id, "Exterior Loop", BLOCKER,
                f"Plan has only {len(ext)} exterior walls (minimum 3 required for closed loop)",
            )]

        out: List[ValidationIssue] = []
        first, last = ext[0], ext[-1]
        if not points_coincide(last.end, first.start, EPS_LOOP_CLOSURE):
            out.append(ValidationIssue(
                self.id, "Exterior Loop", BLOCKER,
                f"Exterior loop not closed: {distance(last.end, first.start):.3f}m gap between last wall "
                f"{last.id} and first wall {first.id}",
                last.id, "wall", last.end,
            ))
        for cur, nxt in zip(ext, ext[1:]):
            if not points_coincide(cur.end, nxt.start, EPS_LOOP_CLOSURE):
                out.append(ValidationIssue(
                    self.id, "Exterior Loop", BLOCKER,
                    f"Exterior walls {cur.id} and {nxt.id} not connected: {distance(cur.end, nxt.start):.3f}m gap",
                    cur.id, "wall", cur.end,
                ))
        return out


class RuleDanglingEndpoints:
    id = "GEO-003"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        external = {w.id for w in plan.walls if w.is_external}
        out: List[ValidationIssue] = []
        for e in dangling_endpoints(plan.walls):
            wall_id = e.wall_ids[0]
            out.append(ValidationIssue(
                self.id, "Dangling Endpoint",
                # a loose end on the envelope may be an intentional open edge
                WARNING if wall_id in external else CRITICAL,
                f"Wall {wall_id} has dangling endpoint at ({e.point.x:g}, {e.point.y:g}) with only 1 connection",
                wall_id, "wall", e.point,
            ))
        return out


class RuleOpeningReferences:
    id = "GEO-004"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        walls = plan.wall_by_id()
        out: List[ValidationIssue] = []
        for o in plan.openings:
            wall = walls.get(o.wall_id)
            if wall is None:
                out.append(ValidationIssue(
                    self.id, "Opening Reference", BLOCKER,
                    f"Opening {o.id} references non-existent wall {o.wall_id}",
                    o.id, "opening",
                ))
                continue
            length = wall.length
            if o.dist_from_start < 0.0 or o.dist_from_start > length:
                out.append(ValidationIssue(
                    self.id, "Opening Position", CRITICAL,
                    f"Opening {o.id} position {o.dist_from_start:.2f}m is outside wall {o.wall_id} "
                    f"length {length:.2f}m",
                    o.id, "opening",
                ))
            if o.dist_from_start + o.width > length:
                out.append(ValidationIssue(
                    self.id, "Opening Width", WARNING,
                    f"Opening {o.id} extends beyond wall {o.wall_id} "
                    f"({o.dist_from_start + o.width:.2f}m > {length:.2f}m)",
                    o.id, "opening",
                ))
        return out


class RuleMinimumWallLength:
    id = "GEO-005"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        minimum = policy.minimum_wall_length
        out: List[ValidationIssue] = []
        for wall in plan.walls:
            if points_coincide(wall.start, wall.end, EPS_COINCIDENT):
                continue  # GEO-006
            length = wall.length
            if length < minimum:
                out.append(ValidationIssue(
                    self.id, "Minimum Wall Length", WARNING,
                    f"Wall {wall.id} is too short: {length:.3f}m (minimum {minimum:g}m)",
                    wall.id, "wall",
                ))
        return out


class RuleDegenerateWalls:
    id = "GEO-006"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                self.id, "Degenerate Wall", BLOCKER,
                f"Wall {w.id} has zero length (start equals end at {w.start.x:g}, {w.start.y:g})",
                w.id, "wall", w.start,
            )
            for w in plan.walls
            if points_coincide(w.start, w.end, EPS_COINCIDENT)
        ]


class RuleWallThickness:
    id = "GEO-007"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                self.id, "Wall Thickness", WARNING,
                f"Wall {w.id} thickness {w.thickness:g}m is outside "
                f"{MIN_WALL_THICKNESS:g}-{MAX_WALL_THICKNESS:g}m",
                w.id, "wall",
            )
            for w in plan.walls
            if not MIN_WALL_THICKNESS <= w.thickness <= MAX_WALL_THICKNESS
        ]


class RuleDuplicateIds:
    id = "GEO-008"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        out: List[ValidationIssue] = []
        groups = (
            ("wall", [w.id for w in plan.walls]),
            ("opening", [o.id for o in plan.openings]),
            ("room", [r.id for r in plan.rooms]),
        )
        for kind, ids in groups:
            for element_id, count in Counter(ids).items():
                if count > 1:
                    out.append(ValidationIssue(
                        self.id, "Duplicate Id", BLOCKER,
                        f"{count} {kind}s share the id {element_id}",
                        element_id, kind,
                    ))
        return out


class RuleTotalArea:
    id = "AREA-001"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        if not plan.rooms:
            return [ValidationIssue(self.id, "No Rooms", BLOCKER, "Plan has no rooms defined")]

        total = plan.total_room_area
        target: Optional[float] = policy.target_area
        if target is None:
            target = plan.metadata.target_area
        out: List[ValidationIssue] = []
        if target:
            lo = target * TARGET_MIN_RATIO
            hi = target * TARGET_MAX_RATIO
            if total < lo:
                out.append(ValidationIssue(
                    self.id, "Total Area Too Small", BLOCKER,
                    f"Total room area ({total:.1f}m²) is less than {TARGET_MIN_RATIO:.0%} of target "
                    f"({target:g}m²). Minimum acceptable: {lo:.1f}m²",
                ))
            if total > hi:
                out.append(ValidationIssue(
                    self.id, "Total Area Too Large", WARNING,
                    f"Total room area ({total:.1f}m²) exceeds {TARGET_MAX_RATIO:.0%} of target ({target:g}m²)",
                ))
        if total < MIN_TOTAL_AREA:
            out.append(ValidationIssue(
                self.id, "Total Area Critically Small", BLOCKER,
                f"Total room area ({total:.1f}m²) is unrealistically small. Minimum is {MIN_TOTAL_AREA:g}m²",
            ))
        return out


class RuleRoomSizes:
    id = "AREA-002"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        out: List[ValidationIssue] = []
        for room in plan.rooms:
            minimum = ROOM_MINIMUM_AREAS.get(room.type, DEFAULT_ROOM_MINIMUM_AREA)
            if room.area < minimum:
                out.append(ValidationIssue(
                    self.id, "Room Too Small", BLOCKER,
                    f"{room.label} ({room.type.value}) is only {room.area:.1f}m², "
                    f"minimum for this type is {minimum:g}m²",
                    room.id, "room",
                ))
            label = room.label.lower()
            if room.area > MAX_SINGLE_ROOM_AREA and "open" not in label and "+" not in label:
                out.append(ValidationIssue(
                    self.id, "Room Unusually Large", WARNING,
                    f"{room.label} is {room.area:.1f}m² which is unusually large for a single room",
                    room.id, "room",
                ))
        return out


class RuleAreaConsistency:
    id = "AREA-003"

    def evaluate(self, plan: Plan, policy: ValidationPolicy) -> List[ValidationIssue]:
        out: List[ValidationIssue] = []
        for room in plan.rooms:
            poly = room_polygon(room)
            if poly is None or room.area <= 0.0:
                continue
            measured = float(poly.area)
            if abs(measured - room.area) > AREA_MISMATCH_RATIO * room.area:
                out.append(ValidationIssue(
                    self.id, "Area Mismatch", WARNING,
                    f"{room.label}: declared area {room.area:.1f}m² differs from outline area {measured:.1f}m²",
                    room.id, "room",
                ))
        return out
