from __future__ import annotations

from typing import List, Protocol

from planguard.compliance.context import ComplianceContext
from planguard.compliance.issues import ComplianceIssue, ElementType, Severity, check, violation, warning
from planguard.geometry.endpoints import dangling_endpoints
from planguard.geometry.polygons import minimum_width
from planguard.geometry.segments import distance
from planguard.models.plan import (
    CIRCULATION_ROOM_TYPES,
    HABITABLE_ROOM_TYPES,
    SERVICE_ROOM_TYPES,
    WET_ROOM_TYPES,
    OpeningType,
    RoomType,
    SwingDirection,
)

ROOM = ElementType.ROOM
OPENING = ElementType.OPENING


class ComplianceRule(Protocol):
    id: str
    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]: ...


def _m2(v: float) -> str:
    return f"{v:g}m²"


class RuleRoomArea:
    id = "room-area"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        out: List[ComplianceIssue] = []
        for room in ctx.plan.rooms:
            req = ctx.standards.area_requirement(room.type)
            if req is None:
                continue
            if room.area < req.minimum:
                out.append(violation(
                    req.code,
                    f"{room.label}: {_m2(room.area)} < {_m2(req.minimum)} minimum",
                    Severity.MAJOR, room.id, ROOM,
                ))
            else:
                out.append(check(req.code, f"{room.label}: {_m2(room.area)} ≥ {_m2(req.minimum)} ✓", room.id, ROOM))
        return out


class RuleCeilingHeight:
    id = "ceiling-height"
    code = "BR18-5.1.1"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        std = ctx.standards
        out: List[ComplianceIssue] = []
        for room in ctx.plan.rooms:
            height = room.ceiling_height
            if height is None:
                continue
            minimum = std.ceiling_height_habitable if room.type in HABITABLE_ROOM_TYPES else std.ceiling_height_non_habitable
            if height < minimum:
                out.append(violation(
                    self.code,
                    f"{room.label}: Ceiling height {height:g}m < {minimum:g}m minimum",
                    Severity.CRITICAL, room.id, ROOM,
                ))
            else:
                out.append(check(self.code, f"{room.label}: Ceiling height {height:g}m ✓", room.id, ROOM))
        return out


class RuleDoorWidth:
    id = "door-width"
    code = "BR18-3.1.1"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        std = ctx.standards
        out: List[ComplianceIssue] = []
        for door in ctx.plan.openings:
            if not door.type.is_door:
                continue
            width = door.width
            if width < std.door_width_minimum:
                out.append(violation(
                    self.code,
                    f"Door {door.label}: Width {width:g}m < {std.door_width_minimum:g}m (accessibility minimum)",
                    Severity.CRITICAL, door.id, OPENING,
                ))
            elif width < std.door_width_standard:
                out.append(warning(
                    self.code,
                    f"Door {door.label}: Width {width:g}m meets minimum but {std.door_width_standard:g}m recommended",
                    Severity.MINOR, door.id, OPENING,
                ))
            else:
                out.append(check(self.code, f"Door {door.label}: Width {width:g}m ✓", door.id, OPENING))
        return out


class RuleNaturalLight:
    id = "natural-light"
    code = "BR23-374"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        std = ctx.standards
        out: List[ComplianceIssue] = []
        for room in ctx.plan.rooms:
            if room.type not in HABITABLE_ROOM_TYPES or room.area <= 0.0:
                continue
            windows = ctx.windows_for_room(room)
            glazing = sum(w.width * (w.height or std.light_window_default_height) for w in windows)
            required = room.area * std.natural_light_ratio
            ratio = glazing / room.area
            if ratio < std.natural_light_ratio:
                out.append(violation(
                    self.code,
                    f"{room.label}: Natural light {ratio * 100:.1f}% < {std.natural_light_ratio * 100:g}% required "
                    f"({glazing:.2f}m² windows / {room.area:.1f}m² room, need {required:.2f}m²)",
                    Severity.MAJOR, room.id, ROOM,
                ))
            else:
                out.append(check(
                    self.code,
                    f"{room.label}: Natural light {ratio * 100:.1f}% ≥ {std.natural_light_ratio * 100:g}% ✓",
                    room.id, ROOM,
                ))
        return out


class RuleWallConnectivity:
    id = "wall-connectivity"
    code = "BR18-connectivity"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        return [
            warning(
                self.code,
                f"Dangling wall endpoint at ({e.point.x:g}, {e.point.y:g}) on wall {e.wall_ids[0]} (only 1 connection)",
                Severity.MINOR, e.wall_ids[0], ElementType.WALL,
            )
            for e in dangling_endpoints(ctx.plan.walls)
        ]


class RuleOpeningReference:
    id = "opening-reference"
    code = "BR18-opening-ref"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        return [
            violation(
                self.code,
                f"Opening {o.id} ({o.label}) references non-existent wall {o.wall_id}",
                Severity.CRITICAL, o.id, OPENING,
            )
            for o in ctx.plan.openings
            if o.wall_id not in ctx.walls_by_id
        ]


class RuleEgress:
    id = "egress"
    code = "BR18-5.4.1"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        egress = ctx.egress
        if egress is None or not ctx.plan.rooms:
            return []
        if egress.exit_count == 0:
            return [violation(
                self.code,
                "No exterior exit door found; every room lacks an escape route",
                Severity.CRITICAL,
            )]
        if egress.passed:
            return [check(self.code, f"Egress distance {egress.max_distance_to_exit:.1f}m ✓")]
        rooms = {r.id: r for r in ctx.plan.rooms}
        out: List[ComplianceIssue] = []
        for room_id in egress.critical_rooms:
            room = rooms[room_id]
            limit = ctx.standards.egress_limit(room.type)
            out.append(violation(
                self.code,
                f"{room.label}: Egress distance {egress.room_distances[room_id]:.1f}m exceeds maximum {limit:g}m",
                Severity.CRITICAL, room.id, ROOM,
            ))
        return out


class RuleRescueWindow:
    id = "rescue-window"
    code = "BR18-rescue"
    size_code = "BR18-rescue-size"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        std = ctx.standards
        out: List[ComplianceIssue] = []

        def qualifies(win) -> bool:
            sum_hw = win.width + (win.height or std.rescue_window_default_height)
            sill_ok = win.sill_height is None or win.sill_height <= std.rescue_max_sill_height
            return sum_hw >= std.rescue_min_sum_hw and sill_ok

        for room in ctx.plan.rooms:
            if room.type is not RoomType.BEDROOM:
                continue
            if any(qualifies(w) for w in ctx.windows_for_room(room)):
                out.append(check(self.code, f"{room.label}: Rescue window available ✓", room.id, ROOM))
            else:
                out.append(warning(
                    self.code,
                    f"{room.label}: No rescue window found (requires H+W ≥ {std.rescue_min_sum_hw:.2f}m)",
                    Severity.MAJOR, room.id, ROOM,
                ))

        for win in ctx.plan.openings:
            if not win.type.is_window:
                continue
            tag = win.tag.lower()
            if not any(t in tag for t in std.rescue_tags):
                continue
            sum_hw = win.width + (win.height or std.rescue_window_default_height)
            if sum_hw < std.rescue_min_sum_hw:
                out.append(violation(
                    self.size_code,
                    f"Window {win.label}: H+W = {sum_hw:.2f}m < {std.rescue_min_sum_hw:.2f}m required for rescue",
                    Severity.CRITICAL, win.id, OPENING,
                ))
            if win.sill_height is not None and win.sill_height > std.rescue_max_sill_height:
                out.append(violation(
                    self.size_code,
                    f"Window {win.label}: Sill height {win.sill_height:.2f}m > {std.rescue_max_sill_height:.2f}m "
                    "maximum for rescue",
                    Severity.CRITICAL, win.id, OPENING,
                ))
        return out


class RuleBathroomTurning:
    id = "bathroom-turning"
    code = "BR18-bathroom-turning"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        std = ctx.standards
        out: List[ComplianceIssue] = []
        for room in ctx.plan.rooms:
            if room.type not in WET_ROOM_TYPES:
                continue
            if room.area < std.bathroom_min_area:
                out.append(warning(
                    self.code,
                    f"{room.label}: Area {room.area:.1f}m² may not accommodate "
                    f"{std.bathroom_turning_circle:.2f}m turning circle",
                    Severity.MAJOR, room.id, ROOM,
                ))
            else:
                out.append(check(self.code, f"{room.label}: Adequate space for turning circle ✓", room.id, ROOM))
        return out


class RuleBathroomDoorSwing:
    """Wet-room doors must not swing inward; the explicit swing direction decides."""
    id = "bathroom-door-swing"
    code = "BR18-6.4"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        std = ctx.standards
        out: List[ComplianceIssue] = []
        doors = [o for o in ctx.plan.openings if o.type.is_door]
        for room in ctx.plan.rooms:
            if room.type not in WET_ROOM_TYPES:
                continue
            radius = std.bathroom_wall_radius(room.area)
            wall_ids = {w.id for w in ctx.plan.walls if distance(w.midpoint, room.center) < radius}
            room_doors = [d for d in doors if d.wall_id in wall_ids]
            for door in room_doors:
                if not door.type.swings:
                    out.append(check(
                        self.code,
                        f"{room.label}: Door {door.label} is sliding/pocket type (no swing obstruction) ✓",
                        door.id, OPENING,
                    ))
                elif door.swing_direction is SwingDirection.OUTWARD:
                    out.append(check(self.code, f"{room.label}: Door {door.label} swings outward ✓", door.id, OPENING))
                elif door.swing_direction is SwingDirection.INWARD:
                    out.append(violation(
                        self.code,
                        f"{room.label}: Door {door.label} swings INWARD - must swing outward for emergency rescue access",
                        Severity.CRITICAL, door.id, OPENING,
                    ))
                else:
                    out.append(warning(
                        self.code,
                        f"{room.label}: Verify door {door.label} swings OUTWARD from bathroom for emergency rescue access",
                        Severity.MAJOR, door.id, OPENING,
                    ))
            if not room_doors:
                out.append(warning(
                    self.code,
                    f"{room.label}: No door found - verify bathroom access",
                    Severity.MINOR, room.id, ROOM,
                ))
        return out


class RuleThresholdHeight:
    id = "threshold-height"
    code = "BR18-373-threshold"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        limit = ctx.standards.max_threshold_height
        out: List[ComplianceIssue] = []
        missing = 0
        for door in ctx.plan.openings:
            if not door.type.is_door or door.type is OpeningType.POCKET_DOOR:
                continue
            h = door.threshold_height
            if h is None:
                missing += 1
            elif h <= limit:
                out.append(check(
                    self.code,
                    f"Door {door.label}: Threshold height {h * 1000:.0f}mm ≤ {limit * 1000:.0f}mm ✓",
                    door.id, OPENING,
                ))
            else:
                out.append(violation(
                    self.code,
                    f"Door {door.label}: Threshold height {h * 1000:.0f}mm exceeds {limit * 1000:.0f}mm maximum",
                    Severity.MAJOR, door.id, OPENING,
                ))
        if missing:
            out.append(warning(
                self.code,
                f"{missing} door(s) missing threshold height - verify ≤{limit * 1000:.0f}mm for wheelchair accessibility",
                Severity.MINOR,
            ))
        return out


class RuleCorridorWidth:
    id = "corridor-width"
    code = "BR18-corridor-width"
    hallway_code = "BR18-3.2.1"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        std = ctx.standards
        out: List[ComplianceIssue] = []
        for room in ctx.plan.rooms:
            if room.type not in CIRCULATION_ROOM_TYPES:
                continue
            poly = ctx.room_polygons.get(room.id)
            if poly is None:
                if room.area < std.corridor_min_area:
                    out.append(warning(
                        self.code,
                        f"{room.label}: Small corridor area ({room.area:.1f}m²) - verify width ≥ "
                        f"{std.corridor_width_standard:.2f}m",
                        Severity.MINOR, room.id, ROOM,
                    ))
                continue
            width = minimum_width(poly)
            if width < std.hallway_minimum_width:
                out.append(violation(
                    self.hallway_code,
                    f"{room.label}: Width {width:.2f}m < {std.hallway_minimum_width:.2f}m minimum",
                    Severity.MAJOR, room.id, ROOM,
                ))
            elif width < std.corridor_width_standard:
                out.append(warning(
                    self.code,
                    f"{room.label}: Width {width:.2f}m below {std.corridor_width_standard:.2f}m standard corridor width",
                    Severity.MINOR, room.id, ROOM,
                ))
            else:
                out.append(check(self.code, f"{room.label}: Width {width:.2f}m ✓", room.id, ROOM))
        return out


class RuleTechnicalRoom:
    id = "technical-room"
    code = "BR18-tech-room"
    size_code = "BR18-tech-room-size"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        minimum = ctx.standards.tech_room_min_area
        rooms = [r for r in ctx.plan.rooms if r.type in SERVICE_ROOM_TYPES]
        if not rooms:
            return [warning(
                self.code,
                "No technical room/utility space identified (recommend 2-3m² for utilities)",
                Severity.MINOR,
            )]
        out: List[ComplianceIssue] = []
        for room in rooms:
            if room.area < minimum:
                out.append(warning(
                    self.size_code,
                    f"{room.label}: {room.area:.1f}m² < {_m2(minimum)} recommended",
                    Severity.MINOR, room.id, ROOM,
                ))
            else:
                out.append(check(self.size_code, f"{room.label}: {room.area:.1f}m² ✓", room.id, ROOM))
        return out


class RuleStairs:
    id = "stairs"
    code = "BR18-stairs"
    geometry_code = "BR18-stairs-geometry"

    def evaluate(self, ctx: ComplianceContext) -> List[ComplianceIssue]:
        std = ctx.standards
        out: List[ComplianceIssue] = []
        for room in ctx.plan.rooms:
            if room.type is not RoomType.STAIRS:
                continue
            if room.area < std.stair_min_area:
                out.append(violation(
                    self.code,
                    f"{room.label}: Area {room.area:.1f}m² may be insufficient for a compliant staircase "
                    f"(min ~{std.stair_min_area:g}m² per floor)",
                    Severity.MAJOR, room.id, ROOM,
                ))
            else:
                out.append(check(
                    self.code, f"{room.label}: Area {room.area:.1f}m² appears adequate for staircase ✓", room.id, ROOM
                ))
            out.extend(self._geometry(ctx, room))
        return out

    def _geometry(self, ctx: ComplianceContext, room) -> List[ComplianceIssue]:
        std = ctx.standards
        stairs = room.stairs
        if stairs is None:
            return [warning(
                self.geometry_code,
                f"{room.label}: Verify stair geometry: 2×Rise + Tread = {std.stair_formula_min_cm:g}-"
                f"{std.stair_formula_max_cm:g}cm, Rise ≤{std.stair_max_rise_cm:g}cm, Headroom ≥{std.stair_min_headroom:g}m",
                Severity.MINOR, room.id, ROOM,
            )]
        problems: List[str] = []
        formula = stairs.step_formula_cm
        if not std.stair_formula_min_cm <= formula <= std.stair_formula_max_cm:
            problems.append(
                f"2×Rise + Tread = {formula:.1f}cm outside {std.stair_formula_min_cm:g}-{std.stair_formula_max_cm:g}cm"
            )
        rise_cm = stairs.rise * 100.0
        if rise_cm > std.stair_max_rise_cm:
            problems.append(f"Rise {rise_cm:.1f}cm > {std.stair_max_rise_cm:g}cm")
        if stairs.headroom is not None and stairs.headroom < std.stair_min_headroom:
            problems.append(f"Headroom {stairs.headroom:g}m < {std.stair_min_headroom:g}m")
        if problems:
            return [violation(
                self.geometry_code, f"{room.label}: " + "; ".join(problems), Severity.MAJOR, room.id, ROOM
            )]
        return [check(self.geometry_code, f"{room.label}: Stair geometry {formula:.1f}cm ✓", room.id, ROOM)]
