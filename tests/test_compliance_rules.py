from __future__ import annotations

from typing import Sequence

from planguard.compliance import BR18, ElementType, IssueKind, Severity
from planguard.compliance.context import build_context
from planguard.compliance.rules import (
    RuleBathroomDoorSwing,
    RuleCeilingHeight,
    RuleCorridorWidth,
    RuleDoorWidth,
    RuleNaturalLight,
    RuleOpeningReference,
    RuleRescueWindow,
    RuleRoomArea,
    RuleStairs,
    RuleTechnicalRoom,
    RuleThresholdHeight,
    RuleWallConnectivity,
)
from planguard.models.plan import (
    Opening,
    OpeningType,
    Plan,
    Point,
    RoomType,
    RoomZone,
    StairGeometry,
    SwingDirection,
    WallSegment,
)
from planguard.testing.plans import door, rectangle_house, rectangle_walls, room, wall, window


def _plan(rooms: Sequence[RoomZone] = (), openings: Sequence[Opening] = (), walls: Sequence[WallSegment] = ()) -> Plan:
    return Plan(
        walls=tuple(rectangle_walls(12.0, 10.0)) + tuple(walls),
        openings=(door("d1", "e1", 1.5, width=1.0),) + tuple(openings),
        rooms=tuple(rooms),
    )


def _run(rule, plan: Plan, **kwargs):
    return rule.evaluate(build_context(plan, BR18, **kwargs))


def _kinds(issues):
    return [i.kind for i in issues]


def test_door_width_tiers() -> None:
    plan = _plan(openings=[door("narrow", "e2", 1.0, width=0.7), door("ok", "e2", 3.0, width=0.8)])
    issues = {i.element_id: i for i in _run(RuleDoorWidth(), plan)}
    assert issues["narrow"].kind is IssueKind.VIOLATION
    assert issues["narrow"].severity is Severity.CRITICAL
    assert issues["narrow"].code == "BR18-3.1.1"
    assert issues["ok"].kind is IssueKind.WARNING
    assert issues["d1"].kind is IssueKind.CHECK


def test_standard_door_width_passes() -> None:
    plan = Plan(walls=tuple(rectangle_walls(12.0, 10.0)), openings=(door("d", "e1", 1.5, width=0.9),))
    (issue,) = _run(RuleDoorWidth(), plan)
    assert issue.kind is IssueKind.CHECK


def test_room_area_uses_type_table() -> None:
    plan = _plan(rooms=[
        room("b", "Bedroom", [(0.0, 0.0), (2.0, 2.5)]),
        room("k", "Kitchen", [(0.0, 0.0), (2.0, 2.5)]),
        room("s", "Storage", [(0.0, 0.0), (1.0, 1.0)]),
    ])
    issues = {i.element_id: i for i in _run(RuleRoomArea(), plan)}
    assert issues["b"].kind is IssueKind.VIOLATION
    assert issues["b"].code == "BR18-5.2.3"
    assert issues["b"].severity is Severity.MAJOR
    assert issues["b"].element_type is ElementType.ROOM
    assert issues["k"].kind is IssueKind.CHECK
    assert "s" not in issues


def test_ceiling_height_depends_on_habitability() -> None:
    plan = _plan(rooms=[
        room("b", "Bedroom", [(0.0, 0.0), (3.0, 3.0)], ceiling_height=2.2),
        room("w", "Bathroom", [(0.0, 0.0), (2.0, 2.0)], ceiling_height=2.2),
        room("x", "Office", [(0.0, 0.0), (3.0, 3.0)], ceiling_height=None),
    ])
    issues = {i.element_id: i for i in _run(RuleCeilingHeight(), plan)}
    assert issues["b"].kind is IssueKind.VIOLATION
    assert issues["b"].severity is Severity.CRITICAL
    assert issues["w"].kind is IssueKind.CHECK
    assert "x" not in issues


def test_natural_light_needs_nearby_exterior_glazing() -> None:
    dark = RoomZone(id="r", label="Bedroom", type=RoomType.BEDROOM, area=12.0, center=Point(6.0, 2.0))
    (issue,) = _run(RuleNaturalLight(), _plan(rooms=[dark]))
    assert issue.kind is IssueKind.VIOLATION
    assert issue.code == "BR23-374"

    lit = _plan(rooms=[dark], openings=[window("w", "e1", 5.0, width=2.0, height=1.5)])
    (issue,) = _run(RuleNaturalLight(), lit)
    assert issue.kind is IssueKind.CHECK


def test_natural_light_ignores_interior_windows() -> None:
    dark = RoomZone(id="r", label="Office", type=RoomType.OFFICE, area=12.0, center=Point(6.0, 5.0))
    plan = _plan(
        rooms=[dark],
        walls=[wall("i", (6.0, 0.0), (6.0, 10.0))],
        openings=[window("w", "i", 4.0, width=3.0, height=2.0)],
    )
    (issue,) = _run(RuleNaturalLight(), plan)
    assert issue.kind is IssueKind.VIOLATION


def test_wall_connectivity_reports_every_loose_end() -> None:
    plan = _plan(walls=[wall("stub", (3.0, 3.0), (5.0, 3.0))])
    issues = _run(RuleWallConnectivity(), plan)
    assert len(issues) == 2
    assert {i.element_id for i in issues} == {"stub"}
    assert all(i.kind is IssueKind.WARNING and i.severity is Severity.MINOR for i in issues)


def test_opening_reference_must_resolve() -> None:
    plan = _plan(openings=[door("ghost", "nope", 1.0)])
    (issue,) = _run(RuleOpeningReference(), plan)
    assert issue.kind is IssueKind.VIOLATION
    assert issue.severity is Severity.CRITICAL
    assert issue.element_id == "ghost"


def test_rescue_window_for_bedrooms() -> None:
    bedroom = RoomZone(id="b", label="Bedroom", type=RoomType.BEDROOM, area=12.0, center=Point(6.0, 2.0))
    (missing,) = _run(RuleRescueWindow(), _plan(rooms=[bedroom]))
    assert missing.kind is IssueKind.WARNING
    assert missing.severity is Severity.MAJOR

    high_sill = window("w", "e1", 5.0, width=1.0, height=1.0, sill_height=1.5)
    (still_missing,) = _run(RuleRescueWindow(), _plan(rooms=[bedroom], openings=[high_sill]))
    assert still_missing.kind is IssueKind.WARNING

    good = window("w", "e1", 5.0, width=1.0, height=1.0)
    (ok,) = _run(RuleRescueWindow(), _plan(rooms=[bedroom], openings=[good]))
    assert ok.kind is IssueKind.CHECK


def test_tagged_rescue_window_that_is_undersized_is_a_violation() -> None:
    tiny = window("w", "e2", 2.0, width=0.5, height=0.6, tag="Rescue window")
    issues = _run(RuleRescueWindow(), _plan(openings=[tiny]))
    assert [i.code for i in issues] == ["BR18-rescue-size"]
    assert issues[0].severity is Severity.CRITICAL


def _bathroom_plan(bath_door: Opening) -> Plan:
    bath = RoomZone(id="bath", label="Bathroom", type=RoomType.BATHROOM, area=4.0, center=Point(2.0, 1.0))
    return _plan(rooms=[bath], walls=[wall("b1", (0.0, 2.0), (4.0, 2.0))], openings=[bath_door])


def test_bathroom_door_swing_direction_is_authoritative() -> None:
    inward = door("bd", "b1", 1.0, swing_direction=SwingDirection.INWARD)
    (issue,) = _run(RuleBathroomDoorSwing(), _bathroom_plan(inward))
    assert issue.kind is IssueKind.VIOLATION
    assert issue.code == "BR18-6.4"

    outward = door("bd", "b1", 1.0, swing_direction=SwingDirection.OUTWARD)
    (issue,) = _run(RuleBathroomDoorSwing(), _bathroom_plan(outward))
    assert issue.kind is IssueKind.CHECK

    unknown = door("bd", "b1", 1.0, swing_direction=None)
    (issue,) = _run(RuleBathroomDoorSwing(), _bathroom_plan(unknown))
    assert issue.kind is IssueKind.WARNING
    assert issue.severity is Severity.MAJOR


def test_sliding_bathroom_door_has_no_swing_problem() -> None:
    sliding = Opening(id="bd", wall_id="b1", type=OpeningType.SLIDING_DOOR, width=0.9, dist_from_start=1.0)
    (issue,) = _run(RuleBathroomDoorSwing(), _bathroom_plan(sliding))
    assert issue.kind is IssueKind.CHECK


def test_threshold_height_and_missing_values() -> None:
    plan = _plan(openings=[
        door("high", "e2", 1.0, threshold_height=0.05),
        door("unknown1", "e2", 3.0, threshold_height=None),
        door("unknown2", "e2", 5.0, threshold_height=None),
    ])
    issues = _run(RuleThresholdHeight(), plan)
    violations = [i for i in issues if i.kind is IssueKind.VIOLATION]
    warnings = [i for i in issues if i.kind is IssueKind.WARNING]
    assert [i.element_id for i in violations] == ["high"]
    assert len(warnings) == 1
    assert warnings[0].message.startswith("2 door(s) missing threshold height")


def test_corridor_width_from_polygon_and_area_fallback() -> None:
    plan = _plan(rooms=[
        room("narrow", "Hallway", [(0.0, 0.0), (0.8, 5.0)]),
        room("tight", "Corridor", [(0.0, 0.0), (0.95, 5.0)]),
        room("wide", "Entry", [(0.0, 0.0), (1.5, 3.0)]),
        RoomZone(id="blind", label="Gang", type=RoomType.HALLWAY, area=1.5, center=Point(1.0, 1.0)),
    ])
    issues = {i.element_id: i for i in _run(RuleCorridorWidth(), plan)}
    assert issues["narrow"].kind is IssueKind.VIOLATION
    assert issues["narrow"].code == "BR18-3.2.1"
    assert issues["tight"].kind is IssueKind.WARNING
    assert issues["wide"].kind is IssueKind.CHECK
    assert issues["blind"].kind is IssueKind.WARNING


def test_technical_room_presence() -> None:
    (issue,) = _run(RuleTechnicalRoom(), _plan())
    assert issue.kind is IssueKind.WARNING
    assert issue.code == "BR18-tech-room"

    plan = _plan(rooms=[room("t", "Teknikrum", [(0.0, 0.0), (1.0, 1.5)])])
    (issue,) = _run(RuleTechnicalRoom(), plan)
    assert issue.code == "BR18-tech-room-size"
    assert issue.kind is IssueKind.WARNING


def test_stair_geometry_formula() -> None:
    good = RoomZone(
        id="s", label="Stairs", type=RoomType.STAIRS, area=3.0, center=Point(1.0, 1.0),
        stairs=StairGeometry(rise=0.18, tread=0.26, headroom=2.1),
    )
    issues = _run(RuleStairs(), _plan(rooms=[good]))
    assert _kinds(issues) == [IssueKind.CHECK, IssueKind.CHECK]

    steep = RoomZone(
        id="s", label="Stairs", type=RoomType.STAIRS, area=2.0, center=Point(1.0, 1.0),
        stairs=StairGeometry(rise=0.22, tread=0.20),
    )
    issues = _run(RuleStairs(), _plan(rooms=[steep]))
    assert _kinds(issues) == [IssueKind.VIOLATION, IssueKind.VIOLATION]
    assert issues[1].code == "BR18-stairs-geometry"
    assert "Rise 22.0cm" in issues[1].message

    unknown = RoomZone(id="s", label="Trappe", type=RoomType.STAIRS, area=3.0, center=Point(1.0, 1.0))
    issues = _run(RuleStairs(), _plan(rooms=[unknown]))
    assert _kinds(issues) == [IssueKind.CHECK, IssueKind.WARNING]


def test_rules_on_clean_house_only_produce_checks() -> None:
    ctx = build_context(rectangle_house(), BR18)
    for rule in (RuleNaturalLight(), RuleRescueWindow(), RuleBathroomDoorSwing(), RuleThresholdHeight()):
        assert all(i.kind is IssueKind.CHECK for i in rule.evaluate(ctx)), rule.id
