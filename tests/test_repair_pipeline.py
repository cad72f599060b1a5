from __future__ import annotations

import json

import pytest

from planguard.geometry.grid import is_on_grid
from planguard.models.plan import Point
from planguard.repair import repair_plan, repair_walls
from planguard.repair.stages import DANGLING_CORRECTION, EXTERIOR_LOOP_CLOSURE, SHORT_WALL_ELIMINATION
from planguard.testing.plans import messy_plan, rectangle_house, wall


def test_clean_plan_needs_no_fixes() -> None:
    plan = rectangle_house()
    result = repair_plan(plan)
    assert result.report.total_fixes == 0
    assert result.report.final_wall_count == 7
    assert result.plan == plan
    assert [s.stage for s in result.report.stages] == [
        "Grid Snapping",
        "Angle Normalization",
        "Duplicate Merging",
        "Dangling Correction",
        "Exterior Loop Closure",
        "Short Wall Elimination",
    ]


def test_messy_plan_is_repaired() -> None:
    plan = messy_plan()
    result = repair_plan(plan)
    walls = result.plan.wall_by_id()

    assert "s1" not in walls
    assert result.report.final_wall_count == 6
    assert walls["e4"].end == walls["e1"].start == Point(0.0, 0.0)
    assert walls["i2"].end == Point(11.0, 5.0)
    for w in result.plan.walls:
        for p in (w.start, w.end):
            assert is_on_grid(p.x, 0.1) and is_on_grid(p.y, 0.1)

    assert result.report.stage(EXTERIOR_LOOP_CLOSURE).fixes_applied == 1
    assert result.report.stage(SHORT_WALL_ELIMINATION).fixes_applied == 1
    assert result.report.total_fixes == sum(s.fixes_applied for s in result.report.stages)
    assert any("Opening d2 lost its host wall s1" in w for w in result.report.warnings)


def test_repair_is_idempotent() -> None:
    first = repair_plan(messy_plan())
    second = repair_plan(first.plan)
    assert first.report.total_fixes > 0
    assert second.report.total_fixes == 0
    assert second.plan.walls == first.plan.walls


def test_closing_a_gap_at_a_corner_is_idempotent() -> None:
    walls = [
        wall("e1", (0.0, 0.0), (10.0, 0.0), external=True),
        wall("e2", (10.0, 0.1), (10.0, 8.0), external=True),
        wall("e3", (10.0, 8.0), (0.0, 8.0), external=True),
        wall("e4", (0.0, 8.0), (0.0, 0.0), external=True),
    ]
    first, report = repair_walls(walls)
    assert report.total_fixes == 1
    assert report.stage(EXTERIOR_LOOP_CLOSURE).fixes_applied == 1
    assert first[0].end == first[1].start == Point(10.0, 0.0)
    for w in first:
        assert w.start.x == w.end.x or w.start.y == w.end.y
    second, again = repair_walls(first)
    assert again.total_fixes == 0
    assert second == first


def test_repair_returns_new_plan_and_leaves_input_untouched() -> None:
    plan = messy_plan()
    before = plan.walls
    result = repair_plan(plan)
    assert result.plan is not plan
    assert plan.walls == before
    assert plan.wall_by_id()["e4"].end == Point(0.0, 0.1)
    assert result.plan.openings == plan.openings
    assert result.plan.rooms == plan.rooms


def test_repair_walls_reports_dangling_passes() -> None:
    walls, report = repair_walls(messy_plan().walls)
    assert isinstance(walls, tuple)
    assert report.dangling_passes == report.stage(DANGLING_CORRECTION).details["passes"]
    assert report.stage(DANGLING_CORRECTION).details["converged"] is True
    with pytest.raises(KeyError):
        report.stage("Nope")


def test_repair_report_is_json_ready() -> None:
    report = repair_plan(messy_plan()).report
    data = json.loads(json.dumps(report.to_dict()))
    assert data["total_fixes"] == report.total_fixes
    assert len(data["stages"]) == 6
    assert report.fix_log
    assert data["stages"][0]["issues"][0]["severity"] == "fixed"
