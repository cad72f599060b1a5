from __future__ import annotations

from dataclasses import replace

import pytest

from planguard.models.plan import Plan
from planguard.testing.plans import rectangle_house, small_plan, wall
from planguard.validation import (
    DEFAULT_POLICY,
    REPORTING_POLICY,
    PlanRejectedError,
    ValidationPolicy,
    ValidationSeverity,
    enforce_plan,
    format_validation_report,
    rules_for,
    validate_plan,
    validation_policy_from_dict,
)


def _with_walls(plan: Plan, *extra) -> Plan:
    return plan.with_walls(plan.walls + tuple(extra))


def _off_grid_walls(n: int):
    return [wall(f"x{i}", (i + 0.05, 20.0), (i + 0.05, 21.0)) for i in range(n)]


def test_clean_house_is_valid() -> None:
    result = validate_plan(rectangle_house())
    assert result.valid
    assert result.issues == []
    assert result.summary == "✓ Validation passed"
    assert enforce_plan(rectangle_house()).valid


def test_small_plan_fails_total_area() -> None:
    result = validate_plan(small_plan())
    assert not result.valid
    assert (result.blockers, result.critical, result.warnings) == (1, 0, 0)
    (issue,) = result.issues
    assert issue.id == "AREA-001"
    assert issue.name == "Total Area Too Small"
    assert result.summary == "✗ Validation failed: 1 blockers"


def test_enforce_rejects_with_feedback() -> None:
    with pytest.raises(PlanRejectedError) as exc:
        enforce_plan(small_plan())
    err = exc.value
    assert isinstance(err, ValueError)
    assert err.result.blockers == 1
    assert err.messages == [
        "[AREA-001] Total room area (40.0m²) is less than 60% of target (100m²). Minimum acceptable: 60.0m²"
    ]
    text = str(err)
    assert text.startswith("Blueprint validation failed: ✗ Validation failed: 1 blockers\n\nIssues:\n  [AREA-001]")


def test_reporting_policy_never_raises() -> None:
    result = enforce_plan(small_plan(), REPORTING_POLICY)
    assert not result.valid
    assert not REPORTING_POLICY.rejects


def test_policy_target_overrides_metadata() -> None:
    assert validate_plan(small_plan(), ValidationPolicy(target_area=45.0)).valid
    assert validate_plan(small_plan(target_area=None)).valid


def test_reject_on_critical() -> None:
    plan = _with_walls(rectangle_house(), wall("stub", (3.0, 3.0), (5.0, 3.0)))
    lenient = enforce_plan(plan)
    assert lenient.valid
    assert lenient.critical == 2

    strict = ValidationPolicy(reject_on_critical=True)
    with pytest.raises(PlanRejectedError) as exc:
        enforce_plan(plan, strict)
    assert exc.value.result.summary == "✗ Validation failed: 2 critical"
    assert all(m.startswith("[GEO-003] Wall stub has dangling endpoint") for m in exc.value.messages)


def test_rejection_messages_are_capped_and_blockers_first() -> None:
    plan = _with_walls(rectangle_house(), *_off_grid_walls(15))
    with pytest.raises(PlanRejectedError) as exc:
        enforce_plan(plan, ValidationPolicy(reject_on_critical=True))
    messages = exc.value.messages
    assert len(messages) == 10
    assert all(m.startswith("[GEO-001]") for m in messages)

    with pytest.raises(PlanRejectedError) as exc:
        enforce_plan(plan, ValidationPolicy(max_messages=3))
    assert len(exc.value.messages) == 3


def test_check_flags_switch_rule_groups() -> None:
    assert [r.id for r in rules_for(DEFAULT_POLICY)] == [
        "GEO-001", "GEO-002", "GEO-003", "GEO-004", "GEO-006", "GEO-005", "GEO-007", "GEO-008",
        "AREA-001", "AREA-002", "AREA-003",
    ]
    relaxed = ValidationPolicy(check_grid=False, check_areas=False)
    assert [r.id for r in rules_for(relaxed)] == [
        "GEO-002", "GEO-003", "GEO-004", "GEO-006", "GEO-005", "GEO-007", "GEO-008",
    ]

    plan = _with_walls(rectangle_house(), *_off_grid_walls(2))
    assert validate_plan(plan, relaxed).by_id("GEO-001") == []


def test_invalid_policies_are_rejected() -> None:
    with pytest.raises(ValueError):
        ValidationPolicy(grid_size=0.0)
    with pytest.raises(ValueError):
        ValidationPolicy(max_messages=0)
    with pytest.raises(ValueError):
        ValidationPolicy(target_area=-1.0)


def test_policy_from_dict_accepts_both_spellings() -> None:
    policy = validation_policy_from_dict({"rejectOnCritical": True, "target_area": 80.0, "gridSize": 0.05})
    assert policy.reject_on_critical
    assert policy.target_area == 80.0
    assert policy.grid_size == 0.05
    assert policy.to_dict()["reject_on_blocker"] is True
    with pytest.raises(ValueError, match="Unknown validation option"):
        validation_policy_from_dict({"strict": True})


def test_report_for_clean_plan() -> None:
    text = format_validation_report(validate_plan(rectangle_house()))
    lines = text.splitlines()
    assert lines[0] == "═" * 60
    assert "BLUEPRINT VALIDATION REPORT" in lines
    assert "Status: ✓ PASSED" in lines
    assert "✓ No issues found" in lines


def test_report_truncates_warnings() -> None:
    house = rectangle_house()
    thin = house.with_walls([replace(w, thickness=0.05) for w in house.walls])
    result = validate_plan(thin)
    assert result.valid
    assert result.summary == "✓ Validation passed with 7 warnings"
    assert len(result.by_severity(ValidationSeverity.WARNING)) == 7

    text = format_validation_report(result)
    assert "WARNINGS:" in text
    assert "  ... and 2 more warnings" in text
    assert "BLOCKERS:" not in text


def test_report_lists_blockers() -> None:
    result = validate_plan(small_plan())
    text = format_validation_report(result)
    assert "Status: ✗ FAILED" in text
    assert "BLOCKERS:\n  [AREA-001] Total room area (40.0m²)" in text


def test_result_serializes() -> None:
    plan = _with_walls(rectangle_house(), wall("stub", (3.0, 3.0), (5.0, 3.0)))
    data = validate_plan(plan).to_dict()
    assert data["valid"] is True
    assert data["critical"] == 2
    first = data["issues"][0]
    assert first["id"] == "GEO-003"
    assert first["severity"] == "critical"
    assert first["elementId"] == "stub"
    assert first["location"] == {"x": 3.0, "y": 3.0}
