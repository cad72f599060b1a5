from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from planguard.compliance.engine import check_compliance
from planguard.compliance.suggestions import count_by_severity, prioritize_suggestions, suggest_fixes
from planguard.geometry.doctor import geometry_health_report, render_ascii
from planguard.models.plan import Plan, PlanFormatError, plan_to_dict, plans_from_blueprint
from planguard.repair.config import RepairConfig
from planguard.repair.pipeline import repair_plan
from planguard.runner import assess_plan
from planguard.testing.plans import SAMPLE_PLANS
from planguard.validation.gate import enforce_plan, format_validation_report, validate_plan
from planguard.validation.issues import PlanRejectedError
from planguard.validation.policy import ValidationPolicy

logger = logging.getLogger(__name__)


def _load_plans(path_arg: str) -> Optional[List[Plan]]:
    path = Path(path_arg).expanduser().resolve()
    if not path.exists():
        print(f"[ERROR] File not found: {path}")
        return None
    if not path.is_file():
        print(f"[ERROR] Not a file: {path}")
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        plans = plans_from_blueprint(data)
        logger.debug("Loaded %d sheet(s) from %s", len(plans), path)
        return plans
    except json.JSONDecodeError as exc:
        print(f"[ERROR] Invalid JSON in {path}: {exc}")
    except PlanFormatError as exc:
        print(f"[ERROR] Invalid plan document {path}: {exc}")
    return None


def _write_plans(plans: List[Plan], out: str) -> Path:
    outpath = Path(out).expanduser().resolve()
    outpath.parent.mkdir(parents=True, exist_ok=True)
    if len(plans) == 1:
        doc: object = plan_to_dict(plans[0])
    else:
        doc = {"sheets": [plan_to_dict(p) for p in plans]}
    outpath.write_text(json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8")
    return outpath


def _dump(obj: object) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _title(plan: Plan, index: int) -> str:
    return plan.metadata.title or f"Sheet {index + 1}"


def _repair_config(args: argparse.Namespace) -> RepairConfig:
    return RepairConfig(
        grid_size=args.grid_size,
        snap_tolerance=args.snap_tolerance,
        max_passes=args.max_passes,
        angle_tolerance=args.angle_tolerance,
        enforce_orthogonal=not args.no_orthogonal,
        minimum_wall_length=args.min_wall_length,
    )


def _policy(args: argparse.Namespace) -> ValidationPolicy:
    return ValidationPolicy(
        reject_on_blocker=True,
        reject_on_critical=bool(args.reject_on_critical),
        target_area=args.target_area,
        grid_size=args.grid_size,
    )


def _cmd_demo(args: argparse.Namespace) -> int:
    plan = SAMPLE_PLANS[args.plan]()
    outpath = _write_plans([plan], args.out)
    print(f"Saved demo plan '{plan.metadata.title}' to: {outpath}")
    return 0


def _cmd_repair(args: argparse.Namespace) -> int:
    plans = _load_plans(args.file)
    if plans is None:
        return 2
    try:
        config = _repair_config(args)
    except ValueError as exc:
        print(f"[ERROR] {exc}")
        return 2

    results = [repair_plan(p, config) for p in plans]
    if args.json:
        _dump([r.report.to_dict() for r in results])
    else:
        print("Planguard Repair")
        for i, r in enumerate(results):
            print(f"  {_title(r.plan, i)}: {r.report.total_fixes} fix(es), {r.report.final_wall_count} wall(s)")
            for stage in r.report.stages:
                print(f"    {stage.stage}: {stage.fixes_applied}")
            for msg in r.report.warnings:
                print(f"    WARNING: {msg}")
    if args.out:
        outpath = _write_plans([r.plan for r in results], args.out)
        if not args.json:
            print(f"  Saved: {outpath}")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    plans = _load_plans(args.file)
    if plans is None:
        return 2
    if args.repair:
        plans = [repair_plan(p).plan for p in plans]

    rc = 0
    payload = []
    for i, plan in enumerate(plans):
        report = check_compliance(plan, window_association=args.window_association)
        if not report.passing:
            rc = 1
        suggestions = prioritize_suggestions(suggest_fixes(report))
        if args.json:
            payload.append({"compliance": report.to_dict(), "suggestions": [s.to_dict() for s in suggestions]})
            continue
        s = report.summary
        counts = count_by_severity(report)
        print(f"{_title(plan, i)}: {'PASSING' if report.passing else 'FAILING'}")
        print(
            f"  Violations: {s['total_violations']}  Warnings: {s['total_warnings']}  Checks: {s['total_checks']}"
            f"  (critical {counts['critical']}, major {counts['major']}, minor {counts['minor']})"
        )
        for issue in report.violations:
            print(f"  [{issue.code}] {issue.message}")
        if report.egress is not None and report.egress.exit_count:
            print(f"  Egress: max {report.egress.max_distance_to_exit:.1f}m to nearest exit")
        for sug in suggestions[: args.suggestions]:
            print(f"  -> {sug.description}")
    if args.json:
        _dump(payload)
    return rc


def _cmd_validate(args: argparse.Namespace) -> int:
    plans = _load_plans(args.file)
    if plans is None:
        return 2
    if args.repair:
        plans = [repair_plan(p).plan for p in plans]
    try:
        policy = _policy(args)
    except ValueError as exc:
        print(f"[ERROR] {exc}")
        return 2

    rc = 0
    payload = []
    for plan in plans:
        if args.enforce:
            try:
                result = enforce_plan(plan, policy)
            except PlanRejectedError as exc:
                print(str(exc))
                return 1
        else:
            result = validate_plan(plan, policy.reporting())
        if not result.valid:
            rc = 1
        if args.json:
            payload.append(result.to_dict())
        else:
            print(format_validation_report(result))
    if args.json:
        _dump(payload)
    return rc


def _cmd_doctor(args: argparse.Namespace) -> int:
    plans = _load_plans(args.file)
    if plans is None:
        return 2
    payload = []
    for i, plan in enumerate(plans):
        health = geometry_health_report(plan.walls, grid_size=args.grid_size)
        if args.json:
            payload.append(health.to_dict())
            continue
        b = health.bounds
        print(f"{_title(plan, i)}: {health.wall_count} wall(s)")
        print(f"  Bounds: ({b.min_x:.2f}, {b.min_y:.2f}) - ({b.max_x:.2f}, {b.max_y:.2f})")
        print(
            f"  Endpoints: {len(health.endpoints)} ({len(health.dangling)} dangling, "
            f"{len(health.junctions)} junctions)"
        )
        print(f"  Grid compliance: {health.grid_compliance:.1f}%")
        gap = "n/a" if health.exterior_gap == float("inf") else f"{health.exterior_gap:.3f}m gap"
        print(f"  Exterior loop: {'closed' if health.exterior_closed else 'OPEN'} ({gap})")
        for issue in health.issues:
            print(f"  - {issue.message}")
        if args.plot:
            print(render_ascii(plan.walls))
    if args.json:
        _dump(payload)
    return 0


def _cmd_assess(args: argparse.Namespace) -> int:
    plans = _load_plans(args.file)
    if plans is None:
        return 2
    assessments = [assess_plan(p) for p in plans]
    doc = [a.to_dict() for a in assessments]
    if args.out:
        outpath = Path(args.out).expanduser().resolve()
        outpath.parent.mkdir(parents=True, exist_ok=True)
        outpath.write_text(json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"Saved assessment to: {outpath}")
    else:
        _dump(doc)
    return 0 if all(a.accepted for a in assessments) else 1


def _add_grid_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--grid-size", type=float, default=0.1, help="Grid size in meters (default: 0.1)")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="planguard")
    p.add_argument("-v", "--verbose", action="store_true", help="Log pipeline progress to stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    demo = sub.add_parser("demo", help="Write a sample plan document to disk.")
    demo.add_argument("--out", default="out/demo_plan.json", help="Output .json path")
    demo.add_argument("--plan", choices=sorted(SAMPLE_PLANS), default="house", help="Which sample plan")
    demo.set_defaults(func=_cmd_demo)

    r = sub.add_parser("repair", help="Run the geometry repair pipeline on a plan document.")
    r.add_argument("file", help="Path to plan .json")
    r.add_argument("--out", help="Write the repaired plan document here")
    _add_grid_args(r)
    r.add_argument("--snap-tolerance", type=float, default=0.02)
    r.add_argument("--max-passes", type=int, default=10)
    r.add_argument("--angle-tolerance", type=float, default=2.0)
    r.add_argument("--min-wall-length", type=float, default=0.3)
    r.add_argument("--no-orthogonal", action="store_true", help="Skip angle normalization")
    r.add_argument("--json", action="store_true", help="Print the repair report as JSON")
    r.set_defaults(func=_cmd_repair)

    c = sub.add_parser("check", help="Evaluate BR18/BR23 compliance.")
    c.add_argument("file", help="Path to plan .json")
    c.add_argument("--repair", action="store_true", help="Repair geometry first")
    c.add_argument("--window-association", choices=("radius", "polygon"), default="radius")
    c.add_argument("--suggestions", type=int, default=5, help="Number of fix suggestions to print")
    c.add_argument("--json", action="store_true")
    c.set_defaults(func=_cmd_check)

    v = sub.add_parser("validate", help="Run the validation gate.")
    v.add_argument("file", help="Path to plan .json")
    v.add_argument("--repair", action="store_true", help="Repair geometry first")
    v.add_argument("--enforce", action="store_true", help="Reject (exit 1) with a bounded issue list")
    v.add_argument("--reject-on-critical", action="store_true")
    v.add_argument("--target-area", type=float, default=None, help="Target total area in m²")
    _add_grid_args(v)
    v.add_argument("--json", action="store_true")
    v.set_defaults(func=_cmd_validate)

    d = sub.add_parser("doctor", help="Print a geometry health report.")
    d.add_argument("file", help="Path to plan .json")
    _add_grid_args(d)
    d.add_argument("--plot", action="store_true", help="Also print an ASCII plot of the walls")
    d.add_argument("--json", action="store_true")
    d.set_defaults(func=_cmd_doctor)

    a = sub.add_parser("assess", help="Repair, check and validate in one pass; emit JSON.")
    a.add_argument("file", help="Path to plan .json")
    a.add_argument("--out", help="Write the assessment JSON here")
    a.set_defaults(func=_cmd_assess)

    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
