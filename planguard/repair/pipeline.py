from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from planguard.models.plan import Plan, WallSegment
from planguard.repair.config import DEFAULT_REPAIR_CONFIG, RepairConfig
from planguard.repair.stages import DANGLING_CORRECTION, STAGES, StageReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepairReport:
    total_fixes: int
    stages: List[StageReport]
    final_wall_count: int
    dangling_passes: int
    warnings: List[str] = field(default_factory=list)

    @property
    def fix_log(self) -> List[str]:
        return [i.message for s in self.stages for i in s.issues if i.fixed]

    def stage(self, name: str) -> StageReport:
        for s in self.stages:
            if s.stage == name:
                return s
        raise KeyError(name)

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_fixes": self.total_fixes,
            "stages": [s.to_dict() for s in self.stages],
            "final_wall_count": self.final_wall_count,
            "dangling_passes": self.dangling_passes,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class RepairResult:
    plan: Plan
    report: RepairReport


def repair_walls(
    walls: Sequence[WallSegment],
    config: Optional[RepairConfig] = None,
) -> Tuple[Tuple[WallSegment, ...], RepairReport]:
    """Run the six repair stages in order; each stage sees only the previous stage's output."""
    cfg = config or DEFAULT_REPAIR_CONFIG
    current: Tuple[WallSegment, ...] = tuple(walls)
    reports: List[StageReport] = []
    warnings: List[str] = []
    total = 0
    for stage in STAGES:
        result = stage(current, cfg)
        current = result.walls
        reports.append(result.report)
        warnings.extend(result.report.warnings)
        total += result.report.fixes_applied
        logger.debug("%s: %d fix(es), %d wall(s)", result.report.stage, result.report.fixes_applied, len(current))

    passes = 0
    for r in reports:
        if r.stage == DANGLING_CORRECTION:
            passes = int(r.details.get("passes", 0))
    report = RepairReport(
        total_fixes=total,
        stages=reports,
        final_wall_count=len(current),
        dangling_passes=passes,
        warnings=warnings,
    )
    return current, report


def repair_plan(plan: Plan, config: Optional[RepairConfig] = None) -> RepairResult:
    walls, report = repair_walls(plan.walls, config)
    before = {w.id for w in plan.walls}
    after = {w.id for w in walls}
    orphaned = [
        f"Opening {o.label} lost its host wall {o.wall_id} during repair"
        for o in plan.openings
        if o.wall_id in before and o.wall_id not in after
    ]
    if orphaned:
        report = replace(report, warnings=report.warnings + orphaned)
    for msg in report.warnings:
        logger.warning("repair: %s", msg)
    logger.info(
        "Repaired plan %r: %d fix(es), %d wall(s) remaining",
        plan.metadata.title,
        report.total_fixes,
        report.final_wall_count,
    )
    return RepairResult(plan=plan.with_walls(walls), report=report)
