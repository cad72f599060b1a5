from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from planguard.compliance.context import build_context
from planguard.compliance.issues import ComplianceIssue, ComplianceReport, IssueKind
from planguard.compliance.rules import (
    ComplianceRule,
    RuleBathroomDoorSwing,
    RuleBathroomTurning,
    RuleCeilingHeight,
    RuleCorridorWidth,
    RuleDoorWidth,
    RuleEgress,
    RuleNaturalLight,
    RuleOpeningReference,
    RuleRescueWindow,
    RuleRoomArea,
    RuleStairs,
    RuleTechnicalRoom,
    RuleThresholdHeight,
    RuleWallConnectivity,
)
from planguard.compliance.standards import BR18, BuildingCodeStandards
from planguard.models.plan import Plan

logger = logging.getLogger(__name__)


def default_rules() -> List[ComplianceRule]:
    """All building-code rules, in report order."""
    return [
        RuleRoomArea(),
        RuleCeilingHeight(),
        RuleDoorWidth(),
        RuleNaturalLight(),
        RuleWallConnectivity(),
        RuleOpeningReference(),
        RuleEgress(),
        RuleRescueWindow(),
        RuleBathroomTurning(),
        RuleCorridorWidth(),
        RuleTechnicalRoom(),
        RuleBathroomDoorSwing(),
        RuleThresholdHeight(),
        RuleStairs(),
    ]


@dataclass
class ComplianceEngine:
    rules: List[ComplianceRule] = field(default_factory=default_rules)
    standards: BuildingCodeStandards = BR18
    window_association: str = "radius"

    def run(self, plan: Plan) -> ComplianceReport:
        ctx = build_context(plan, self.standards, self.window_association)
        buckets: Dict[IssueKind, List[ComplianceIssue]] = {k: [] for k in IssueKind}
        for rule in self.rules:
            for issue in rule.evaluate(ctx):
                buckets[issue.kind].append(issue)
        report = ComplianceReport(
            violations=buckets[IssueKind.VIOLATION],
            warnings=buckets[IssueKind.WARNING],
            checks=buckets[IssueKind.CHECK],
            egress=ctx.egress,
        )
        logger.info(
            "Compliance (%s) for %r: %s, %d violation(s), %d warning(s), %d check(s)",
            self.standards.name,
            plan.metadata.title,
            "passing" if report.passing else "failing",
            len(report.violations),
            len(report.warnings),
            len(report.checks),
        )
        return report


def check_compliance(
    plan: Plan,
    standards: BuildingCodeStandards = BR18,
    window_association: str = "radius",
) -> ComplianceReport:
    return ComplianceEngine(standards=standards, window_association=window_association).run(plan)
