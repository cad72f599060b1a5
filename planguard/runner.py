from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from planguard.compliance.engine import ComplianceEngine
from planguard.compliance.issues import ComplianceReport
from planguard.compliance.standards import BR18, BuildingCodeStandards
from planguard.compliance.suggestions import FixSuggestion, prioritize_suggestions, suggest_fixes
from planguard.models.plan import Plan, plan_to_dict
from planguard.repair.config import RepairConfig
from planguard.repair.pipeline import RepairResult, repair_plan
from planguard.validation.gate import enforce_plan, validate_plan
from planguard.validation.issues import ValidationResult
from planguard.validation.policy import REPORTING_POLICY, ValidationPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Assessment:
    repair: RepairResult
    compliance: ComplianceReport
    validation: ValidationResult
    suggestions: List[FixSuggestion] = field(default_factory=list)

    @property
    def plan(self) -> Plan:
        return self.repair.plan

    @property
    def accepted(self) -> bool:
        return self.validation.valid

    def to_dict(self) -> Dict[str, object]:
        return {
            "accepted": self.accepted,
            "plan": plan_to_dict(self.plan),
            "repair": self.repair.report.to_dict(),
            "compliance": self.compliance.to_dict(),
            "validation": self.validation.to_dict(),
            "suggestions": [s.to_dict() for s in self.suggestions],
        }


def assess_plan(
    plan: Plan,
    repair_config: Optional[RepairConfig] = None,
    standards: BuildingCodeStandards = BR18,
    policy: ValidationPolicy = REPORTING_POLICY,
    window_association: str = "radius",
    enforce: bool = False,
) -> Assessment:
    """
    Repair ``plan``, then run compliance and validation on the repaired snapshot.

    With ``enforce`` the validation step uses :func:`enforce_plan` and may raise
    :class:`~planguard.validation.issues.PlanRejectedError`; otherwise nothing raises
    on plan content.
    """
    repaired = repair_plan(plan, repair_config)
    compliance = ComplianceEngine(standards=standards, window_association=window_association).run(repaired.plan)
    if enforce:
        validation = enforce_plan(repaired.plan, policy)
    else:
        validation = validate_plan(repaired.plan, policy)
    suggestions = prioritize_suggestions(suggest_fixes(compliance))
    logger.info(
        "Assessed %r: %d repair fix(es), compliance %s, validation %s",
        plan.metadata.title,
        repaired.report.total_fixes,
        "passing" if compliance.passing else "failing",
        "valid" if validation.valid else "invalid",
    )
    return Assessment(repair=repaired, compliance=compliance, validation=validation, suggestions=suggestions)
