from __future__ import annotations

import logging
from typing import List, Tuple

from planguard.models.plan import Plan
from planguard.validation.issues import (
    PlanRejectedError,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)
from planguard.validation.policy import DEFAULT_POLICY, REPORTING_POLICY, ValidationPolicy
from planguard.validation.rules import (
    RuleAreaConsistency,
    RuleDanglingEndpoints,
    RuleDegenerateWalls,
    RuleDuplicateIds,
    RuleExteriorLoop,
    RuleGridAlignment,
    RuleMinimumWallLength,
    RuleOpeningReferences,
    RuleRoomSizes,
    RuleTotalArea,
    RuleWallThickness,
    ValidationRule,
)

logger = logging.getLogger(__name__)

_BANNER = "═" * 60


def rules_for(policy: ValidationPolicy) -> List[ValidationRule]:
    """Rules enabled by ``policy``, in evaluation order."""
    switched: Tuple[Tuple[bool, ValidationRule], ...] = (
        (policy.check_grid, RuleGridAlignment()),
        (policy.check_loops, RuleExteriorLoop()),
        (policy.check_dangling, RuleDanglingEndpoints()),
        (policy.check_references, RuleOpeningReferences()),
        (True, RuleDegenerateWalls()),
        (True, RuleMinimumWallLength()),
        (True, RuleWallThickness()),
        (True, RuleDuplicateIds()),
        (policy.check_areas, RuleTotalArea()),
        (policy.check_areas, RuleRoomSizes()),
        (policy.check_areas, RuleAreaConsistency()),
    )
    return [rule for enabled, rule in switched if enabled]


def _summary(valid: bool, blockers: int, critical: int, warnings: int, reject_on_critical: bool) -> str:
    if valid:
        text = "✓ Validation passed"
        if warnings:
            text += f" with {warnings} warnings"
        return text
    parts: List[str] = []
    if blockers:
        parts.append(f"{blockers} blockers")
    if critical and reject_on_critical:
        parts.append(f"{critical} critical")
    return "✗ Validation failed: " + ", ".join(parts)


def evaluate_plan(plan: Plan, policy: ValidationPolicy = DEFAULT_POLICY) -> ValidationResult:
    issues: List[ValidationIssue] = []
    for rule in rules_for(policy):
        issues.extend(rule.evaluate(plan, policy))

    blockers = sum(1 for i in issues if i.severity is ValidationSeverity.BLOCKER)
    critical = sum(1 for i in issues if i.severity is ValidationSeverity.CRITICAL)
    warnings = sum(1 for i in issues if i.severity is ValidationSeverity.WARNING)
    valid = blockers == 0 and (critical == 0 if policy.reject_on_critical else True)
    return ValidationResult(
        valid=valid,
        issues=issues,
        blockers=blockers,
        critical=critical,
        warnings=warnings,
        summary=_summary(valid, blockers, critical, warnings, policy.reject_on_critical),
    )


def validate_plan(plan: Plan, policy: ValidationPolicy = REPORTING_POLICY) -> ValidationResult:
    """Reporting entry point: ``valid`` follows ``policy`` but nothing is ever raised."""
    result = evaluate_plan(plan, policy)
    logger.info("Validation of %r: %s", plan.metadata.title, result.summary)
    return result


def enforce_plan(plan: Plan, policy: ValidationPolicy = DEFAULT_POLICY) -> ValidationResult:
    """
    Validate ``plan`` and reject it when ``policy`` demands.

    Raises :class:`PlanRejectedError` when the result is invalid and the policy rejects on
    blockers or criticals. The error carries at most ``policy.max_messages`` lines, blockers
    before criticals, meant as feedback for regeneration.
    """
    result = evaluate_plan(plan, policy)
    if not result.valid and policy.rejects:
        offending = result.offending(policy.reject_on_critical, policy.max_messages)
        logger.warning("Rejected plan %r: %s", plan.metadata.title, result.summary)
        raise PlanRejectedError(result, [i.line for i in offending])
    logger.info("Validation of %r: %s", plan.metadata.title, result.summary)
    return result


def format_validation_report(result: ValidationResult, max_warnings: int = 5) -> str:
    lines: List[str] = [
        _BANNER,
        "BLUEPRINT VALIDATION REPORT",
        _BANNER,
        "",
        f"Status: {'✓ PASSED' if result.valid else '✗ FAILED'}",
        f"Blockers: {result.blockers}",
        f"Critical: {result.critical}",
        f"Warnings: {result.warnings}",
        "",
    ]
    if not result.issues:
        lines.extend(["✓ No issues found", "", _BANNER])
        return "\n".join(lines)

    lines.extend(["Issues by Severity:", ""])
    for severity, title in (
        (ValidationSeverity.BLOCKER, "BLOCKERS:"),
        (ValidationSeverity.CRITICAL, "CRITICAL:"),
    ):
        group = result.by_severity(severity)
        if group:
            lines.append(title)
            lines.extend(f"  {i.line}" for i in group)
            lines.append("")

    warnings = result.by_severity(ValidationSeverity.WARNING)
    if warnings:
        lines.append("WARNINGS:")
        lines.extend(f"  {i.line}" for i in warnings[:max_warnings])
        if len(warnings) > max_warnings:
            lines.append(f"  ... and {len(warnings) - max_warnings} more warnings")
        lines.append("")
    lines.append(_BANNER)
    return "\n".join(lines)
