"""
Planguard validation gate

Severity-tiered topology and sanity checks with policy-driven rejection.
"""

from planguard.validation.gate import enforce_plan, evaluate_plan, format_validation_report, rules_for, validate_plan
from planguard.validation.issues import PlanRejectedError, ValidationIssue, ValidationResult, ValidationSeverity
from planguard.validation.policy import (
    DEFAULT_POLICY,
    REPORTING_POLICY,
    ValidationPolicy,
    validation_policy_from_dict,
)

__all__ = [
    "enforce_plan",
    "evaluate_plan",
    "format_validation_report",
    "rules_for",
    "validate_plan",
    "PlanRejectedError",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
    "DEFAULT_POLICY",
    "REPORTING_POLICY",
    "ValidationPolicy",
    "validation_policy_from_dict",
]
