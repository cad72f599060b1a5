"""
Planguard compliance

BR18/BR23 building-code rules evaluated against a plan snapshot, egress analysis and
fix suggestions. Findings never raise; they are returned as a report.
"""

from planguard.compliance.engine import ComplianceEngine, check_compliance, default_rules
from planguard.compliance.egress import analyze_egress
from planguard.compliance.issues import (
    ComplianceIssue,
    ComplianceReport,
    EgressAnalysis,
    ElementType,
    IssueKind,
    Severity,
)
from planguard.compliance.standards import BR18, AreaRequirement, BuildingCodeStandards
from planguard.compliance.suggestions import (
    FixSuggestion,
    auto_fixable,
    count_by_severity,
    prioritize_suggestions,
    suggest_fix,
    suggest_fixes,
)

__all__ = [
    "ComplianceEngine",
    "check_compliance",
    "default_rules",
    "analyze_egress",
    "ComplianceIssue",
    "ComplianceReport",
    "EgressAnalysis",
    "ElementType",
    "IssueKind",
    "Severity",
    "BR18",
    "AreaRequirement",
    "BuildingCodeStandards",
    "FixSuggestion",
    "auto_fixable",
    "count_by_severity",
    "prioritize_suggestions",
    "suggest_fix",
    "suggest_fixes",
]
