from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from planguard.models.plan import Point


class ValidationSeverity(Enum):
    BLOCKER = "blocker"
    CRITICAL = "critical"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    id: str
    name: str
    severity: ValidationSeverity
    message: str
    element_id: Optional[str] = None
    element_type: str = "general"
    location: Optional[Point] = None

    @property
    def line(self) -> str:
        return f"[{self.id}] {self.message}"

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "severity": self.severity.value,
            "elementType": self.element_type,
            "message": self.message,
        }
        if self.element_id is not None:
            out["elementId"] = self.element_id
        if self.location is not None:
            out["location"] = self.location.to_dict()
        return out


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    blockers: int = 0
    critical: int = 0
    warnings: int = 0
    summary: str = ""

    def by_severity(self, severity: ValidationSeverity) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity is severity]

    def by_id(self, rule_id: str) -> List[ValidationIssue]:
        return [i for i in self.issues if i.id == rule_id]

    def offending(self, include_critical: bool, limit: int = 10) -> List[ValidationIssue]:
        """Blockers first, then criticals when requested, truncated to ``limit``."""
        out = self.by_severity(ValidationSeverity.BLOCKER)
        if include_critical:
            out = out + self.by_severity(ValidationSeverity.CRITICAL)
        return out[:limit]

    def to_dict(self) -> Dict[str, object]:
        return {
            "valid": self.valid,
            "issues": [i.to_dict() for i in self.issues],
            "blockers": self.blockers,
            "critical": self.critical,
            "warnings": self.warnings,
            "summary": self.summary,
        }


class PlanRejectedError(ValueError):
    """Raised by enforcement when the policy demands rejection of an invalid plan."""

    def __init__(self, result: ValidationResult, messages: List[str]):
        self.result = result
        self.messages = list(messages)
        text = "\n".join(
            [f"Blueprint validation failed: {result.summary}", "", "Issues:"]
            + [f"  {m}" for m in self.messages]
        )
        super().__init__(text)
