from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class IssueKind(Enum):
    VIOLATION = "violation"
    WARNING = "warning"
    CHECK = "check"


class Severity(Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class ElementType(Enum):
    WALL = "wall"
    OPENING = "opening"
    ROOM = "room"
    GENERAL = "general"


@dataclass(frozen=True)
class ComplianceIssue:
    kind: IssueKind
    code: str
    message: str
    severity: Severity
    element_id: Optional[str] = None
    element_type: ElementType = ElementType.GENERAL

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "type": self.kind.value,
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "elementType": self.element_type.value,
        }
        if self.element_id is not None:
            out["elementId"] = self.element_id
        return out


def violation(code: str, message: str, severity: Severity, element_id: Optional[str] = None,
              element_type: ElementType = ElementType.GENERAL) -> ComplianceIssue:
    return ComplianceIssue(IssueKind.VIOLATION, code, message, severity, element_id, element_type)


def warning(code: str, message: str, severity: Severity, element_id: Optional[str] = None,
            element_type: ElementType = ElementType.GENERAL) -> ComplianceIssue:
    return ComplianceIssue(IssueKind.WARNING, code, message, severity, element_id, element_type)


def check(code: str, message: str, element_id: Optional[str] = None,
          element_type: ElementType = ElementType.GENERAL) -> ComplianceIssue:
    return ComplianceIssue(IssueKind.CHECK, code, message, Severity.MINOR, element_id, element_type)


@dataclass(frozen=True)
class EgressAnalysis:
    passed: bool
    max_distance_to_exit: float
    critical_rooms: List[str] = field(default_factory=list)
    room_distances: Dict[str, float] = field(default_factory=dict)
    exit_count: int = 0

    def to_dict(self) -> Dict[str, object]:
        def _finite(v: float) -> Optional[float]:
            return None if math.isinf(v) else round(v, 3)

        return {
            "passed": self.passed,
            "maxDistanceToExit": _finite(self.max_distance_to_exit),
            "criticalRooms": list(self.critical_rooms),
            "roomDistances": {k: _finite(v) for k, v in self.room_distances.items()},
            "exitCount": self.exit_count,
        }


@dataclass(frozen=True)
class ComplianceReport:
    violations: List[ComplianceIssue] = field(default_factory=list)
    warnings: List[ComplianceIssue] = field(default_factory=list)
    checks: List[ComplianceIssue] = field(default_factory=list)
    egress: Optional[EgressAnalysis] = None

    @property
    def passing(self) -> bool:
        """Warnings never fail a plan; only violations do."""
        return not self.violations

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total_violations": len(self.violations),
            "total_warnings": len(self.warnings),
            "total_checks": len(self.checks),
        }

    @property
    def issues(self) -> List[ComplianceIssue]:
        return [*self.violations, *self.warnings, *self.checks]

    def by_code(self, code: str) -> List[ComplianceIssue]:
        return [i for i in self.issues if i.code == code]

    def to_dict(self) -> Dict[str, object]:
        return {
            "passing": self.passing,
            "violations": [i.to_dict() for i in self.violations],
            "warnings": [i.to_dict() for i in self.warnings],
            "checks": [i.to_dict() for i in self.checks],
            "summary": self.summary,
            "egressAnalysis": self.egress.to_dict() if self.egress is not None else None,
        }
