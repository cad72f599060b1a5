from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from planguard.compliance.issues import ComplianceIssue, ComplianceReport, IssueKind, Severity


@dataclass(frozen=True)
class FixSuggestion:
    issue_code: str
    description: str
    can_auto_fix: bool
    manual_steps: List[str] = field(default_factory=list)
    auto_fix_description: Optional[str] = None
    element_id: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "issueCode": self.issue_code,
            "description": self.description,
            "canAutoFix": self.can_auto_fix,
            "manualSteps": list(self.manual_steps),
        }
        if self.auto_fix_description is not None:
            out["autoFixDescription"] = self.auto_fix_description
        if self.element_id is not None:
            out["elementId"] = self.element_id
        return out


# (code fragments, message keywords, title, auto-fix description or None, manual steps); first match wins
_PLAYBOOK: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...], str, Optional[str], Tuple[str, ...]], ...] = (
    (
        ("BR18-3.1.1",), ("door width",),
        "Door too narrow",
        "Expand door to standard 0.9m (M9) or 1.0m (M10) width",
        ("Use M9 (0.9m) for interior doors", "Use M10 (1.0m) for main entrance",
         "Minimum is 0.77m for accessibility (BR18 §373)"),
    ),
    (
        ("BR18-5.2",), (),
        "Room too small",
        "Expand room by moving walls or reducing adjacent rooms",
        ("Bedrooms require minimum 6m²", "Living rooms require minimum 10m²",
         "Kitchens require minimum 4m²", "Consider moving interior walls"),
    ),
    (
        ("BR18-5.1",), ("ceiling",),
        "Ceiling height too low",
        None,
        ("Habitable rooms: minimum 2.30m ceiling height (BR18 §199)", "Bathrooms/storage: minimum 2.10m",
         "Consider building construction"),
    ),
    (
        ("BR23",), ("natural light",),
        "Insufficient natural light",
        "Add more windows or increase existing window sizes",
        ("Window area must be ≥10% of floor area", "Add windows on exterior walls",
         "Consider skylights or roof windows", "Larger windows improve the ratio"),
    ),
    (
        ("BR18-6.4",), ("swings",),
        "Bathroom door swing",
        "Rehang the door to swing outward or use a sliding door",
        ("Bathroom doors must swing outward", "Sliding and pocket doors are acceptable",
         "Record the swing direction on the door"),
    ),
    (
        ("bathroom", "turning"), ("turning",),
        "Bathroom accessibility",
        "Expand bathroom to minimum 1.50×1.50m clear floor space",
        ("Requires 1.50m turning circle for wheelchair", "Door must swing outward",
         "Minimum 2.25m² floor area", "BR18 §196 accessibility requirements"),
    ),
    (
        ("rescue",), ("rescue",),
        "Rescue window issue",
        "Add or expand a window so H+W ≥ 1.50m",
        ("Rescue windows require H+W ≥ 1.50m", "Maximum height above floor: 1.20m",
         "Required in all bedrooms", "Used as emergency exit in case of fire"),
    ),
    (
        ("5.4",), ("egress", "exit"),
        "Egress distance too long",
        None,
        ("Maximum distance to exit: 25m", "Bedrooms: maximum 15m", "Add additional exit door",
         "Reconsider room placement"),
    ),
    (
        ("threshold",), ("threshold",),
        "Threshold too high",
        "Lower the threshold to 25mm or less",
        ("Maximum threshold height is 25mm (BR18 §373)", "Use level or ramped thresholds"),
    ),
    (
        ("tech-room",), ("technical",),
        "Technical room",
        "Add a technical room of 2-3m² or a 120×60cm cabinet space",
        ("Minimum 2m² for technical room", "Alternatively 120×60cm cabinet space",
         "Used for heat pump, ventilation, electrical panel", "Must have access for maintenance"),
    ),
    (
        ("corridor", "3.2.1"), ("corridor",),
        "Corridor width",
        "Expand corridor to minimum 1.00m width",
        ("Standard corridor: minimum 1.00m width", "Corridor with side doors: minimum 1.30m width",
         "Move walls to expand"),
    ),
    (
        ("stairs",), ("stair",),
        "Staircase",
        None,
        ("2×Rise + Tread must be 61-63cm", "Maximum rise 21cm", "Minimum headroom 2.0m"),
    ),
    (
        ("opening-ref",), ("non-existent wall",),
        "Broken opening reference",
        "Attach the opening to an existing wall",
        ("Every door and window must reference an existing wall id",),
    ),
)

_PRIORITY: Tuple[Tuple[str, int], ...] = (
    ("BR18-5.4.1", 1),
    ("BR18-5.1.1", 2),
    ("BR18-3.1.1", 3),
    ("BR18-rescue", 4),
    ("BR18-6.4", 5),
    ("BR18-bathroom", 5),
    ("BR23", 6),
    ("BR18-5.2", 7),
)


def suggest_fix(issue: ComplianceIssue) -> FixSuggestion:
    code = issue.code
    message = issue.message.lower()
    for fragments, keywords, title, auto_fix, steps in _PLAYBOOK:
        if any(f in code for f in fragments) or any(k in message for k in keywords):
            return FixSuggestion(
                issue_code=code,
                description=f"{title}: {issue.message}",
                can_auto_fix=auto_fix is not None,
                manual_steps=list(steps),
                auto_fix_description=auto_fix,
                element_id=issue.element_id,
            )
    return FixSuggestion(
        issue_code=code or "BR18",
        description=f"Compliance issue: {issue.message}",
        can_auto_fix=False,
        manual_steps=["Review BR18/BR23 building regulations", "Consult an architect"],
        element_id=issue.element_id,
    )


def suggest_fixes(report: ComplianceReport) -> List[FixSuggestion]:
    """One suggestion per violation and per major or critical warning."""
    out = [suggest_fix(i) for i in report.violations]
    out.extend(suggest_fix(i) for i in report.warnings if i.severity in (Severity.CRITICAL, Severity.MAJOR))
    return out


def _priority(code: str) -> int:
    for fragment, rank in _PRIORITY:
        if fragment in code:
            return rank
    return 99


def prioritize_suggestions(suggestions: Sequence[FixSuggestion]) -> List[FixSuggestion]:
    return sorted(suggestions, key=lambda s: _priority(s.issue_code))


def auto_fixable(suggestions: Sequence[FixSuggestion]) -> List[FixSuggestion]:
    return [s for s in suggestions if s.can_auto_fix]


def count_by_severity(report: ComplianceReport) -> Dict[str, int]:
    counts = {s.value: 0 for s in Severity}
    for issue in report.issues:
        if issue.kind is IssueKind.CHECK:
            continue
        counts[issue.severity.value] += 1
    return counts
