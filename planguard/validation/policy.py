from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping, Optional

from planguard.geometry.tolerance import DEFAULT_GRID_SIZE, DEFAULT_MIN_WALL_LENGTH


@dataclass(frozen=True)
class ValidationPolicy:
    """
    Caller-supplied enforcement policy.

    Degenerate-wall, short-wall, thickness and duplicate-id checks always run; the
    ``check_*`` flags switch the remaining rule groups. ``target_area`` overrides the
    plan's own metadata target when set.
    """
    reject_on_blocker: bool = True
    reject_on_critical: bool = False
    check_grid: bool = True
    check_loops: bool = True
    check_dangling: bool = True
    check_references: bool = True
    check_areas: bool = True
    target_area: Optional[float] = None
    grid_size: float = DEFAULT_GRID_SIZE
    minimum_wall_length: float = DEFAULT_MIN_WALL_LENGTH
    max_messages: int = 10

    def __post_init__(self) -> None:
        if self.grid_size <= 0.0:
            raise ValueError("grid_size must be > 0")
        if self.target_area is not None and self.target_area < 0.0:
            raise ValueError("target_area must be >= 0")
        if self.max_messages < 1:
            raise ValueError("max_messages must be >= 1")

    @property
    def rejects(self) -> bool:
        return self.reject_on_blocker or self.reject_on_critical

    def reporting(self) -> "ValidationPolicy":
        """Same checks, never rejects."""
        return replace(self, reject_on_blocker=False, reject_on_critical=False)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


_POLICY_KEYS = {
    "rejectOnBlocker": "reject_on_blocker",
    "rejectOnCritical": "reject_on_critical",
    "checkGrid": "check_grid",
    "checkLoops": "check_loops",
    "checkDangling": "check_dangling",
    "checkReferences": "check_references",
    "checkAreas": "check_areas",
    "targetArea": "target_area",
    "gridSize": "grid_size",
    "minimumWallLength": "minimum_wall_length",
    "maxMessages": "max_messages",
}


def validation_policy_from_dict(d: Mapping[str, Any]) -> ValidationPolicy:
    kwargs: Dict[str, Any] = {}
    for key, value in d.items():
        name = _POLICY_KEYS.get(key, key)
        if name not in ValidationPolicy.__dataclass_fields__:
            raise ValueError(f"Unknown validation option: {key}")
        kwargs[name] = value
    return ValidationPolicy(**kwargs)


DEFAULT_POLICY = ValidationPolicy()
REPORTING_POLICY = DEFAULT_POLICY.reporting()
