from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping

from planguard.geometry.tolerance import (
    DEFAULT_ANGLE_TOLERANCE_DEG,
    DEFAULT_CLOSURE_FACTOR,
    DEFAULT_GRID_SIZE,
    DEFAULT_MIN_WALL_LENGTH,
    DEFAULT_SNAP_TOLERANCE,
)


@dataclass(frozen=True)
class RepairConfig:
    grid_size: float = DEFAULT_GRID_SIZE
    snap_tolerance: float = DEFAULT_SNAP_TOLERANCE
    max_passes: int = 10
    angle_tolerance: float = DEFAULT_ANGLE_TOLERANCE_DEG
    enforce_orthogonal: bool = True
    minimum_wall_length: float = DEFAULT_MIN_WALL_LENGTH
    closure_factor: float = DEFAULT_CLOSURE_FACTOR

    def __post_init__(self) -> None:
        if self.grid_size <= 0.0:
            raise ValueError("grid_size must be > 0")
        if self.snap_tolerance <= 0.0:
            raise ValueError("snap_tolerance must be > 0")
        if int(self.max_passes) != self.max_passes or self.max_passes < 1:
            raise ValueError("max_passes must be a positive integer")
        if not 0.0 <= self.angle_tolerance < 45.0:
            raise ValueError("angle_tolerance must be in [0, 45) degrees")
        if self.minimum_wall_length < 0.0:
            raise ValueError("minimum_wall_length must be >= 0")
        if self.closure_factor < 1.0:
            raise ValueError("closure_factor must be >= 1")

    @property
    def closure_threshold(self) -> float:
        return self.snap_tolerance * self.closure_factor

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


_CONFIG_KEYS = {
    "gridSize": "grid_size",
    "snapTolerance": "snap_tolerance",
    "maxPasses": "max_passes",
    "angleTolerance": "angle_tolerance",
    "enforceOrthogonal": "enforce_orthogonal",
    "minimumWallLength": "minimum_wall_length",
    "closureFactor": "closure_factor",
}


def repair_config_from_dict(d: Mapping[str, Any]) -> RepairConfig:
    """Accept snake_case or camelCase keys; unknown keys are rejected."""
    kwargs: Dict[str, Any] = {}
    for key, value in d.items():
        name = _CONFIG_KEYS.get(key, key)
        if name not in RepairConfig.__dataclass_fields__:
            raise ValueError(f"Unknown repair option: {key}")
        kwargs[name] = value
    return RepairConfig(**kwargs)


DEFAULT_REPAIR_CONFIG = RepairConfig()
