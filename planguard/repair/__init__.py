"""
Planguard geometry repair

Six ordered, pure wall-list transforms plus the orchestrator that reports their fixes.
"""

from planguard.repair.config import DEFAULT_REPAIR_CONFIG, RepairConfig, repair_config_from_dict
from planguard.repair.pipeline import RepairReport, RepairResult, repair_plan, repair_walls
from planguard.repair.stages import (
    FixRecord,
    StageReport,
    StageResult,
    close_exterior_loop,
    correct_dangling_endpoints,
    eliminate_short_walls,
    merge_duplicate_points,
    normalize_wall_angles,
    snap_walls_to_grid,
)

__all__ = [
    "DEFAULT_REPAIR_CONFIG",
    "RepairConfig",
    "repair_config_from_dict",
    "RepairReport",
    "RepairResult",
    "repair_plan",
    "repair_walls",
    "FixRecord",
    "StageReport",
    "StageResult",
    "close_exterior_loop",
    "correct_dangling_endpoints",
    "eliminate_short_walls",
    "merge_duplicate_points",
    "normalize_wall_angles",
    "snap_walls_to_grid",
]
