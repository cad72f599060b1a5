"""
Planguard data model

Immutable plan snapshots (walls, openings, rooms) and sheet document parsing.
"""

from planguard.models.plan import (
    DoorSwing,
    Opening,
    OpeningType,
    Plan,
    PlanFormatError,
    PlanMetadata,
    Point,
    RoomType,
    RoomZone,
    StairGeometry,
    SwingDirection,
    WallMaterial,
    WallSegment,
    WallType,
    infer_room_type,
    plan_from_dict,
    plan_to_dict,
    plans_from_blueprint,
)

__all__ = [
    "DoorSwing",
    "Opening",
    "OpeningType",
    "Plan",
    "PlanFormatError",
    "PlanMetadata",
    "Point",
    "RoomType",
    "RoomZone",
    "StairGeometry",
    "SwingDirection",
    "WallMaterial",
    "WallSegment",
    "WallType",
    "infer_room_type",
    "plan_from_dict",
    "plan_to_dict",
    "plans_from_blueprint",
]
