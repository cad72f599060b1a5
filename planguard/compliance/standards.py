"""
Danish building regulation constants (BR18 with BR23 daylight provisions).

The whole table is one immutable value. Rules receive it explicitly through the
evaluation context so alternative or stricter profiles can be passed per call.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from planguard.models.plan import RoomType


@dataclass(frozen=True)
class AreaRequirement:
    minimum: float
    code: str


BR18_ROOM_AREAS: Mapping[RoomType, AreaRequirement] = MappingProxyType(
    {
        RoomType.BEDROOM: AreaRequirement(6.0, "BR18-5.2.3"),
        RoomType.LIVING_ROOM: AreaRequirement(10.0, "BR18-5.2.1"),
        RoomType.DINING_ROOM: AreaRequirement(10.0, "BR18-5.2.1"),
        RoomType.KITCHEN: AreaRequirement(4.0, "BR18-5.2.2"),
    }
)


@dataclass(frozen=True)
class BuildingCodeStandards:
    name: str = "BR18/BR23"
    room_areas: Mapping[RoomType, AreaRequirement] = field(default_factory=lambda: BR18_ROOM_AREAS)

    # Ceiling heights (m), BR18 §199
    ceiling_height_habitable: float = 2.3
    ceiling_height_non_habitable: float = 2.1

    # Accessibility, BR18 §373
    max_threshold_height: float = 0.025
    door_width_minimum: float = 0.77
    door_width_standard: float = 0.9

    # Circulation (m)
    corridor_width_standard: float = 1.0
    hallway_minimum_width: float = 0.9
    corridor_min_area: float = 2.0

    # Daylight, BR23 §374
    natural_light_ratio: float = 0.10
    light_window_default_height: float = 1.5
    window_search_factor: float = 0.7
    window_search_margin: float = 2.0
    window_polygon_margin: float = 0.5

    # Rescue openings
    rescue_min_sum_hw: float = 1.5
    rescue_max_sill_height: float = 1.2
    rescue_window_default_height: float = 1.2
    rescue_tags: Tuple[str, ...] = ("rescue", "redning")

    # Wet rooms
    bathroom_turning_circle: float = 1.5
    bathroom_min_area: float = 2.25
    bathroom_wall_search_factor: float = 0.8
    bathroom_wall_search_margin: float = 1.0

    # Service rooms (m²)
    tech_room_min_area: float = 2.0

    # Stairs
    stair_min_area: float = 2.4
    stair_formula_min_cm: float = 61.0
    stair_formula_max_cm: float = 63.0
    stair_max_rise_cm: float = 21.0
    stair_min_headroom: float = 2.0

    # Egress, BR18-5.4.1 (m)
    egress_max_distance: float = 25.0
    egress_max_distance_bedroom: float = 15.0

    def area_requirement(self, room_type: RoomType) -> Optional[AreaRequirement]:
        return self.room_areas.get(room_type)

    def window_search_radius(self, room_area: float) -> float:
        return max(room_area, 0.0) ** 0.5 * self.window_search_factor + self.window_search_margin

    def bathroom_wall_radius(self, room_area: float) -> float:
        return max(room_area, 0.0) ** 0.5 * self.bathroom_wall_search_factor + self.bathroom_wall_search_margin

    def egress_limit(self, room_type: RoomType) -> float:
        if room_type is RoomType.BEDROOM:
            return self.egress_max_distance_bedroom
        return self.egress_max_distance

    def with_overrides(self, **changes) -> "BuildingCodeStandards":
        return replace(self, **changes)


BR18 = BuildingCodeStandards()
