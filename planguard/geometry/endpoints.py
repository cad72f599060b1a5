from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from planguard.geometry.grid import PointKey, point_key
from planguard.geometry.tolerance import KEY_DECIMALS
from planguard.models.plan import Point, WallSegment


@dataclass(frozen=True)
class Endpoint:
    key: PointKey
    point: Point
    wall_ids: Tuple[str, ...]

    @property
    def connections(self) -> int:
        return len(self.wall_ids)

    @property
    def status(self) -> str:
        if self.connections == 1:
            return "dangling"
        if self.connections > 2:
            return "junction"
        return "normal"

    def to_dict(self) -> Dict[str, object]:
        return {
            "point": self.point.to_dict(),
            "connections": self.connections,
            "wall_ids": list(self.wall_ids),
            "status": self.status,
        }


def endpoint_map(walls: Sequence[WallSegment], decimals: int = KEY_DECIMALS) -> Dict[PointKey, Endpoint]:
    """Group wall endpoints by coincidence key, preserving first-seen order."""
    points: Dict[PointKey, Point] = {}
    incident: Dict[PointKey, List[str]] = {}
    for wall in walls:
        for p in (wall.start, wall.end):
            key = point_key(p, decimals)
            points.setdefault(key, p)
            incident.setdefault(key, []).append(wall.id)
    return {k: Endpoint(key=k, point=points[k], wall_ids=tuple(v)) for k, v in incident.items()}


def dangling_endpoints(walls: Sequence[WallSegment], decimals: int = KEY_DECIMALS) -> List[Endpoint]:
    return [e for e in endpoint_map(walls, decimals).values() if e.connections == 1]
