from __future__ import annotations

import math
from typing import Dict, List, Sequence

import numpy as np

from planguard.compliance.issues import EgressAnalysis
from planguard.compliance.standards import BuildingCodeStandards
from planguard.models.plan import Point, RoomZone


def analyze_egress(
    rooms: Sequence[RoomZone],
    exits: Sequence[Point],
    standards: BuildingCodeStandards,
) -> EgressAnalysis:
    """
    Straight-line distance from each room center to its nearest exterior exit door.

    The plan egress distance is the largest of those per-room minima. Bedrooms are held
    to the stricter limit. Without any exterior exit every room is critical and the
    distance is infinite.
    """
    if not exits:
        return EgressAnalysis(
            passed=False,
            max_distance_to_exit=math.inf,
            critical_rooms=[r.id for r in rooms],
            room_distances={r.id: math.inf for r in rooms},
            exit_count=0,
        )
    if not rooms:
        return EgressAnalysis(passed=True, max_distance_to_exit=0.0, exit_count=len(exits))

    centers = np.array([(r.center.x, r.center.y) for r in rooms], dtype=float)
    doors = np.array([(p.x, p.y) for p in exits], dtype=float)
    # rooms x exits
    dist = np.hypot(
        centers[:, None, 0] - doors[None, :, 0],
        centers[:, None, 1] - doors[None, :, 1],
    )
    nearest = dist.min(axis=1)

    critical: List[str] = []
    distances: Dict[str, float] = {}
    for room, d in zip(rooms, nearest):
        distances[room.id] = float(d)
        if d > standards.egress_limit(room.type):
            critical.append(room.id)

    return EgressAnalysis(
        passed=not critical,
        max_distance_to_exit=float(nearest.max()),
        critical_rooms=critical,
        room_distances=distances,
        exit_count=len(exits),
    )
