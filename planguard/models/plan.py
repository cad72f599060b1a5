from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


class PlanFormatError(ValueError):
    pass


# =============================================================================
# Closed vocabularies
# =============================================================================

class WallType(Enum):
    EXTERIOR_INSULATED = "EXTERIOR_INSULATED"
    INTERIOR_PARTITION = "INTERIOR_PARTITION"
    LOAD_BEARING = "LOAD_BEARING"
    FIRE_RATED = "FIRE_RATED"


class WallMaterial(Enum):
    BRICK = "brick"
    CONCRETE = "concrete"
    INSULATION = "insulation"
    GASBETON = "gasbeton"
    TIMBER = "timber"
    VAPOR_BARRIER = "vapor-barrier"
    GYPSUM_BOARD = "gypsum-board"
    CLT = "CLT"
    STEEL_STUD = "steel-stud"


class OpeningType(Enum):
    DOOR = "door"
    WINDOW = "window"
    SLIDING_DOOR = "sliding-door"
    FRENCH_DOOR = "french-door"
    POCKET_DOOR = "pocket-door"
    DOUBLE_DOOR = "double-door"

    @property
    def is_window(self) -> bool:
        return self is OpeningType.WINDOW

    @property
    def is_door(self) -> bool:
        return self is not OpeningType.WINDOW

    @property
    def swings(self) -> bool:
        """Sliding and pocket doors never sweep into the room they serve."""
        return self.is_door and self not in (OpeningType.SLIDING_DOOR, OpeningType.POCKET_DOOR)


class DoorSwing(Enum):
    LEFT = "left"
    RIGHT = "right"
    NONE = "none"


class SwingDirection(Enum):
    INWARD = "inward"
    OUTWARD = "outward"


class RoomType(Enum):
    LIVING_ROOM = "Living Room"
    BEDROOM = "Bedroom"
    KITCHEN = "Kitchen"
    BATHROOM = "Bathroom"
    TOILET = "Toilet"
    HALLWAY = "Hallway"
    ENTRY = "Entry"
    OFFICE = "Office"
    STORAGE = "Storage"
    UTILITY = "Utility"
    TECHNICAL = "Technical"
    BALCONY = "Balcony"
    DINING_ROOM = "Dining Room"
    STAIRS = "Stairs"
    GARAGE = "Garage"
    OTHER = "Other"


HABITABLE_ROOM_TYPES = frozenset(
    {RoomType.BEDROOM, RoomType.LIVING_ROOM, RoomType.KITCHEN, RoomType.DINING_ROOM, RoomType.OFFICE}
)
WET_ROOM_TYPES = frozenset({RoomType.BATHROOM, RoomType.TOILET})
CIRCULATION_ROOM_TYPES = frozenset({RoomType.HALLWAY, RoomType.ENTRY})
SERVICE_ROOM_TYPES = frozenset({RoomType.TECHNICAL, RoomType.UTILITY})

# First match wins; "spisestue" must resolve before "stue".
_LABEL_KEYWORDS: Tuple[Tuple[Tuple[str, ...], RoomType], ...] = (
    (("bedroom", "soveværelse"), RoomType.BEDROOM),
    (("dining", "spisestue"), RoomType.DINING_ROOM),
    (("living", "stue"), RoomType.LIVING_ROOM),
    (("kitchen", "køkken"), RoomType.KITCHEN),
    (("bathroom", "badeværelse", "bad"), RoomType.BATHROOM),
    (("toilet", "wc"), RoomType.TOILET),
    (("entrance", "entry", "entré", "entre"), RoomType.ENTRY),
    (("hall", "corridor", "gang"), RoomType.HALLWAY),
    (("office", "kontor"), RoomType.OFFICE),
    (("stair", "trappe"), RoomType.STAIRS),
    (("storage", "opbevaring", "depot"), RoomType.STORAGE),
    (("garage", "carport"), RoomType.GARAGE),
    (("utility", "bryggers"), RoomType.UTILITY),
    (("tech", "teknik"), RoomType.TECHNICAL),
    (("terrace", "terrasse", "balcon", "altan"), RoomType.BALCONY),
)

_ROOM_TYPE_ALIASES: Dict[str, RoomType] = {
    "corridor": RoomType.HALLWAY,
    "entrance": RoomType.ENTRY,
    "terrace": RoomType.BALCONY,
    "staircase": RoomType.STAIRS,
}


def infer_room_type(label: str) -> RoomType:
    lower = str(label).lower()
    for keywords, room_type in _LABEL_KEYWORDS:
        if any(k in lower for k in keywords):
            return room_type
    return RoomType.OTHER


def _coerce_room_type(value: Any, label: str) -> RoomType:
    if value:
        text = str(value).strip()
        for rt in RoomType:
            if rt.value.lower() == text.lower() or rt.name.lower() == text.lower():
                if rt is not RoomType.OTHER:
                    return rt
                break
        else:
            alias = _ROOM_TYPE_ALIASES.get(text.lower())
            if alias is not None:
                return alias
    return infer_room_type(label)


def _coerce_enum(enum_cls, value: Any, default):
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if member.value == text or member.name == text.upper().replace("-", "_").replace(" ", "_"):
            return member
    return default


# =============================================================================
# Entities
# =============================================================================

@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class WallSegment:
    id: str
    start: Point
    end: Point
    thickness: float = 0.2
    type: WallType = WallType.INTERIOR_PARTITION
    material: WallMaterial = WallMaterial.GYPSUM_BOARD
    is_external: bool = False

    @property
    def length(self) -> float:
        return math.hypot(self.end.x - self.start.x, self.end.y - self.start.y)

    @property
    def midpoint(self) -> Point:
        return Point((self.start.x + self.end.x) / 2.0, (self.start.y + self.end.y) / 2.0)

    def with_points(self, start: Point, end: Point) -> "WallSegment":
        return replace(self, start=start, end=end)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "thickness": self.thickness,
            "type": self.type.value,
            "material": self.material.value,
            "isExternal": self.is_external,
        }


@dataclass(frozen=True)
class Opening:
    id: str
    wall_id: str
    type: OpeningType
    width: float
    dist_from_start: float
    height: Optional[float] = None
    swing: DoorSwing = DoorSwing.NONE
    tag: str = ""
    swing_direction: Optional[SwingDirection] = None
    threshold_height: Optional[float] = None
    sill_height: Optional[float] = None

    @property
    def label(self) -> str:
        return self.tag or self.id

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "id": self.id,
            "wallId": self.wall_id,
            "type": self.type.value,
            "width": self.width,
            "distFromStart": self.dist_from_start,
            "swing": self.swing.value,
            "tag": self.tag,
        }
        if self.height is not None:
            out["height"] = self.height
        if self.swing_direction is not None:
            out["swingDirection"] = self.swing_direction.value
        if self.threshold_height is not None:
            out["thresholdHeight"] = self.threshold_height
        if self.sill_height is not None:
            out["sillHeight"] = self.sill_height
        return out


@dataclass(frozen=True)
class StairGeometry:
    """Stair flight dimensions in meters."""
    rise: float
    tread: float
    headroom: Optional[float] = None

    @property
    def step_formula_cm(self) -> float:
        return (2.0 * self.rise + self.tread) * 100.0

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {"rise": self.rise, "tread": self.tread}
        if self.headroom is not None:
            out["headroom"] = self.headroom
        return out


@dataclass(frozen=True)
class RoomZone:
    id: str
    label: str
    type: RoomType
    area: float
    center: Point
    polygon: Optional[Tuple[Point, ...]] = None
    ceiling_height: Optional[float] = None
    stairs: Optional[StairGeometry] = None

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "id": self.id,
            "label": self.label,
            "type": self.type.value,
            "area": {"value": self.area, "unit": "m²"},
            "center": self.center.to_dict(),
        }
        if self.polygon is not None:
            out["polygon"] = [p.to_dict() for p in self.polygon]
        if self.ceiling_height is not None:
            out["ceilingHeight"] = self.ceiling_height
        if self.stairs is not None:
            out["stairs"] = self.stairs.to_dict()
        return out


@dataclass(frozen=True)
class PlanMetadata:
    title: str = ""
    floor_level: Optional[str] = None
    target_area: Optional[float] = None

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {}
        if self.floor_level is not None:
            out["floorLevel"] = self.floor_level
        if self.target_area is not None:
            out["totalArea"] = self.target_area
        return out


@dataclass(frozen=True)
class Plan:
    walls: Tuple[WallSegment, ...] = ()
    openings: Tuple[Opening, ...] = ()
    rooms: Tuple[RoomZone, ...] = ()
    metadata: PlanMetadata = field(default_factory=PlanMetadata)

    def with_walls(self, walls: Sequence[WallSegment]) -> "Plan":
        return replace(self, walls=tuple(walls))

    def wall_by_id(self) -> Dict[str, WallSegment]:
        # first occurrence wins for duplicated ids
        out: Dict[str, WallSegment] = {}
        for w in self.walls:
            out.setdefault(w.id, w)
        return out

    @property
    def total_room_area(self) -> float:
        return float(sum(r.area for r in self.rooms))


# =============================================================================
# Document parsing
# =============================================================================

def _number(value: Any, what: str) -> float:
    if isinstance(value, bool) or value is None:
        raise PlanFormatError(f"{what} must be a number, got {value!r}")
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise PlanFormatError(f"{what} must be a number, got {value!r}") from exc
    if math.isnan(out):
        raise PlanFormatError(f"{what} must not be NaN")
    if math.isinf(out):
        raise PlanFormatError(f"{what} must be a finite number, got {value!r}")
    return out


def _optional_number(value: Any, what: str) -> Optional[float]:
    if value is None:
        return None
    return _number(value, what)


def _required(d: Mapping[str, Any], key: str, what: str) -> Any:
    if key not in d or d[key] is None:
        raise PlanFormatError(f"{what} is missing '{key}'")
    return d[key]


def _point_from_obj(obj: Any, what: str) -> Point:
    if isinstance(obj, Mapping):
        return Point(_number(obj.get("x"), f"{what}.x"), _number(obj.get("y"), f"{what}.y"))
    if isinstance(obj, (list, tuple)) and len(obj) == 2:
        return Point(_number(obj[0], f"{what}.x"), _number(obj[1], f"{what}.y"))
    raise PlanFormatError(f"{what} must be a point, got {obj!r}")


def _wall_from_dict(d: Mapping[str, Any]) -> WallSegment:
    wall_id = str(_required(d, "id", "wall"))
    what = f"wall {wall_id}"
    is_external = d.get("isExternal", d.get("is_external", False))
    wall_type = _coerce_enum(
        WallType,
        d.get("type"),
        WallType.EXTERIOR_INSULATED if is_external else WallType.INTERIOR_PARTITION,
    )
    return WallSegment(
        id=wall_id,
        start=_point_from_obj(_required(d, "start", what), f"{what} start"),
        end=_point_from_obj(_required(d, "end", what), f"{what} end"),
        thickness=_number(d.get("thickness", 0.2), f"{what} thickness"),
        type=wall_type,
        material=_coerce_enum(WallMaterial, d.get("material"), WallMaterial.GYPSUM_BOARD),
        is_external=bool(is_external),
    )


def _opening_from_dict(d: Mapping[str, Any]) -> Opening:
    opening_id = str(_required(d, "id", "opening"))
    what = f"opening {opening_id}"
    swing_direction = d.get("swingDirection", d.get("swing_direction"))
    return Opening(
        id=opening_id,
        wall_id=str(d.get("wallId", d.get("wall_id", ""))),
        type=_coerce_enum(OpeningType, d.get("type"), OpeningType.DOOR),
        width=_number(_required(d, "width", what), f"{what} width"),
        dist_from_start=_number(d.get("distFromStart", d.get("dist_from_start", 0.0)), f"{what} distFromStart"),
        height=_optional_number(d.get("height"), f"{what} height"),
        swing=_coerce_enum(DoorSwing, d.get("swing"), DoorSwing.NONE),
        tag=str(d.get("tag") or ""),
        swing_direction=_coerce_enum(SwingDirection, swing_direction, None),
        threshold_height=_optional_number(
            d.get("thresholdHeight", d.get("threshold_height")), f"{what} thresholdHeight"
        ),
        sill_height=_optional_number(d.get("sillHeight", d.get("sill_height")), f"{what} sillHeight"),
    )


def _room_from_dict(d: Mapping[str, Any]) -> RoomZone:
    room_id = str(_required(d, "id", "room"))
    what = f"room {room_id}"
    label = str(d.get("label") or d.get("name") or room_id)
    area_obj = _required(d, "area", what)
    area = area_obj.get("value") if isinstance(area_obj, Mapping) else area_obj
    polygon = d.get("polygon")
    stairs = d.get("stairs")
    return RoomZone(
        id=room_id,
        label=label,
        type=_coerce_room_type(d.get("type"), label),
        area=_number(area, f"{what} area"),
        center=_point_from_obj(_required(d, "center", what), f"{what} center"),
        polygon=tuple(_point_from_obj(p, f"{what} polygon") for p in polygon) if polygon else None,
        ceiling_height=_optional_number(
            d.get("ceilingHeight", d.get("ceiling_height")), f"{what} ceilingHeight"
        ),
        stairs=StairGeometry(
            rise=_number(_required(stairs, "rise", f"{what} stairs"), f"{what} stairs.rise"),
            tread=_number(_required(stairs, "tread", f"{what} stairs"), f"{what} stairs.tread"),
            headroom=_optional_number(stairs.get("headroom"), f"{what} stairs.headroom"),
        )
        if isinstance(stairs, Mapping)
        else None,
    )


def plan_from_dict(d: Mapping[str, Any]) -> Plan:
    """
    Build a plan from a sheet document.

    Accepts either the sheet shape ``{"title", "elements": {...}, "metadata": {...}}``
    or a flat ``{"walls", "openings", "rooms"}`` mapping. Geometric defects are kept
    as-is; only structurally unusable entries raise :class:`PlanFormatError`.
    """
    if not isinstance(d, Mapping):
        raise PlanFormatError(f"plan document must be a mapping, got {type(d).__name__}")
    elements = d.get("elements", d)
    if not isinstance(elements, Mapping):
        raise PlanFormatError("plan 'elements' must be a mapping")
    meta = d.get("metadata") or {}
    if not isinstance(meta, Mapping):
        raise PlanFormatError("plan 'metadata' must be a mapping")
    target = meta.get("targetArea", meta.get("totalArea", meta.get("target_area")))
    return Plan(
        walls=tuple(_wall_from_dict(w) for w in elements.get("walls") or []),
        openings=tuple(_opening_from_dict(o) for o in elements.get("openings") or []),
        rooms=tuple(_room_from_dict(r) for r in elements.get("rooms") or []),
        metadata=PlanMetadata(
            title=str(d.get("title") or ""),
            floor_level=meta.get("floorLevel", meta.get("floor_level")),
            target_area=_optional_number(target, "metadata totalArea"),
        ),
    )


def plans_from_blueprint(d: Mapping[str, Any]) -> List[Plan]:
    """One plan per sheet of a multi-sheet document; a bare sheet yields a single plan."""
    if isinstance(d, Mapping) and "sheets" in d:
        sheets = d["sheets"]
        if not isinstance(sheets, list):
            raise PlanFormatError("'sheets' must be a list")
        return [plan_from_dict(s) for s in sheets]
    return [plan_from_dict(d)]


def plan_to_dict(plan: Plan) -> Dict[str, object]:
    return {
        "title": plan.metadata.title,
        "elements": {
            "walls": [w.to_dict() for w in plan.walls],
            "openings": [o.to_dict() for o in plan.openings],
            "rooms": [r.to_dict() for r in plan.rooms],
        },
        "metadata": plan.metadata.to_dict(),
    }
