from __future__ import annotations

import json

import pytest

from planguard.models import (
    OpeningType,
    PlanFormatError,
    RoomType,
    SwingDirection,
    WallType,
    infer_room_type,
    plan_from_dict,
    plan_to_dict,
    plans_from_blueprint,
)
from planguard.testing.plans import rectangle_house


def _sheet() -> dict:
    return {
        "title": "Ground floor",
        "elements": {
            "walls": [
                {"id": "w1", "start": {"x": 0, "y": 0}, "end": {"x": 5, "y": 0}, "isExternal": True},
                {"id": "w2", "start": [5, 0], "end": [5, 4], "thickness": 0.12},
            ],
            "openings": [
                {
                    "id": "o1",
                    "wallId": "w1",
                    "type": "door",
                    "width": 0.9,
                    "distFromStart": 1.0,
                    "swingDirection": "inward",
                    "thresholdHeight": 0.02,
                },
            ],
            "rooms": [
                {"id": "r1", "label": "Soveværelse", "area": {"value": 12, "unit": "m²"}, "center": {"x": 2, "y": 2}},
                {"id": "r2", "label": "Kitchen", "type": "Other", "area": 6, "center": {"x": 4, "y": 1}},
                {"id": "r3", "label": "Passage", "type": "corridor", "area": 3, "center": {"x": 1, "y": 1}},
            ],
        },
        "metadata": {"floorLevel": "Ground", "totalArea": 85},
    }


def test_infer_room_type_from_english_and_danish_labels() -> None:
    assert infer_room_type("Soveværelse 1") is RoomType.BEDROOM
    assert infer_room_type("Spisestue") is RoomType.DINING_ROOM
    assert infer_room_type("Stue") is RoomType.LIVING_ROOM
    assert infer_room_type("Badeværelse") is RoomType.BATHROOM
    assert infer_room_type("Gang") is RoomType.HALLWAY
    assert infer_room_type("Mystery") is RoomType.OTHER


def test_plan_from_sheet_document() -> None:
    plan = plan_from_dict(_sheet())
    assert plan.metadata.title == "Ground floor"
    assert plan.metadata.target_area == 85.0
    assert plan.metadata.floor_level == "Ground"

    w1, w2 = plan.walls
    assert w1.is_external is True
    assert w1.type is WallType.EXTERIOR_INSULATED
    assert w2.type is WallType.INTERIOR_PARTITION
    assert w2.length == pytest.approx(4.0)

    (door,) = plan.openings
    assert door.type is OpeningType.DOOR
    assert door.swing_direction is SwingDirection.INWARD
    assert door.threshold_height == 0.02

    r1, r2, r3 = plan.rooms
    assert r1.type is RoomType.BEDROOM
    assert r1.area == 12.0
    assert r2.type is RoomType.KITCHEN
    assert r3.type is RoomType.HALLWAY
    assert plan.total_room_area == pytest.approx(21.0)


def test_flat_document_and_multi_sheet_blueprint() -> None:
    sheet = _sheet()
    flat = dict(sheet["elements"])
    assert len(plan_from_dict(flat).walls) == 2

    plans = plans_from_blueprint({"sheets": [sheet, sheet]})
    assert len(plans) == 2
    assert plans_from_blueprint(sheet)[0].metadata.title == "Ground floor"


def test_geometric_defects_are_not_rejected_by_the_parser() -> None:
    doc = {"walls": [{"id": "z", "start": [1.23456, 2], "end": [1.23456, 2]}]}
    plan = plan_from_dict(doc)
    assert plan.walls[0].length == 0.0


@pytest.mark.parametrize(
    "doc",
    [
        {"walls": [{"id": "w", "end": [1, 0]}]},
        {"walls": [{"id": "w", "start": [True, 0], "end": [1, 0]}]},
        {"walls": [{"id": "w", "start": ["a", 0], "end": [1, 0]}]},
        {"rooms": [{"id": "r", "label": "Bedroom", "center": [0, 0]}]},
        {"elements": []},
        [],
    ],
)
def test_malformed_documents_raise_plan_format_error(doc) -> None:
    with pytest.raises(PlanFormatError):
        plan_from_dict(doc)


def test_infinite_coordinates_are_rejected() -> None:
    doc = json.loads('{"walls": [{"id": "a", "start": {"x": 0, "y": 0}, "end": {"x": Infinity, "y": 0}}]}')
    with pytest.raises(PlanFormatError, match="finite"):
        plan_from_dict(doc)
    with pytest.raises(PlanFormatError, match="finite"):
        plan_from_dict({"walls": [{"id": "a", "start": [0, 0], "end": [1, float("-inf")]}]})


@pytest.mark.parametrize("meta", [[1, 2], "big house", 42])
def test_non_mapping_metadata_raises_plan_format_error(meta) -> None:
    with pytest.raises(PlanFormatError, match="metadata"):
        plan_from_dict({"walls": [], "metadata": meta})


def test_plan_format_error_is_a_value_error() -> None:
    assert issubclass(PlanFormatError, ValueError)


def test_sample_house_survives_document_round_trip() -> None:
    plan = rectangle_house()
    assert plan_from_dict(plan_to_dict(plan)) == plan


def test_opening_type_helpers() -> None:
    assert OpeningType.WINDOW.is_window and not OpeningType.WINDOW.is_door
    assert OpeningType.SLIDING_DOOR.is_door and not OpeningType.SLIDING_DOOR.swings
    assert OpeningType.FRENCH_DOOR.swings


def test_wall_lookup_keeps_first_duplicate() -> None:
    doc = {
        "walls": [
            {"id": "w", "start": [0, 0], "end": [1, 0]},
            {"id": "w", "start": [0, 0], "end": [2, 0]},
        ]
    }
    assert plan_from_dict(doc).wall_by_id()["w"].length == pytest.approx(1.0)
