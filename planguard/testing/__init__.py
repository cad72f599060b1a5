from planguard.testing.plans import (
    SAMPLE_PLANS,
    door,
    egress_example,
    messy_plan,
    rectangle_house,
    rectangle_walls,
    room,
    small_plan,
    wall,
    window,
)

__all__ = [
    "SAMPLE_PLANS",
    "door",
    "egress_example",
    "messy_plan",
    "rectangle_house",
    "rectangle_walls",
    "room",
    "small_plan",
    "wall",
    "window",
]
