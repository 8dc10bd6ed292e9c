"""Tile occupancy checks for the town grid."""

from __future__ import annotations

from .models import Footprint, TownState


def is_area_free(
    state: TownState,
    x: int,
    y: int,
    footprint: Footprint,
    ignore_id: str | None = None,
) -> bool:
    """Return whether ``footprint`` placed at ``(x, y)`` fits on the map.

    The rectangle must lie inside the grid and must not overlap any building
    other than ``ignore_id`` (used when a building is moved so it does not
    collide with its own current position).
    """

    within_bounds = (
        x >= 0
        and y >= 0
        and x + footprint.width <= state.map.width
        and y + footprint.height <= state.map.height
    )
    if not within_bounds:
        return False

    for building in state.buildings:
        if ignore_id is not None and building.id == ignore_id:
            continue
        x_overlap = x < building.x + building.footprint.width and x + footprint.width > building.x
        y_overlap = (
            y < building.y + building.footprint.height and y + footprint.height > building.y
        )
        if x_overlap and y_overlap:
            return False
    return True


def find_next_open_slot(state: TownState, footprint: Footprint) -> tuple[int, int] | None:
    """First free ``(x, y)`` scanning rows top to bottom, columns left to right."""

    for row in range(state.map.height):
        for col in range(state.map.width):
            if is_area_free(state, col, row, footprint):
                return col, row
    return None
