"""Starter town handed to new players and used by the reference server."""

from __future__ import annotations

from datetime import datetime

from .enums import BuildingType
from .footprint import footprint_for
from .models import Building, MapSize, Meta, Resources, Task, TownState, utc_now

TOWN_HALL_ID = "town-hall"

_STARTER_BUILDINGS: tuple[tuple[str, BuildingType, int, int], ...] = (
    (TOWN_HALL_ID, BuildingType.TOWN_HALL, 4, 4),
    ("farm-1", BuildingType.FARM, 2, 6),
    ("sawmill-1", BuildingType.SAWMILL, 7, 6),
    ("mine-1", BuildingType.MINE, 7, 3),
)


def initial_town_state(timestamp: datetime | None = None) -> TownState:
    """Build the starter town at version 1."""

    created = timestamp or utc_now()
    buildings = tuple(
        Building(
            id=building_id,
            type=building_type,
            level=1,
            x=x,
            y=y,
            footprint=footprint_for(building_type),
            produced_until=created,
        )
        for building_id, building_type, x, y in _STARTER_BUILDINGS
    )
    return TownState(
        version=1,
        resources=Resources(gold=500, wood=400, stone=200, food=300),
        map=MapSize(width=10, height=10),
        buildings=buildings,
        tasks=(
            Task(id="task-bed", name="Make the bed", target=1, reward_xp=5),
            Task(id="task-water", name="Drink water", target=200, reward_xp=5),
        ),
        meta=Meta(last_server_sync_at=created),
    )
