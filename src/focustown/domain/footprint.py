"""Footprint table mapping building kinds to occupied tiles."""

from __future__ import annotations

from .enums import BuildingType
from .models import Footprint

DEFAULT_FOOTPRINT = Footprint(width=1, height=1)

FOOTPRINTS: dict[BuildingType, Footprint] = {
    BuildingType.TOWN_HALL: Footprint(width=3, height=3),
    BuildingType.FARM: Footprint(width=2, height=2),
    BuildingType.SAWMILL: Footprint(width=2, height=2),
    BuildingType.MINE: Footprint(width=2, height=2),
    BuildingType.MARKET: Footprint(width=2, height=2),
    BuildingType.DECOR: Footprint(width=1, height=1),
}


def footprint_for(building_type: BuildingType) -> Footprint:
    """Return the footprint a new building of ``building_type`` occupies."""

    return FOOTPRINTS.get(building_type, DEFAULT_FOOTPRINT)
