"""Construction and upgrade costs for town buildings."""

from __future__ import annotations

import math

from .enums import BuildingType, ResourceType
from .models import Resources
from .rules_config import DEFAULT_RULES, RulesConfig

PLACE_COSTS: dict[BuildingType, Resources] = {
    BuildingType.TOWN_HALL: Resources(),
    BuildingType.FARM: Resources(gold=40, wood=60, stone=10),
    BuildingType.SAWMILL: Resources(gold=50, wood=80, stone=20),
    BuildingType.MINE: Resources(gold=80, wood=40, stone=40),
    BuildingType.MARKET: Resources(gold=100, wood=60, stone=40),
    BuildingType.DECOR: Resources(gold=10, wood=10, stone=5),
}

UPGRADE_BASE_COSTS: dict[BuildingType, Resources] = {
    BuildingType.TOWN_HALL: Resources(gold=120, wood=80, stone=60),
    BuildingType.FARM: Resources(gold=60, wood=60, stone=20),
    BuildingType.SAWMILL: Resources(gold=70, wood=80, stone=30),
    BuildingType.MINE: Resources(gold=90, wood=60, stone=60),
    BuildingType.MARKET: Resources(gold=110, wood=80, stone=50),
    BuildingType.DECOR: Resources(gold=5, wood=5, stone=2),
}


def place_cost(building_type: BuildingType) -> Resources:
    """Fixed cost of placing a new building."""

    return PLACE_COSTS[building_type]


def upgrade_cost(
    building_type: BuildingType, level: int, rules: RulesConfig = DEFAULT_RULES
) -> Resources:
    """Cost of upgrading a building to ``level``.

    The base cost grows linearly with the target level and each resource is
    rounded up independently.
    """

    base = UPGRADE_BASE_COSTS[building_type]
    factor = 1 + (level - 1) * rules.buildings.upgrade_cost_step
    # round first so float noise (60 * 1.1 == 66.00000000000001) does not bump the ceiling
    return Resources(
        **{kind.value: math.ceil(round(base[kind] * factor, 6)) for kind in ResourceType}
    )


def can_afford(resources: Resources, cost: Resources) -> bool:
    return all(resources[kind] >= cost[kind] for kind in ResourceType)


def pay(resources: Resources, cost: Resources) -> Resources:
    """Debit ``cost`` from ``resources``.

    Raises:
        ValueError: If any resource would drop below zero.
    """

    if not can_afford(resources, cost):
        raise ValueError(f"cannot pay {cost} from {resources}")
    return Resources(**{kind.value: resources[kind] - cost[kind] for kind in ResourceType})
