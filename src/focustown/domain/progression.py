"""Activity XP curve and focus-session rewards."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from .enums import BuildingType, ResourceType
from .models import Activity, ActivityProgress, TownState
from .rules_config import DEFAULT_RULES, RulesConfig

RESOURCE_FOR_BUILDING: dict[BuildingType, ResourceType] = {
    BuildingType.MINE: ResourceType.STONE,
    BuildingType.SAWMILL: ResourceType.WOOD,
    BuildingType.FARM: ResourceType.FOOD,
    BuildingType.TOWN_HALL: ResourceType.GOLD,
    BuildingType.MARKET: ResourceType.GOLD,
    BuildingType.DECOR: ResourceType.GOLD,
}


@dataclass(frozen=True, slots=True)
class SessionRewardPreview:
    """What completing the active session at a given instant would yield."""

    activity: Activity
    current: ActivityProgress
    minutes: int
    xp: int
    reward_resource: ResourceType
    reward_amount: int
    building_count: int


def resource_for_building(building_type: BuildingType) -> ResourceType:
    return RESOURCE_FOR_BUILDING.get(building_type, ResourceType.GOLD)


def xp_threshold(level: int, rules: RulesConfig = DEFAULT_RULES) -> int:
    """XP needed to advance from ``level`` to the next level."""

    progression = rules.progression
    return progression.base_threshold + (level - 1) * progression.threshold_step


def calculate_session_xp(minutes: int, rules: RulesConfig = DEFAULT_RULES) -> int:
    """XP for a session of ``minutes``.

    Minutes are counted in blocks of ten; every completed block doubles the
    rate of the next one, so 25 minutes yield ``10*1 + 10*2 + 5*4 = 50``.
    """

    chunk_size = rules.session.xp_chunk_minutes
    remaining = minutes
    multiplier = 1
    total = 0
    while remaining > 0:
        chunk = min(chunk_size, remaining)
        total += chunk * multiplier
        remaining -= chunk
        multiplier *= rules.session.xp_chunk_multiplier
    return total


def apply_xp(
    progress: ActivityProgress, gained: int, rules: RulesConfig = DEFAULT_RULES
) -> ActivityProgress:
    """Add ``gained`` XP, rolling over as many levels as it pays for."""

    level = progress.level
    xp = progress.xp + gained
    while xp >= xp_threshold(level, rules):
        xp -= xp_threshold(level, rules)
        level += 1
    return ActivityProgress(activity_id=progress.activity_id, level=level, xp=xp)


def reward_per_minute(level: int, rules: RulesConfig = DEFAULT_RULES) -> float:
    session = rules.session
    return session.reward_base_per_minute * (1 + max(0, level - 1) * session.reward_level_bonus)


def elapsed_minutes(start_at: datetime, timestamp: datetime) -> int:
    """Whole minutes between ``start_at`` and ``timestamp``, never negative."""

    return max(0, math.floor((timestamp - start_at).total_seconds() / 60))


def session_reward_preview(
    state: TownState, timestamp: datetime, rules: RulesConfig = DEFAULT_RULES
) -> SessionRewardPreview | None:
    """Reward for completing the active session at ``timestamp``.

    Returns ``None`` when there is no active session or its activity no
    longer exists.
    """

    timer = state.active_session
    if timer is None:
        return None
    activity = state.activity(timer.activity_id)
    if activity is None:
        return None

    minutes = elapsed_minutes(timer.start_at, timestamp)
    reward_source = timer.reward_building_type or activity.building_type
    current = state.activity_progress.get(activity.id) or ActivityProgress(activity.id)
    building_count = sum(1 for b in state.buildings if b.type == reward_source)
    raw_amount = minutes * reward_per_minute(current.level, rules) * max(1, building_count)
    return SessionRewardPreview(
        activity=activity,
        current=current,
        minutes=minutes,
        xp=calculate_session_xp(minutes, rules),
        reward_resource=resource_for_building(reward_source),
        reward_amount=max(0, _round_half_up(raw_amount)),
        building_count=building_count,
    )


def _round_half_up(value: float) -> int:
    return math.floor(round(value, 6) + 0.5)
