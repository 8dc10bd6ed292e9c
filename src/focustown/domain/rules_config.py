"""Declarative rule configuration for the town domain."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SessionRules:
    """Focus-session bounds and reward rates."""

    min_duration_seconds: int = 300
    max_duration_seconds: int = 3600
    xp_chunk_minutes: int = 10
    xp_chunk_multiplier: int = 2
    reward_base_per_minute: float = 1.0
    reward_level_bonus: float = 0.1  # per level above 1


@dataclass(frozen=True, slots=True)
class ProgressionRules:
    """Activity level curve."""

    base_threshold: int = 120
    threshold_step: int = 30  # added per level above 1


@dataclass(frozen=True, slots=True)
class BuildingRules:
    """Placement limits and upgrade scaling."""

    protected_building_id: str = "town-hall"
    max_per_type_before_unlock: int = 2
    unlimited_town_hall_level: int = 10
    upgrade_cost_step: float = 0.1  # cost grows 10% per level beyond 1


@dataclass(frozen=True, slots=True)
class TextRules:
    """Length limits applied to user-entered names."""

    activity_name_max: int = 30
    activity_category_max: int = 24
    default_activity_category: str = "Ozel"
    task_name_max: int = 40


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Aggregate of every rule block consumed by the reducer."""

    session: SessionRules = SessionRules()
    progression: ProgressionRules = ProgressionRules()
    buildings: BuildingRules = BuildingRules()
    text: TextRules = TextRules()


DEFAULT_RULES = RulesConfig()
