"""Enumerations shared by the town rules layer."""

from __future__ import annotations

from enum import StrEnum


class ResourceType(StrEnum):
    """The four fixed resource kinds held by a town."""

    GOLD = "gold"
    WOOD = "wood"
    STONE = "stone"
    FOOD = "food"


class BuildingType(StrEnum):
    """Building kinds that can stand on the town map."""

    TOWN_HALL = "town_hall"
    FARM = "farm"
    SAWMILL = "sawmill"
    MINE = "mine"
    MARKET = "market"
    DECOR = "decor"


class QueueStatus(StrEnum):
    """Lifecycle of a command sitting in the local queue."""

    PENDING = "pending"
    ACKED = "acked"
    REJECTED = "rejected"


class RejectReason(StrEnum):
    """Reason codes returned alongside a rejected command."""

    INVALID_DURATION = "invalid-duration"
    SESSION_ALREADY_ACTIVE = "session-already-active"
    SESSION_NOT_FOUND = "session-not-found"
    ACTIVITY_NOT_FOUND = "activity-not-found"
    ACTIVITY_EXISTS = "activity-exists"
    ACTIVITY_IN_USE = "activity-in-use"
    TILE_OCCUPIED = "tile-occupied"
    BUILDING_LIMIT = "building-limit"
    BUILDING_EXISTS = "building-exists"
    BUILDING_MISSING = "building-missing"
    PROTECTED_BUILDING = "protected-building"
    INSUFFICIENT_RESOURCES = "insufficient-resources"
    TASK_MISSING = "task-missing"
    TASK_COMPLETE = "task-complete"
    UNKNOWN_COMMAND = "unknown-command"


class ApplyMessage(StrEnum):
    """Informational messages attached to successful transitions."""

    SESSION_COMPLETE = "session-complete"
    SESSION_ENDED_NO_REWARD = "session-ended-no-reward"
