"""Constructors for well-formed commands.

The factory stamps each command with a fresh identifier and the client
clock, and clamps trivially bounded inputs before submission.  Both the
clock and the id generator are injectable so tests can produce
deterministic commands.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from uuid import uuid4

from .commands import (
    AddActivity,
    AddTask,
    ClaimProduction,
    CompleteSession,
    CompleteTask,
    DeleteActivity,
    DeleteBuilding,
    MoveBuilding,
    PlaceBuilding,
    StartSession,
    UpdateTaskProgress,
    UpgradeBuilding,
)
from .enums import BuildingType
from .models import utc_now
from .rules_config import DEFAULT_RULES, RulesConfig


def new_command_id() -> str:
    return str(uuid4())


class CommandFactory:
    """One constructor per command variant."""

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_command_id,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory
        self._rules = rules

    def start_session(
        self,
        duration_seconds: int,
        activity_id: str,
        reward_building_type: BuildingType | None = None,
    ) -> StartSession:
        """Start a focus session; the duration is clamped to 5-60 minutes."""

        session = self._rules.session
        clamped = min(
            max(duration_seconds, session.min_duration_seconds), session.max_duration_seconds
        )
        return StartSession(
            id=self._id_factory(),
            client_created_at=self._clock(),
            duration=clamped,
            activity_id=activity_id,
            reward_building_type=reward_building_type,
        )

    def complete_session(self, session_id: str) -> CompleteSession:
        return CompleteSession(
            id=self._id_factory(), client_created_at=self._clock(), session_id=session_id
        )

    def place_building(
        self, building_id: str, building_type: BuildingType, x: int, y: int, rot: int = 0
    ) -> PlaceBuilding:
        return PlaceBuilding(
            id=self._id_factory(),
            client_created_at=self._clock(),
            building_id=building_id,
            building_type=building_type,
            x=x,
            y=y,
            rot=rot,
        )

    def move_building(
        self, building_id: str, x: int, y: int, rot: int | None = None
    ) -> MoveBuilding:
        return MoveBuilding(
            id=self._id_factory(),
            client_created_at=self._clock(),
            building_id=building_id,
            x=x,
            y=y,
            rot=rot,
        )

    def upgrade_building(self, building_id: str) -> UpgradeBuilding:
        return UpgradeBuilding(
            id=self._id_factory(), client_created_at=self._clock(), building_id=building_id
        )

    def claim_production(self, building_id: str) -> ClaimProduction:
        return ClaimProduction(
            id=self._id_factory(), client_created_at=self._clock(), building_id=building_id
        )

    def delete_building(self, building_id: str) -> DeleteBuilding:
        return DeleteBuilding(
            id=self._id_factory(), client_created_at=self._clock(), building_id=building_id
        )

    def add_activity(
        self, name: str, category: str, building_type: BuildingType
    ) -> AddActivity:
        """Create a new activity with a generated id."""

        return AddActivity(
            id=self._id_factory(),
            client_created_at=self._clock(),
            activity_id=self._id_factory(),
            name=name,
            category=category,
            building_type=building_type,
        )

    def delete_activity(self, activity_id: str) -> DeleteActivity:
        return DeleteActivity(
            id=self._id_factory(), client_created_at=self._clock(), activity_id=activity_id
        )

    def add_task(self, name: str, target: int, reward_xp: int) -> AddTask:
        """Create a new task with a generated id."""

        return AddTask(
            id=self._id_factory(),
            client_created_at=self._clock(),
            task_id=self._id_factory(),
            name=name,
            target=target,
            reward_xp=reward_xp,
        )

    def update_task_progress(self, task_id: str, delta: int) -> UpdateTaskProgress:
        return UpdateTaskProgress(
            id=self._id_factory(), client_created_at=self._clock(), task_id=task_id, delta=delta
        )

    def complete_task(self, task_id: str) -> CompleteTask:
        return CompleteTask(id=self._id_factory(), client_created_at=self._clock(), task_id=task_id)
