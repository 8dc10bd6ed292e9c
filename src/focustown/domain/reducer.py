"""Command application rules for the town aggregate.

:func:`apply_command` is the single entry point for every state transition.
It is pure: the input state is never mutated, a successful command yields a
new state whose ``version`` is exactly one higher, and a rejected command
returns the very same state object together with a reason code.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

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
from .economy import can_afford, pay, place_cost, upgrade_cost
from .enums import ApplyMessage, RejectReason, ResourceType
from .footprint import footprint_for
from .models import (
    Activity,
    ActivityProgress,
    Building,
    SessionEntry,
    SessionTimer,
    Task,
    TownState,
    utc_now,
)
from .occupancy import is_area_free
from .progression import apply_xp, session_reward_preview
from .rules_config import DEFAULT_RULES, RulesConfig


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """Outcome of applying one command."""

    ok: bool
    state: TownState
    reason: RejectReason | None = None
    message: ApplyMessage | None = None


@dataclass(frozen=True, slots=True)
class ApplyContext:
    """Shared context passed to every command handler."""

    timestamp: datetime
    rules: RulesConfig = DEFAULT_RULES


CommandHandler = Callable[[TownState, Any, ApplyContext], ApplyResult]


def apply_command(
    state: TownState,
    command: object,
    timestamp: datetime | None = None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> ApplyResult:
    """Apply ``command`` to ``state`` at ``timestamp`` (defaults to now)."""

    handler = _COMMAND_HANDLERS.get(type(command))
    if handler is None:
        return _reject(state, RejectReason.UNKNOWN_COMMAND)
    context = ApplyContext(timestamp=timestamp or utc_now(), rules=rules)
    return handler(state, command, context)


# ---------------------------------------------------------------------------
# Focus sessions


def _handle_start_session(
    state: TownState, command: StartSession, context: ApplyContext
) -> ApplyResult:
    session_rules = context.rules.session
    if not (
        session_rules.min_duration_seconds
        <= command.duration
        <= session_rules.max_duration_seconds
    ):
        return _reject(state, RejectReason.INVALID_DURATION)
    if state.active_session is not None:
        return _reject(state, RejectReason.SESSION_ALREADY_ACTIVE)
    if state.activity(command.activity_id) is None:
        return _reject(state, RejectReason.ACTIVITY_NOT_FOUND)

    timer = SessionTimer(
        session_id=command.id,
        start_at=context.timestamp,
        planned_duration=command.duration,
        activity_id=command.activity_id,
        reward_building_type=command.reward_building_type,
    )
    return _accept(state, timers=replace(state.timers, session=timer))


def _handle_complete_session(
    state: TownState, command: CompleteSession, context: ApplyContext
) -> ApplyResult:
    timer = state.active_session
    if timer is None or timer.session_id != command.session_id:
        return _reject(state, RejectReason.SESSION_NOT_FOUND)

    preview = session_reward_preview(state, context.timestamp, context.rules)
    if preview is None:
        return _reject(state, RejectReason.ACTIVITY_NOT_FOUND)

    progress = dict(state.activity_progress)
    progress[preview.activity.id] = apply_xp(preview.current, preview.xp, context.rules)
    entry = SessionEntry(
        id=command.id,
        activity_id=preview.activity.id,
        minutes=preview.minutes,
        at=context.timestamp,
    )
    message = (
        ApplyMessage.SESSION_COMPLETE
        if preview.minutes > 0
        else ApplyMessage.SESSION_ENDED_NO_REWARD
    )
    return _accept(
        state,
        message=message,
        resources=state.resources.credit(preview.reward_resource, preview.reward_amount),
        timers=replace(state.timers, session=None),
        activity_progress=progress,
        session_log=(*state.session_log, entry),
    )


# ---------------------------------------------------------------------------
# Buildings


def _handle_place_building(
    state: TownState, command: PlaceBuilding, context: ApplyContext
) -> ApplyResult:
    if state.building(command.building_id) is not None:
        return _reject(state, RejectReason.BUILDING_EXISTS)
    footprint = footprint_for(command.building_type)
    if not is_area_free(state, command.x, command.y, footprint):
        return _reject(state, RejectReason.TILE_OCCUPIED)

    building_rules = context.rules.buildings
    if state.town_hall_level < building_rules.unlimited_town_hall_level:
        same_type = sum(1 for b in state.buildings if b.type == command.building_type)
        if same_type >= building_rules.max_per_type_before_unlock:
            return _reject(state, RejectReason.BUILDING_LIMIT)

    cost = place_cost(command.building_type)
    if not can_afford(state.resources, cost):
        return _reject(state, RejectReason.INSUFFICIENT_RESOURCES)

    building = Building(
        id=command.building_id,
        type=command.building_type,
        level=1,
        x=command.x,
        y=command.y,
        rot=command.rot,
        footprint=footprint,
        produced_until=context.timestamp,
    )
    return _accept(
        state,
        resources=pay(state.resources, cost),
        buildings=(*state.buildings, building),
    )


def _handle_move_building(
    state: TownState, command: MoveBuilding, context: ApplyContext
) -> ApplyResult:
    building = state.building(command.building_id)
    if building is None:
        return _reject(state, RejectReason.BUILDING_MISSING)
    if not is_area_free(state, command.x, command.y, building.footprint, building.id):
        return _reject(state, RejectReason.TILE_OCCUPIED)

    moved = replace(
        building,
        x=command.x,
        y=command.y,
        rot=building.rot if command.rot is None else command.rot,
    )
    return _accept(state, buildings=_replace_building(state, moved))


def _handle_delete_building(
    state: TownState, command: DeleteBuilding, context: ApplyContext
) -> ApplyResult:
    if command.building_id == context.rules.buildings.protected_building_id:
        return _reject(state, RejectReason.PROTECTED_BUILDING)
    if state.building(command.building_id) is None:
        return _reject(state, RejectReason.BUILDING_MISSING)

    remaining = tuple(b for b in state.buildings if b.id != command.building_id)
    return _accept(state, buildings=remaining)


def _handle_upgrade_building(
    state: TownState, command: UpgradeBuilding, context: ApplyContext
) -> ApplyResult:
    building = state.building(command.building_id)
    if building is None:
        return _reject(state, RejectReason.BUILDING_MISSING)

    cost = upgrade_cost(building.type, building.level + 1, context.rules)
    if not can_afford(state.resources, cost):
        return _reject(state, RejectReason.INSUFFICIENT_RESOURCES)

    upgraded = replace(building, level=building.level + 1)
    return _accept(
        state,
        resources=pay(state.resources, cost),
        buildings=_replace_building(state, upgraded),
    )


def _handle_claim_production(
    state: TownState, command: ClaimProduction, context: ApplyContext
) -> ApplyResult:
    building = state.building(command.building_id)
    if building is None:
        return _reject(state, RejectReason.BUILDING_MISSING)

    # TODO: gate on elapsed production time once buildings track output rates
    reward = max(1, building.level)
    claimed = replace(building, produced_until=context.timestamp)
    return _accept(
        state,
        resources=state.resources.credit(ResourceType.GOLD, reward),
        buildings=_replace_building(state, claimed),
    )


# ---------------------------------------------------------------------------
# Activities


def _handle_add_activity(
    state: TownState, command: AddActivity, context: ApplyContext
) -> ApplyResult:
    if state.activity(command.activity_id) is not None:
        return _reject(state, RejectReason.ACTIVITY_EXISTS)

    text = context.rules.text
    activity = Activity(
        id=command.activity_id,
        name=command.name.strip()[: text.activity_name_max],
        category=command.category.strip()[: text.activity_category_max]
        or text.default_activity_category,
        building_type=command.building_type,
    )
    progress = dict(state.activity_progress)
    progress.setdefault(activity.id, ActivityProgress(activity.id))
    return _accept(
        state,
        activities=(*state.activities, activity),
        activity_progress=progress,
    )


def _handle_delete_activity(
    state: TownState, command: DeleteActivity, context: ApplyContext
) -> ApplyResult:
    if state.activity(command.activity_id) is None:
        return _reject(state, RejectReason.ACTIVITY_NOT_FOUND)
    session = state.timers.session
    if session is not None and session.activity_id == command.activity_id:
        return _reject(state, RejectReason.ACTIVITY_IN_USE)

    progress = dict(state.activity_progress)
    progress.pop(command.activity_id, None)
    return _accept(
        state,
        activities=tuple(a for a in state.activities if a.id != command.activity_id),
        activity_progress=progress,
    )


# ---------------------------------------------------------------------------
# Tasks


def _handle_add_task(state: TownState, command: AddTask, context: ApplyContext) -> ApplyResult:
    task = Task(
        id=command.task_id,
        name=command.name.strip()[: context.rules.text.task_name_max],
        target=max(1, command.target),
        reward_xp=max(0, command.reward_xp),
    )
    return _accept(state, tasks=(*state.tasks, task))


def _handle_update_task_progress(
    state: TownState, command: UpdateTaskProgress, context: ApplyContext
) -> ApplyResult:
    task = state.task(command.task_id)
    if task is None:
        return _reject(state, RejectReason.TASK_MISSING)
    if task.completed:
        return _reject(state, RejectReason.TASK_COMPLETE)

    raw = task.progress + command.delta
    updated = replace(task, progress=max(0, raw), completed=raw >= task.target)
    return _accept(state, tasks=_replace_task(state, updated))


def _handle_complete_task(
    state: TownState, command: CompleteTask, context: ApplyContext
) -> ApplyResult:
    task = state.task(command.task_id)
    if task is None:
        return _reject(state, RejectReason.TASK_MISSING)

    updated = replace(task, progress=task.target, completed=True)
    changes: dict[str, object] = {"tasks": _replace_task(state, updated)}

    # Task XP goes to the first activity; tasks carry no activity of their own.
    if state.activities:
        first = state.activities[0]
        progress = dict(state.activity_progress)
        current = progress.get(first.id) or ActivityProgress(first.id)
        progress[first.id] = apply_xp(current, task.reward_xp, context.rules)
        changes["activity_progress"] = progress

    return _accept(state, **changes)


# ---------------------------------------------------------------------------
# Helpers


def _accept(
    state: TownState, *, message: ApplyMessage | None = None, **changes: Any
) -> ApplyResult:
    next_state = replace(state, version=state.version + 1, **changes)
    return ApplyResult(ok=True, state=next_state, message=message)


def _reject(state: TownState, reason: RejectReason) -> ApplyResult:
    return ApplyResult(ok=False, state=state, reason=reason)


def _replace_building(state: TownState, updated: Building) -> tuple[Building, ...]:
    return tuple(updated if b.id == updated.id else b for b in state.buildings)


def _replace_task(state: TownState, updated: Task) -> tuple[Task, ...]:
    return tuple(updated if t.id == updated.id else t for t in state.tasks)


_COMMAND_HANDLERS: dict[type, CommandHandler] = {
    StartSession: _handle_start_session,
    CompleteSession: _handle_complete_session,
    PlaceBuilding: _handle_place_building,
    MoveBuilding: _handle_move_building,
    DeleteBuilding: _handle_delete_building,
    UpgradeBuilding: _handle_upgrade_building,
    ClaimProduction: _handle_claim_production,
    AddActivity: _handle_add_activity,
    DeleteActivity: _handle_delete_activity,
    AddTask: _handle_add_task,
    UpdateTaskProgress: _handle_update_task_progress,
    CompleteTask: _handle_complete_task,
}
