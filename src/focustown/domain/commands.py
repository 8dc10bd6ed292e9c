"""Command value objects and their wire codec.

Commands form a closed union.  Each variant is a frozen dataclass carrying
a unique ``id`` and the ``client_created_at`` instant, plus a class-level
``command_type`` tag used on the wire (``{"type": "START_SESSION", ...}``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

from pydantic import TypeAdapter, ValidationError

from .enums import BuildingType


class CommandDecodeError(ValueError):
    """Raised when a payload cannot be turned into a command."""


@dataclass(frozen=True, slots=True, kw_only=True)
class BaseCommand:
    command_type: ClassVar[str] = ""

    id: str
    client_created_at: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class StartSession(BaseCommand):
    command_type: ClassVar[str] = "START_SESSION"

    duration: int  # seconds
    activity_id: str
    reward_building_type: BuildingType | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class CompleteSession(BaseCommand):
    command_type: ClassVar[str] = "COMPLETE_SESSION"

    session_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class PlaceBuilding(BaseCommand):
    command_type: ClassVar[str] = "PLACE_BUILDING"

    building_id: str
    building_type: BuildingType
    x: int
    y: int
    rot: int = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class MoveBuilding(BaseCommand):
    command_type: ClassVar[str] = "MOVE_BUILDING"

    building_id: str
    x: int
    y: int
    rot: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class UpgradeBuilding(BaseCommand):
    command_type: ClassVar[str] = "UPGRADE_BUILDING"

    building_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ClaimProduction(BaseCommand):
    command_type: ClassVar[str] = "CLAIM_PRODUCTION"

    building_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class DeleteBuilding(BaseCommand):
    command_type: ClassVar[str] = "DELETE_BUILDING"

    building_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class AddActivity(BaseCommand):
    command_type: ClassVar[str] = "ADD_ACTIVITY"

    activity_id: str
    name: str
    category: str
    building_type: BuildingType


@dataclass(frozen=True, slots=True, kw_only=True)
class DeleteActivity(BaseCommand):
    command_type: ClassVar[str] = "DELETE_ACTIVITY"

    activity_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class AddTask(BaseCommand):
    command_type: ClassVar[str] = "ADD_TASK"

    task_id: str
    name: str
    target: int
    reward_xp: int


@dataclass(frozen=True, slots=True, kw_only=True)
class UpdateTaskProgress(BaseCommand):
    command_type: ClassVar[str] = "UPDATE_TASK_PROGRESS"

    task_id: str
    delta: int


@dataclass(frozen=True, slots=True, kw_only=True)
class CompleteTask(BaseCommand):
    command_type: ClassVar[str] = "COMPLETE_TASK"

    task_id: str


Command = (
    StartSession
    | CompleteSession
    | PlaceBuilding
    | MoveBuilding
    | UpgradeBuilding
    | ClaimProduction
    | DeleteBuilding
    | AddActivity
    | DeleteActivity
    | AddTask
    | UpdateTaskProgress
    | CompleteTask
)

COMMAND_CLASSES: tuple[type[BaseCommand], ...] = (
    StartSession,
    CompleteSession,
    PlaceBuilding,
    MoveBuilding,
    UpgradeBuilding,
    ClaimProduction,
    DeleteBuilding,
    AddActivity,
    DeleteActivity,
    AddTask,
    UpdateTaskProgress,
    CompleteTask,
)

COMMAND_TYPES: dict[str, type[BaseCommand]] = {cls.command_type: cls for cls in COMMAND_CLASSES}

_ADAPTERS: dict[type[BaseCommand], TypeAdapter[Any]] = {
    cls: TypeAdapter(cls) for cls in COMMAND_CLASSES
}


def command_to_payload(command: Command) -> dict[str, Any]:
    """Serialise a command to a JSON-compatible mapping tagged with its type."""

    adapter = _ADAPTERS.get(type(command))
    if adapter is None:
        raise TypeError(f"not a command: {command!r}")
    body = adapter.dump_python(command, mode="json")
    return {"type": command.command_type, **body}


def command_from_payload(payload: Mapping[str, Any]) -> Command:
    """Rebuild a command from :func:`command_to_payload` output.

    Raises:
        CommandDecodeError: If the tag is unknown or the body is invalid.
    """

    body = dict(payload)
    tag = body.pop("type", None)
    cls = COMMAND_TYPES.get(tag) if isinstance(tag, str) else None
    if cls is None:
        raise CommandDecodeError(f"unknown command type: {tag!r}")
    try:
        return _ADAPTERS[cls].validate_python(body)
    except ValidationError as exc:
        raise CommandDecodeError(f"invalid {tag} payload: {exc}") from exc
