"""Dataclasses describing the town aggregate.

Every type here is frozen.  The reducer produces new values with
:func:`dataclasses.replace` and only copies the substructures a command
touches, so an old state and its successor share everything that did not
change.  Persistence adapters serialise these dataclasses through pydantic
``TypeAdapter`` instances; nothing in the domain layer touches storage.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Annotated

from pydantic import PlainSerializer

from .enums import BuildingType, ResourceType


def utc_now() -> datetime:
    """Current time in UTC with timezone awareness."""

    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Footprint:
    """Rectangular tile area occupied by a building."""

    width: int
    height: int


@dataclass(frozen=True, slots=True)
class MapSize:
    """Dimensions of the town grid."""

    width: int
    height: int


@dataclass(frozen=True, slots=True)
class Resources:
    """Stockpile of the four resource kinds."""

    gold: int = 0
    wood: int = 0
    stone: int = 0
    food: int = 0

    def __getitem__(self, kind: ResourceType) -> int:
        return getattr(self, ResourceType(kind).value)

    def as_dict(self) -> dict[ResourceType, int]:
        return {kind: self[kind] for kind in ResourceType}

    def credit(self, kind: ResourceType, amount: int) -> Resources:
        """Return a copy with ``amount`` added to ``kind``."""

        return replace(self, **{ResourceType(kind).value: self[kind] + amount})


@dataclass(frozen=True, slots=True)
class Building:
    """Building standing on the town map."""

    id: str
    type: BuildingType
    level: int
    x: int
    y: int
    footprint: Footprint
    rot: int = 0
    produced_until: datetime | None = None


@dataclass(frozen=True, slots=True)
class SessionTimer:
    """The single focus session that may be running."""

    session_id: str
    start_at: datetime
    planned_duration: int  # seconds
    activity_id: str
    active: bool = True
    reward_building_type: BuildingType | None = None


@dataclass(frozen=True, slots=True)
class Timers:
    session: SessionTimer | None = None


@dataclass(frozen=True, slots=True)
class Activity:
    """User-defined focus category bound to a reward building kind."""

    id: str
    name: str
    category: str
    building_type: BuildingType


@dataclass(frozen=True, slots=True)
class ActivityProgress:
    activity_id: str
    level: int = 1
    xp: int = 0


def _plain_progress(progress: Mapping[str, ActivityProgress]) -> dict[str, ActivityProgress]:
    return dict(progress)


# Read-only on the state; stored and sent as a plain JSON object.
ProgressMap = Annotated[
    Mapping[str, ActivityProgress],
    PlainSerializer(_plain_progress, return_type=dict[str, ActivityProgress]),
]


@dataclass(frozen=True, slots=True)
class Task:
    """Simple counter task that grants XP when completed."""

    id: str
    name: str
    target: int
    reward_xp: int
    progress: int = 0
    completed: bool = False


@dataclass(frozen=True, slots=True)
class SessionEntry:
    """Completed session recorded in the append-only log."""

    id: str
    activity_id: str
    minutes: int
    at: datetime


@dataclass(frozen=True, slots=True)
class Meta:
    last_server_sync_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class TownState:
    """Versioned aggregate owned by the local store."""

    version: int
    resources: Resources
    map: MapSize
    buildings: tuple[Building, ...] = ()
    timers: Timers = Timers()
    activities: tuple[Activity, ...] = ()
    activity_progress: ProgressMap = field(default_factory=dict, hash=False)
    tasks: tuple[Task, ...] = ()
    session_log: tuple[SessionEntry, ...] = ()
    meta: Meta = Meta()

    def __post_init__(self) -> None:
        if not isinstance(self.activity_progress, MappingProxyType):
            object.__setattr__(
                self, "activity_progress", MappingProxyType(dict(self.activity_progress))
            )

    def building(self, building_id: str) -> Building | None:
        for building in self.buildings:
            if building.id == building_id:
                return building
        return None

    def activity(self, activity_id: str) -> Activity | None:
        for activity in self.activities:
            if activity.id == activity_id:
                return activity
        return None

    def task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    @property
    def active_session(self) -> SessionTimer | None:
        session = self.timers.session
        if session is None or not session.active:
            return None
        return session

    @property
    def town_hall_level(self) -> int:
        for building in self.buildings:
            if building.type == BuildingType.TOWN_HALL:
                return building.level
        return 1
