"""HTTP routes for the Focustown API."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from focustown.api.runtime import ApiState, outcome_to_dict, town_to_dict
from focustown.database import check_database_health
from focustown.domain.command_factory import CommandFactory, new_command_id
from focustown.domain.commands import Command
from focustown.domain.economy import PLACE_COSTS, upgrade_cost
from focustown.domain.enums import BuildingType
from focustown.domain.footprint import footprint_for
from focustown.domain.models import Resources, utc_now
from focustown.domain.occupancy import find_next_open_slot
from focustown.domain.progression import session_reward_preview

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


# ---------------------------------------------------------------------------
# Command requests


class StartSessionRequest(BaseModel):
    type: Literal["START_SESSION"]
    duration: int = Field(gt=0, description="Planned length in seconds")
    activity_id: str = Field(min_length=1)
    reward_building_type: BuildingType | None = None

    def build(self, factory: CommandFactory) -> Command:
        return factory.start_session(self.duration, self.activity_id, self.reward_building_type)


class CompleteSessionRequest(BaseModel):
    type: Literal["COMPLETE_SESSION"]
    session_id: str = Field(min_length=1)

    def build(self, factory: CommandFactory) -> Command:
        return factory.complete_session(self.session_id)


class PlaceBuildingRequest(BaseModel):
    type: Literal["PLACE_BUILDING"]
    building_type: BuildingType
    x: int
    y: int
    rot: int = 0
    building_id: str | None = None

    def build(self, factory: CommandFactory) -> Command:
        building_id = self.building_id or f"{self.building_type.value}-{new_command_id()[:8]}"
        return factory.place_building(building_id, self.building_type, self.x, self.y, self.rot)


class MoveBuildingRequest(BaseModel):
    type: Literal["MOVE_BUILDING"]
    building_id: str
    x: int
    y: int
    rot: int | None = None

    def build(self, factory: CommandFactory) -> Command:
        return factory.move_building(self.building_id, self.x, self.y, self.rot)


class UpgradeBuildingRequest(BaseModel):
    type: Literal["UPGRADE_BUILDING"]
    building_id: str

    def build(self, factory: CommandFactory) -> Command:
        return factory.upgrade_building(self.building_id)


class ClaimProductionRequest(BaseModel):
    type: Literal["CLAIM_PRODUCTION"]
    building_id: str

    def build(self, factory: CommandFactory) -> Command:
        return factory.claim_production(self.building_id)


class DeleteBuildingRequest(BaseModel):
    type: Literal["DELETE_BUILDING"]
    building_id: str

    def build(self, factory: CommandFactory) -> Command:
        return factory.delete_building(self.building_id)


class AddActivityRequest(BaseModel):
    type: Literal["ADD_ACTIVITY"]
    name: str = Field(min_length=1)
    category: str = ""
    building_type: BuildingType

    def build(self, factory: CommandFactory) -> Command:
        return factory.add_activity(self.name, self.category, self.building_type)


class DeleteActivityRequest(BaseModel):
    type: Literal["DELETE_ACTIVITY"]
    activity_id: str

    def build(self, factory: CommandFactory) -> Command:
        return factory.delete_activity(self.activity_id)


class AddTaskRequest(BaseModel):
    type: Literal["ADD_TASK"]
    name: str = Field(min_length=1)
    target: int = 1
    reward_xp: int = 0

    def build(self, factory: CommandFactory) -> Command:
        return factory.add_task(self.name, self.target, self.reward_xp)


class UpdateTaskProgressRequest(BaseModel):
    type: Literal["UPDATE_TASK_PROGRESS"]
    task_id: str
    delta: int

    def build(self, factory: CommandFactory) -> Command:
        return factory.update_task_progress(self.task_id, self.delta)


class CompleteTaskRequest(BaseModel):
    type: Literal["COMPLETE_TASK"]
    task_id: str

    def build(self, factory: CommandFactory) -> Command:
        return factory.complete_task(self.task_id)


CommandRequest = Annotated[
    StartSessionRequest
    | CompleteSessionRequest
    | PlaceBuildingRequest
    | MoveBuildingRequest
    | UpgradeBuildingRequest
    | ClaimProductionRequest
    | DeleteBuildingRequest
    | AddActivityRequest
    | DeleteActivityRequest
    | AddTaskRequest
    | UpdateTaskProgressRequest
    | CompleteTaskRequest,
    Field(discriminator="type"),
]

_COMMAND_REQUEST_ADAPTER: TypeAdapter[Any] = TypeAdapter(CommandRequest)


class CommandResponse(BaseModel):
    ok: bool
    command_id: str
    type: str
    reason: str | None
    message: str | None
    version: int
    queue_length: int


class OpenSlotResponse(BaseModel):
    building_type: BuildingType
    x: int
    y: int


def _resources_dict(resources: Resources) -> dict[str, int]:
    return {str(kind): amount for kind, amount in resources.as_dict().items()}


# ---------------------------------------------------------------------------
# Endpoints


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    database_ok = check_database_health(state.engine)
    return {
        "status": "ok" if database_ok else "degraded",
        "database": "connected" if database_ok else "unavailable",
        "version": state.sync.town.version,
        "queue_length": len(state.sync.queue),
        "pending": len(state.store.pending_commands()),
        "syncing": state.sync.syncing,
        "auto_sync": state.auto_sync.running,
    }


@router.get("/town")
async def get_town(state: ApiStateDep) -> dict[str, Any]:
    return town_to_dict(state.sync.town)


@router.get("/queue")
async def get_queue(state: ApiStateDep) -> list[dict[str, object]]:
    return state.queue_as_dicts()


@router.post("/commands", response_model=CommandResponse)
async def submit_command(
    state: ApiStateDep, payload: Annotated[dict[str, Any], Body()]
) -> CommandResponse:
    try:
        request = _COMMAND_REQUEST_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc

    command = request.build(state.sync.commands)
    result = state.sync.enqueue(command)
    return CommandResponse(
        ok=result.ok,
        command_id=command.id,
        type=command.command_type,
        reason=str(result.reason) if result.reason is not None else None,
        message=str(result.message) if result.message is not None else None,
        version=state.sync.town.version,
        queue_length=len(state.sync.queue),
    )


@router.post("/sync")
async def sync_now(state: ApiStateDep) -> dict[str, object]:
    outcome = await state.sync.sync_now()
    return outcome_to_dict(outcome)


@router.post("/reset")
async def reset_town(state: ApiStateDep) -> dict[str, Any]:
    state.sync.reset()
    return town_to_dict(state.sync.town)


@router.get("/session/preview")
async def session_preview(state: ApiStateDep) -> dict[str, object]:
    town = state.sync.town
    preview = session_reward_preview(town, utc_now(), state.rules)
    if preview is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active session")
    timer = town.active_session
    return {
        "session_id": timer.session_id if timer is not None else None,
        "activity_id": preview.activity.id,
        "minutes": preview.minutes,
        "xp": preview.xp,
        "reward_resource": str(preview.reward_resource),
        "reward_amount": preview.reward_amount,
        "building_count": preview.building_count,
    }


@router.get("/economy/costs")
async def economy_costs(state: ApiStateDep) -> dict[str, object]:
    town = state.sync.town
    return {
        "place": {str(kind): _resources_dict(cost) for kind, cost in PLACE_COSTS.items()},
        "upgrade": {
            building.id: {
                "level": building.level + 1,
                "cost": _resources_dict(
                    upgrade_cost(building.type, building.level + 1, state.rules)
                ),
            }
            for building in town.buildings
        },
    }


@router.get("/map/open-slot", response_model=OpenSlotResponse)
async def open_slot(
    state: ApiStateDep, building_type: Annotated[BuildingType, Query()]
) -> OpenSlotResponse:
    slot = find_next_open_slot(state.sync.town, footprint_for(building_type))
    if slot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No open slot")
    x, y = slot
    return OpenSlotResponse(building_type=building_type, x=x, y=y)


@router.get("/history/sessions")
async def session_history(state: ApiStateDep) -> list[dict[str, object]]:
    return state.repository.list_sessions()


@router.get("/history/economy")
async def economy_history(state: ApiStateDep) -> list[dict[str, object]]:
    return state.repository.list_economy_logs()
