"""Tests for the command factory and the command wire codec."""

from __future__ import annotations

import pytest

from focustown.domain.command_factory import CommandFactory, new_command_id
from focustown.domain.commands import (
    COMMAND_TYPES,
    CommandDecodeError,
    MoveBuilding,
    PlaceBuilding,
    StartSession,
    command_from_payload,
    command_to_payload,
)
from focustown.domain.enums import BuildingType


def test_factory_stamps_id_and_clock(factory, t0):
    command = factory.upgrade_building("farm-1")

    assert command.id == "cmd-1"
    assert command.client_created_at == t0
    assert factory.upgrade_building("farm-1").id == "cmd-2"


def test_factory_clamps_session_duration(factory):
    assert factory.start_session(60, "a").duration == 300
    assert factory.start_session(7200, "a").duration == 3600
    assert factory.start_session(1500, "a").duration == 1500


def test_factory_generates_entity_ids(factory):
    activity = factory.add_activity("Read", "study", BuildingType.FARM)
    task = factory.add_task("Stretch", 3, 10)

    assert activity.id == "cmd-1"
    assert activity.activity_id == "cmd-2"
    assert task.id == "cmd-3"
    assert task.task_id == "cmd-4"


def test_default_ids_are_unique():
    factory = CommandFactory()

    ids = {factory.claim_production("farm-1").id for _ in range(50)}

    assert len(ids) == 50
    assert len(new_command_id()) == 36


def test_every_variant_has_a_distinct_tag():
    assert len(COMMAND_TYPES) == 12
    assert COMMAND_TYPES["START_SESSION"] is StartSession


def test_payload_is_tagged(factory):
    command = factory.place_building("b1", BuildingType.MARKET, 3, 1, rot=180)

    payload = command_to_payload(command)

    assert payload["type"] == "PLACE_BUILDING"
    assert payload["building_type"] == "market"
    assert payload["id"] == command.id
    assert isinstance(payload["client_created_at"], str)


def test_payload_round_trip(factory):
    command = factory.move_building("farm-1", 1, 2)

    decoded = command_from_payload(command_to_payload(command))

    assert isinstance(decoded, MoveBuilding)
    assert decoded == command


def test_decode_unknown_type():
    with pytest.raises(CommandDecodeError, match="unknown command type"):
        command_from_payload({"type": "LAUNCH_ROCKET", "id": "x"})


def test_decode_missing_type():
    with pytest.raises(CommandDecodeError):
        command_from_payload({"id": "x"})


def test_decode_invalid_body(factory):
    payload = command_to_payload(factory.place_building("b1", BuildingType.FARM, 0, 0))
    payload["building_type"] = "castle"

    with pytest.raises(CommandDecodeError, match="invalid PLACE_BUILDING payload"):
        command_from_payload(payload)


def test_encode_rejects_non_commands():
    with pytest.raises(TypeError):
        command_to_payload(PlaceBuilding)  # type: ignore[arg-type]
