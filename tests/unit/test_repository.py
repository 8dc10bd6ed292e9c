"""Tests for the SQLAlchemy town repository."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from focustown.database import (
    check_database_health,
    count_rows,
    create_db_engine,
    get_table_names,
    init_db,
    make_session_factory,
)
from focustown.domain.enums import BuildingType, QueueStatus
from focustown.domain.models import ActivityProgress
from focustown.domain.queue import QueuedCommand
from focustown.domain.reducer import apply_command
from focustown.repository import SqlTownRepository


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'town.db'}", echo=False)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repo(engine):
    return SqlTownRepository(make_session_factory(engine))


def test_schema_created(engine):
    assert check_database_health(engine)
    assert set(get_table_names(engine)) >= {
        "command_queue",
        "town_state",
        "sessions",
        "economy_logs",
    }


def test_count_rows_rejects_unknown_table(engine):
    session = make_session_factory(engine)()
    try:
        assert count_rows(session, "town_state") == 0
        with pytest.raises(ValueError, match="Invalid table name"):
            count_rows(session, "buildings")
    finally:
        session.close()


def test_snapshot_round_trip(repo, town, factory, t0):
    assert repo.load_snapshot() is None

    activity = factory.add_activity("Read", "study", BuildingType.SAWMILL)
    state = apply_command(town, activity, t0).state
    start = factory.start_session(900, activity.activity_id)
    state = apply_command(state, start, t0 + timedelta(minutes=1)).state

    repo.save_snapshot(state)
    loaded = repo.load_snapshot()

    assert loaded == state
    assert loaded.activity_progress[activity.activity_id] == ActivityProgress(
        activity.activity_id
    )
    assert loaded.timers.session.start_at == t0 + timedelta(minutes=1)


def test_snapshot_is_single_row(repo, engine, town):
    repo.save_snapshot(town)
    repo.save_snapshot(replace(town, version=4))

    session = make_session_factory(engine)()
    try:
        assert count_rows(session, "town_state") == 1
    finally:
        session.close()
    assert repo.load_snapshot().version == 4


def test_queue_round_trip_keeps_order_and_status(repo, factory):
    queue = [
        QueuedCommand(command=factory.place_building("b1", BuildingType.FARM, 0, 0)),
        QueuedCommand(
            command=factory.delete_building("town-hall"),
            status=QueueStatus.REJECTED,
            error="protected-building",
        ),
        QueuedCommand(command=factory.move_building("farm-1", 1, 1, rot=90)),
    ]

    repo.save_queue(queue)

    assert repo.load_queue() == queue


def test_retry_counts_survive_queue_rewrites(repo, factory):
    first = QueuedCommand(command=factory.claim_production("farm-1"))
    second = QueuedCommand(command=factory.claim_production("mine-1"))
    repo.save_queue([first, second])

    repo.increment_retry_counts([first.id, second.id])
    repo.increment_retry_counts([first.id])
    repo.save_queue([first])

    assert repo.retry_counts() == {first.id: 2}


def test_retry_counts_skip_rejected_entries(repo, factory):
    rejected = QueuedCommand(
        command=factory.claim_production("nope"),
        status=QueueStatus.REJECTED,
        error="building-missing",
    )
    repo.save_queue([rejected])

    repo.increment_retry_counts([rejected.id])

    assert repo.retry_counts() == {rejected.id: 0}


def test_session_history(repo, t0):
    repo.record_session(
        "s-1", activity_id="act", start_at=t0, planned_duration=1500, status="active"
    )
    repo.record_session(
        "s-1",
        activity_id="act",
        start_at=t0,
        planned_duration=1500,
        status="completed",
        reward={"minutes": 25, "resources": {"food": 25}},
    )

    (record,) = repo.list_sessions()
    assert record["id"] == "s-1"
    assert record["status"] == "completed"
    assert record["reward"] == {"minutes": 25, "resources": {"food": 25}}


def test_economy_log(repo):
    repo.record_economy_delta("PLACE_BUILDING", {"gold": -40, "wood": -60}, note="cmd-1")
    repo.record_economy_delta("CLAIM_PRODUCTION", {"gold": 1})

    logs = repo.list_economy_logs()

    assert [entry["type"] for entry in logs] == ["PLACE_BUILDING", "CLAIM_PRODUCTION"]
    assert logs[0]["delta"] == {"gold": -40, "wood": -60}
    assert logs[0]["note"] == "cmd-1"
    assert logs[1]["note"] is None


def test_save_state_keeps_last_server_snapshot(repo, town, factory, t0):
    assert repo.load_server_snapshot() is None
    command = factory.upgrade_building("farm-1")
    local = apply_command(town, command, t0).state

    repo.save_state(town, [], server_state=town)
    repo.save_state(local, [QueuedCommand(command)])

    assert repo.load_snapshot() == local
    assert repo.load_server_snapshot() == town
    assert [item.id for item in repo.load_queue()] == [command.id]
