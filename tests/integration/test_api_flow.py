"""End-to-end tests for the FastAPI layer."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from focustown.api.app import create_app
from focustown.api.runtime import ApiState
from focustown.config import Settings


def _make_app(tmp_path):
    def factory() -> ApiState:
        settings = Settings(
            database_url=f"sqlite:///{tmp_path / 'api.db'}",
            auto_sync_enabled=False,
        )
        return ApiState(settings=settings)

    app = create_app(state_factory=factory)
    transport = ASGITransport(app=app)
    return app, transport


@pytest.mark.asyncio
async def test_health_and_initial_town(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/health")
        assert response.status_code == 200
        health = response.json()
        assert health["status"] == "ok"
        assert health["database"] == "connected"
        assert health["version"] == 1
        assert health["queue_length"] == 0

        response = await client.get("/town")
        assert response.status_code == 200
        town = response.json()
        assert town["resources"] == {"gold": 500, "wood": 400, "stone": 200, "food": 300}
        assert {b["id"] for b in town["buildings"]} == {
            "town-hall",
            "farm-1",
            "sawmill-1",
            "mine-1",
        }


@pytest.mark.asyncio
async def test_command_sync_flow(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.post(
            "/commands",
            json={"type": "ADD_ACTIVITY", "name": "Deep work", "building_type": "farm"},
        )
        assert response.status_code == 200
        added = response.json()
        assert added["ok"] is True
        assert added["version"] == 2

        response = await client.post(
            "/commands",
            json={"type": "PLACE_BUILDING", "building_type": "farm", "x": 2, "y": 6},
        )
        assert response.status_code == 200
        refused = response.json()
        assert refused["ok"] is False
        assert refused["reason"] == "tile-occupied"
        assert refused["version"] == 2

        response = await client.get("/queue")
        statuses = [entry["status"] for entry in response.json()]
        assert statuses == ["pending", "rejected"]

        response = await client.post("/sync")
        assert response.status_code == 200
        outcome = response.json()
        assert outcome["ok"] is True
        assert outcome["acked"] == [added["command_id"]]
        assert outcome["version"] == 2

        response = await client.get("/queue")
        (remaining,) = response.json()
        assert remaining["status"] == "rejected"
        assert remaining["error"] == "tile-occupied"

        response = await client.get("/history/economy")
        assert response.json() == []


@pytest.mark.asyncio
async def test_session_preview_and_history(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/session/preview")
        assert response.status_code == 404

        await client.post(
            "/commands",
            json={"type": "ADD_ACTIVITY", "name": "Read", "building_type": "sawmill"},
        )
        activity_id = (await client.get("/town")).json()["activities"][0]["id"]

        response = await client.post(
            "/commands",
            json={"type": "START_SESSION", "duration": 1500, "activity_id": activity_id},
        )
        assert response.json()["ok"] is True

        response = await client.get("/session/preview")
        assert response.status_code == 200
        preview = response.json()
        assert preview["activity_id"] == activity_id
        assert preview["reward_resource"] == "wood"
        assert preview["minutes"] >= 0

        (record,) = (await client.get("/history/sessions")).json()
        assert record["status"] == "active"
        assert record["activity_id"] == activity_id


@pytest.mark.asyncio
async def test_lookup_endpoints(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/map/open-slot", params={"building_type": "market"})
        assert response.status_code == 200
        assert response.json() == {"building_type": "market", "x": 0, "y": 0}

        response = await client.get("/map/open-slot", params={"building_type": "castle"})
        assert response.status_code == 422

        response = await client.get("/economy/costs")
        assert response.status_code == 200
        costs = response.json()
        assert costs["place"]["farm"] == {"gold": 40, "wood": 60, "stone": 10, "food": 0}
        assert costs["upgrade"]["farm-1"] == {
            "level": 2,
            "cost": {"gold": 66, "wood": 66, "stone": 22, "food": 0},
        }


@pytest.mark.asyncio
async def test_malformed_commands_are_rejected(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.post("/commands", json={"type": "LAUNCH_ROCKET"})
        assert response.status_code == 422

        response = await client.post("/commands", json={"type": "MOVE_BUILDING", "x": 1})
        assert response.status_code == 422

        response = await client.post("/commands", json=[1, 2, 3])
        assert response.status_code == 422

        assert (await client.get("/queue")).json() == []


@pytest.mark.asyncio
async def test_reset_and_restart_persistence(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.post(
            "/commands", json={"type": "UPGRADE_BUILDING", "building_id": "farm-1"}
        )
        assert response.json()["ok"] is True
        await client.post("/sync")

    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        town = (await client.get("/town")).json()
        assert town["version"] == 2
        farm = next(b for b in town["buildings"] if b["id"] == "farm-1")
        assert farm["level"] == 2

        response = await client.post("/reset")
        assert response.status_code == 200
        assert response.json()["version"] == 1
        assert (await client.get("/queue")).json() == []


@pytest.mark.asyncio
async def test_restart_with_pending_queue_keeps_synced_progress(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.post(
            "/commands",
            json={
                "type": "PLACE_BUILDING",
                "building_type": "farm",
                "x": 0,
                "y": 0,
                "building_id": "b1",
            },
        )
        assert response.json()["ok"] is True
        assert (await client.post("/sync")).json()["acked"] != []

        response = await client.post(
            "/commands", json={"type": "UPGRADE_BUILDING", "building_id": "farm-1"}
        )
        assert response.json()["version"] == 3

    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        town = (await client.get("/town")).json()
        assert town["version"] == 3
        assert "b1" in {b["id"] for b in town["buildings"]}
        farm = next(b for b in town["buildings"] if b["id"] == "farm-1")
        assert farm["level"] == 2
        assert [entry["status"] for entry in (await client.get("/queue")).json()] == ["pending"]

        outcome = (await client.post("/sync")).json()
        assert outcome["ok"] is True
        assert len(outcome["acked"]) == 1
        assert outcome["version"] == 3
        assert (await client.get("/queue")).json() == []
