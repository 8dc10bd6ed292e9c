"""Tests for the in-memory server adapter and the sync service."""

from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from focustown.domain.enums import BuildingType, QueueStatus
from focustown.domain.models import Building, Footprint
from focustown.domain.queue import PushCommandsResult
from focustown.domain.seed import initial_town_state
from focustown.services import AutoSyncManager, InMemoryServerAdapter, SyncService, TownStore


def _service(town, factory, server=None):
    server = server or InMemoryServerAdapter(town, clock=lambda: town.meta.last_server_sync_at)
    store = TownStore(town, state_factory=lambda: town)
    return SyncService(store, server, commands=factory), server


class GatedAdapter:
    """Adapter whose push blocks until the test releases it."""

    def __init__(self, seed):
        self.seed = seed
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def fetch_state(self):
        return self.seed

    async def push_commands(self, commands):
        self.calls += 1
        self.entered.set()
        await self.release.wait()
        return PushCommandsResult(acked=[c.id for c in commands], new_state=self.seed)


@pytest.mark.asyncio
async def test_server_push_applies_and_acks(town, factory):
    server = InMemoryServerAdapter(town)
    command = factory.upgrade_building("farm-1")

    result = await server.push_commands([command])

    assert result.acked == [command.id]
    assert result.rejected == []
    assert result.new_state.version == town.version + 1
    assert server.snapshot.building("farm-1").level == 2
    assert server.push_count == 1


@pytest.mark.asyncio
async def test_server_rejects_with_reason(town, factory):
    server = InMemoryServerAdapter(town)
    command = factory.delete_building("town-hall")

    result = await server.push_commands([command])

    assert result.acked == []
    assert [(r.id, r.reason) for r in result.rejected] == [(command.id, "protected-building")]
    assert server.snapshot is town


@pytest.mark.asyncio
async def test_server_fail_next_raises_once(town, t0):
    server = InMemoryServerAdapter(town, clock=lambda: t0)
    server.fail_next(ConnectionError("offline"))

    with pytest.raises(ConnectionError):
        await server.fetch_state()
    fetched = await server.fetch_state()

    assert fetched.version == town.version
    assert fetched.meta.last_server_sync_at == t0


@pytest.mark.asyncio
async def test_sync_acks_and_adopts_server_state(town, factory):
    service, server = _service(town, factory)
    service.enqueue(factory.upgrade_building("farm-1"))
    service.enqueue(factory.claim_production("mine-1"))
    optimistic = service.town

    outcome = await service.sync_now()

    assert outcome.ok
    assert outcome.pushed == 2
    assert len(outcome.acked) == 2
    assert service.queue == ()
    assert service.town.version == server.snapshot.version == optimistic.version
    assert service.town.resources == optimistic.resources
    assert service.town.buildings == optimistic.buildings


@pytest.mark.asyncio
async def test_sync_applies_server_rejections(town, factory):
    service, server = _service(town, factory)
    place = factory.place_building("b1", BuildingType.FARM, 0, 0)
    service.enqueue(place)
    market = Building(
        id="market-1", type=BuildingType.MARKET, level=1, x=0, y=0, footprint=Footprint(2, 2)
    )
    server.replace_snapshot(replace(town, version=3, buildings=(*town.buildings, market)))

    outcome = await service.sync_now()

    assert [r.reason for r in outcome.rejected] == ["tile-occupied"]
    (entry,) = service.queue
    assert entry.status == QueueStatus.REJECTED
    assert entry.error == "tile-occupied"
    assert service.town.building("b1") is None
    assert service.town.building("market-1") is not None
    assert service.town.version == 3


@pytest.mark.asyncio
async def test_sync_failure_keeps_queue_pending(town, factory, caplog):
    service, server = _service(town, factory)
    service.enqueue(factory.upgrade_building("farm-1"))
    before = service.town
    server.fail_next(ConnectionError("offline"))

    outcome = await service.sync_now()

    assert not outcome.ok
    assert outcome.error == "offline"
    assert service.town is before
    assert [item.status for item in service.queue] == [QueueStatus.PENDING]
    assert "sync failed" in caplog.text

    retried = await service.sync_now()
    assert retried.ok
    assert service.queue == ()


@pytest.mark.asyncio
async def test_sync_without_pending_fetches(town, factory, t0):
    server_state = replace(initial_town_state(t0), version=9)
    service, _ = _service(town, factory, InMemoryServerAdapter(server_state))

    outcome = await service.sync_now()

    assert outcome.pushed == 0
    assert outcome.version == 9
    assert service.town.version == 9


@pytest.mark.asyncio
async def test_overlapping_sync_is_skipped(town, factory):
    adapter = GatedAdapter(replace(town, version=town.version + 1))
    service = SyncService(TownStore(town), adapter, commands=factory)
    service.enqueue(factory.claim_production("farm-1"))

    first = asyncio.create_task(service.sync_now())
    await adapter.entered.wait()
    assert service.syncing

    second = await service.sync_now()
    assert second.skipped
    assert not second.ok

    adapter.release.set()
    outcome = await first
    assert outcome.ok
    assert adapter.calls == 1
    assert not service.syncing


@pytest.mark.asyncio
async def test_auto_sync_runs_until_stopped(town, factory):
    service, server = _service(town, factory)
    service.enqueue(factory.claim_production("farm-1"))
    manager = AutoSyncManager(service, interval_seconds=0.01)
    assert manager.interval_seconds == pytest.approx(0.1)

    manager.start()
    assert manager.running
    for _ in range(50):
        if server.push_count:
            break
        await asyncio.sleep(0.05)
    await manager.stop()

    assert not manager.running
    assert server.push_count == 1
    assert service.queue == ()
