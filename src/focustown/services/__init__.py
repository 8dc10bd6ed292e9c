"""Service layer for the Focustown offline-first client.

Services sit between the pure rules in :mod:`focustown.domain` and the
outside world:

- EventBus: synchronous change notifications for UI subscribers
- TownStore: current town state plus the optimistic command queue
- InMemoryServerAdapter: in-process authoritative snapshot
- SyncService: enqueue, persist and reconcile with the server
- AutoSyncManager: periodic ``sync_now`` timer

Testing Usage:
    from focustown.services import InMemoryServerAdapter, SyncService, TownStore

    server = InMemoryServerAdapter()
    service = SyncService(TownStore(), server)
    service.enqueue(service.commands.upgrade_building("farm-1"))
    outcome = await service.sync_now()
"""

from focustown.services.event_bus import EventBus
from focustown.services.in_memory_server import InMemoryServerAdapter
from focustown.services.store import StoreChanged, TownStore
from focustown.services.sync_service import AutoSyncManager, SyncOutcome, SyncService

__all__ = [
    "AutoSyncManager",
    "EventBus",
    "InMemoryServerAdapter",
    "StoreChanged",
    "SyncOutcome",
    "SyncService",
    "TownStore",
]
