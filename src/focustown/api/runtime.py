"""Runtime primitives backing the Focustown HTTP API."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter

from focustown.config import Settings, get_settings
from focustown.database import create_db_engine, init_db, make_session_factory
from focustown.domain.command_factory import CommandFactory
from focustown.domain.models import TownState
from focustown.domain.queue import QueuedCommand
from focustown.domain.rules_config import DEFAULT_RULES, RulesConfig
from focustown.repository import SqlTownRepository
from focustown.services import (
    AutoSyncManager,
    EventBus,
    InMemoryServerAdapter,
    StoreChanged,
    SyncOutcome,
    SyncService,
    TownStore,
)

logger = logging.getLogger(__name__)

_TOWN_ADAPTER: TypeAdapter[TownState] = TypeAdapter(TownState)


def town_to_dict(state: TownState) -> dict[str, Any]:
    """Return a JSON-compatible representation of ``state``."""

    return _TOWN_ADAPTER.dump_python(state, mode="json")


def queued_to_dict(item: QueuedCommand, retry_count: int = 0) -> dict[str, object]:
    return {
        "id": item.id,
        "type": item.command.command_type,
        "client_created_at": item.command.client_created_at.isoformat(),
        "status": str(item.status),
        "error": item.error,
        "retry_count": retry_count,
    }


def outcome_to_dict(outcome: SyncOutcome) -> dict[str, object]:
    return {
        "ok": outcome.ok,
        "skipped": outcome.skipped,
        "pushed": outcome.pushed,
        "acked": list(outcome.acked),
        "rejected": [{"id": r.id, "reason": r.reason} for r in outcome.rejected],
        "replay_skipped": list(outcome.replay_skipped),
        "error": outcome.error,
        "version": outcome.version,
    }


def _log_store_change(event: StoreChanged) -> None:
    logger.debug(
        "store %s: v%d, %d queued", event.reason, event.version, event.queue_length
    )


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        rules: RulesConfig = DEFAULT_RULES,
        server: InMemoryServerAdapter | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.rules = rules
        self.engine = create_db_engine(
            self.settings.database_url, echo=self.settings.database_echo
        )
        init_db(self.engine)
        self.repository = SqlTownRepository(make_session_factory(self.engine))
        self.events = EventBus()
        self.events.subscribe(StoreChanged, _log_store_change)
        self.store = TownStore(events=self.events, rules=rules)
        self.server = server or InMemoryServerAdapter(seed=self._server_seed(), rules=rules)
        self.sync = SyncService(
            self.store,
            self.server,
            repository=self.repository,
            commands=CommandFactory(rules=rules),
        )
        self.auto_sync = AutoSyncManager(
            self.sync, interval_seconds=self.settings.auto_sync_interval_seconds
        )

    def _server_seed(self) -> TownState | None:
        # the in-process server keeps nothing on disk; resume it from the
        # last state it confirmed
        seed = self.repository.load_server_snapshot()
        if seed is None:
            logger.info("no confirmed server state stored; server starts from the seed town")
        return seed

    def queue_as_dicts(self) -> list[dict[str, object]]:
        retries = self.repository.retry_counts()
        return [queued_to_dict(item, retries.get(item.id, 0)) for item in self.sync.queue]

    async def startup(self) -> None:
        await self.sync.load_initial()
        if self.settings.auto_sync_enabled:
            self.auto_sync.start()

    async def shutdown(self) -> None:
        await self.auto_sync.stop()
        self.engine.dispose()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
