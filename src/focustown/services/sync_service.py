"""Reconciliation between the local store and the authoritative server.

:class:`SyncService` is the facade the UI talks to: it builds commands,
enqueues them optimistically, persists the store after every change and
runs the push/ack/replay round trip.  :class:`AutoSyncManager` is the
optional timer that calls :meth:`SyncService.sync_now` periodically.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from focustown.domain.command_factory import CommandFactory
from focustown.domain.commands import Command, CompleteSession, StartSession
from focustown.domain.enums import ResourceType
from focustown.domain.models import TownState
from focustown.domain.queue import CommandRejection, PushCommandsResult, QueuedCommand
from focustown.domain.reducer import ApplyResult
from focustown.interfaces import IServerAdapter
from focustown.repository import SqlTownRepository
from focustown.services.store import TownStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncOutcome:
    """Summary of one :meth:`SyncService.sync_now` call."""

    pushed: int = 0
    acked: list[str] = field(default_factory=list)
    rejected: list[CommandRejection] = field(default_factory=list)
    replay_skipped: list[str] = field(default_factory=list)
    skipped: bool = False
    error: str | None = None
    version: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped


class SyncService:
    """Optimistic command submission plus server reconciliation."""

    def __init__(
        self,
        store: TownStore,
        adapter: IServerAdapter,
        *,
        repository: SqlTownRepository | None = None,
        commands: CommandFactory | None = None,
    ) -> None:
        self._store = store
        self._adapter = adapter
        self._repository = repository
        self.commands = commands or CommandFactory()
        self._sync_lock = asyncio.Lock()

    @property
    def store(self) -> TownStore:
        return self._store

    @property
    def town(self) -> TownState:
        return self._store.town

    @property
    def queue(self) -> tuple[QueuedCommand, ...]:
        return self._store.queue

    @property
    def syncing(self) -> bool:
        return self._sync_lock.locked()

    def enqueue(self, command: Command) -> ApplyResult:
        """Apply ``command`` locally, queue it and persist the result."""

        before = self._store.town
        result = self._store.enqueue(command)
        if self._repository is not None and result.ok:
            self._record_history(before, result.state, command)
        self._persist()
        return result

    def reset(self) -> None:
        """Drop local progress and the queue, then persist the starter town."""

        self._store.reset()
        self._persist()

    async def load_initial(self) -> TownState:
        """Restore persisted state, then adopt the server snapshot.

        A failed fetch leaves the restored local state in place so the app
        keeps working offline.
        """

        if self._repository is not None:
            snapshot = await asyncio.to_thread(self._repository.load_snapshot)
            if snapshot is not None:
                queue = await asyncio.to_thread(self._repository.load_queue)
                self._store.restore(snapshot, queue)
                logger.info(
                    "restored town v%d with %d queued command(s)", snapshot.version, len(queue)
                )

        try:
            state = await self._adapter.fetch_state()
        except Exception:
            logger.exception("initial fetch failed; continuing with local state")
            return self._store.town

        self._store.set_authoritative_state(state)
        self._persist(server_state=state)
        return self._store.town

    async def sync_now(self) -> SyncOutcome:
        """Push pending commands and reconcile with the server's answer.

        Returns immediately with ``skipped=True`` while another sync runs.
        """

        if self._sync_lock.locked():
            logger.debug("sync already in flight; skipping")
            return SyncOutcome(skipped=True, version=self._store.town.version)

        async with self._sync_lock:
            pending = self._store.pending_commands()
            try:
                if pending:
                    result = await self._adapter.push_commands(pending)
                else:
                    result = PushCommandsResult(new_state=await self._adapter.fetch_state())
            except Exception as exc:
                logger.exception("sync failed; %d command(s) stay pending", len(pending))
                if self._repository is not None:
                    self._repository.increment_retry_counts(command.id for command in pending)
                return SyncOutcome(
                    pushed=len(pending), error=str(exc), version=self._store.town.version
                )

            outcome = self._reconcile(result)
            outcome.pushed = len(pending)
            # writes stay on the loop thread so they land in enqueue order
            self._persist(server_state=result.new_state)

        logger.info(
            "sync pushed %d, acked %d, rejected %d; now at v%d",
            outcome.pushed,
            len(outcome.acked),
            len(outcome.rejected),
            outcome.version,
        )
        return outcome

    def _reconcile(self, result: PushCommandsResult) -> SyncOutcome:
        # confirmed commands must leave the queue before the new snapshot is replayed
        if result.acked:
            self._store.mark_acked(result.acked)
        if result.rejected:
            for rejection in result.rejected:
                logger.warning("server rejected %s: %s", rejection.id, rejection.reason)
            self._store.mark_rejected(result.rejected)
        replay_skipped: list[str] = []
        if result.new_state is not None:
            replay_skipped = self._store.set_authoritative_state(result.new_state)
        return SyncOutcome(
            acked=list(result.acked),
            rejected=list(result.rejected),
            replay_skipped=replay_skipped,
            version=self._store.town.version,
        )

    def _persist(self, *, server_state: TownState | None = None) -> None:
        if self._repository is None:
            return
        self._repository.save_state(
            self._store.town, self._store.queue, server_state=server_state
        )

    def _record_history(self, before: TownState, after: TownState, command: Command) -> None:
        assert self._repository is not None

        delta = {
            kind.value: after.resources[kind] - before.resources[kind]
            for kind in ResourceType
            if after.resources[kind] != before.resources[kind]
        }
        if delta:
            self._repository.record_economy_delta(command.command_type, delta, note=command.id)

        if isinstance(command, StartSession):
            timer = after.timers.session
            if timer is not None:
                self._repository.record_session(
                    timer.session_id,
                    activity_id=timer.activity_id,
                    start_at=timer.start_at,
                    planned_duration=timer.planned_duration,
                    status="active",
                )
        elif isinstance(command, CompleteSession):
            timer = before.timers.session
            entry = after.session_log[-1] if after.session_log else None
            if timer is not None:
                self._repository.record_session(
                    timer.session_id,
                    activity_id=timer.activity_id,
                    start_at=timer.start_at,
                    planned_duration=timer.planned_duration,
                    status="completed",
                    reward={
                        "minutes": entry.minutes if entry is not None else 0,
                        "resources": delta,
                    },
                )


class AutoSyncManager:
    """Background timer that triggers :meth:`SyncService.sync_now`."""

    MIN_INTERVAL_SECONDS = 0.1

    def __init__(self, service: SyncService, *, interval_seconds: float) -> None:
        self._service = service
        self._interval = max(interval_seconds, self.MIN_INTERVAL_SECONDS)
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run_loop(), name="focustown-auto-sync")

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._stop_event.set()
        await task
        self._task = None

    async def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                    break
                except TimeoutError:
                    pass
                await self._service.sync_now()
        finally:
            self._task = None
