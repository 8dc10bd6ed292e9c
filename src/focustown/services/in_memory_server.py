"""In-process reference implementation of the server adapter.

The adapter holds its own snapshot and applies pushed commands with the same
reducer the client uses, so in the single-actor case its verdicts always
match the client's optimistic results.  It stands in for a real authority in
tests and offline play; it is not a distributed server.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime

from focustown.domain.commands import Command
from focustown.domain.models import Meta, TownState, utc_now
from focustown.domain.queue import CommandRejection, PushCommandsResult
from focustown.domain.reducer import apply_command
from focustown.domain.rules_config import DEFAULT_RULES, RulesConfig
from focustown.domain.seed import initial_town_state

logger = logging.getLogger(__name__)


class InMemoryServerAdapter:
    """Authoritative snapshot kept in memory."""

    def __init__(
        self,
        seed: TownState | None = None,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._snapshot = seed if seed is not None else initial_town_state()
        self._rules = rules
        self._clock = clock
        self._pending_failure: Exception | None = None
        self.push_count = 0

    @property
    def snapshot(self) -> TownState:
        return self._snapshot

    def replace_snapshot(self, state: TownState) -> None:
        """Swap the authoritative state, e.g. to simulate another edit upstream."""

        self._snapshot = state

    def fail_next(self, exc: Exception) -> None:
        """Make the next adapter call raise ``exc``."""

        self._pending_failure = exc

    async def fetch_state(self) -> TownState:
        self._raise_pending_failure()
        return self._stamped()

    async def push_commands(self, commands: Sequence[Command]) -> PushCommandsResult:
        self._raise_pending_failure()
        self.push_count += 1

        acked: list[str] = []
        rejected: list[CommandRejection] = []
        snapshot = self._snapshot
        for command in commands:
            result = apply_command(
                snapshot, command, command.client_created_at, rules=self._rules
            )
            if result.ok:
                acked.append(command.id)
                snapshot = result.state
            else:
                rejected.append(CommandRejection(id=command.id, reason=str(result.reason)))

        self._snapshot = snapshot
        logger.debug(
            "server applied %d command(s), rejected %d; version %d",
            len(acked),
            len(rejected),
            snapshot.version,
        )
        return PushCommandsResult(acked=acked, rejected=rejected, new_state=self._stamped())

    def _stamped(self) -> TownState:
        return replace(self._snapshot, meta=Meta(last_server_sync_at=self._clock()))

    def _raise_pending_failure(self) -> None:
        failure = self._pending_failure
        if failure is not None:
            self._pending_failure = None
            raise failure
