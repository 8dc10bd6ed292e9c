"""Local store: optimistic command queue and snapshot reconciliation.

The store exclusively owns the current :class:`TownState` and the ordered
queue of :class:`QueuedCommand` entries.  All mutation goes through its
methods; each one publishes a :class:`StoreChanged` event on the store's
:class:`EventBus` once the change is in place.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime

from focustown.domain.commands import Command
from focustown.domain.enums import QueueStatus
from focustown.domain.models import TownState
from focustown.domain.queue import CommandRejection, QueuedCommand
from focustown.domain.reducer import ApplyResult, apply_command
from focustown.domain.rules_config import DEFAULT_RULES, RulesConfig
from focustown.domain.seed import initial_town_state
from focustown.services.event_bus import EventBus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoreChanged:
    """Published after every store mutation."""

    reason: str
    version: int
    queue_length: int


class TownStore:
    """Holds the reconciled town state plus the pending-command queue."""

    def __init__(
        self,
        initial_state: TownState | None = None,
        *,
        state_factory: Callable[[], TownState] = initial_town_state,
        events: EventBus | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._state_factory = state_factory
        self._rules = rules
        self.events = events or EventBus()
        self._town = initial_state if initial_state is not None else state_factory()
        self._queue: list[QueuedCommand] = []

    @property
    def town(self) -> TownState:
        return self._town

    @property
    def queue(self) -> tuple[QueuedCommand, ...]:
        return tuple(self._queue)

    def pending_commands(self) -> list[Command]:
        """Commands still awaiting a server verdict, in enqueue order."""

        return [item.command for item in self._queue if item.status == QueueStatus.PENDING]

    def enqueue(self, command: Command, timestamp: datetime | None = None) -> ApplyResult:
        """Apply ``command`` optimistically and record it in the queue.

        Accepted commands replace the current state and join the queue as
        pending.  Rejected commands are kept as rejected with their reason
        and leave the state untouched.
        """

        result = self._apply(self._town, command, timestamp)
        if result.ok:
            self._town = result.state
            self._queue.append(QueuedCommand(command=command))
        else:
            logger.info("command %s rejected locally: %s", command.id, result.reason)
            self._queue.append(
                QueuedCommand(
                    command=command,
                    status=QueueStatus.REJECTED,
                    error=str(result.reason),
                )
            )
        self._notify("enqueue")
        return result

    def set_authoritative_state(self, state: TownState) -> list[str]:
        """Install a server snapshot and replay pending commands on top of it.

        Pending commands are re-applied in queue order.  One that no longer
        applies to the new base is skipped: it stays pending and its effect
        is simply absent from the local state.  Returns the ids of the
        skipped commands.
        """

        town = state
        skipped: list[str] = []
        for item in self._queue:
            if item.status != QueueStatus.PENDING:
                continue
            result = self._apply(town, item.command, None)
            if result.ok:
                town = result.state
            else:
                skipped.append(item.id)
        if skipped:
            logger.info("replay skipped %d pending command(s): %s", len(skipped), skipped)
        self._town = town
        self._notify("authoritative")
        return skipped

    def mark_acked(self, ids: Iterable[str]) -> None:
        """Drop server-confirmed commands from the queue."""

        acked = set(ids)
        self._queue = [item for item in self._queue if item.id not in acked]
        self._notify("acked")

    def mark_rejected(self, rejections: Iterable[CommandRejection]) -> None:
        """Flag pending commands the server refused.

        Optimistic effects already folded into the state are not rolled back;
        the next authoritative snapshot no longer replays them.
        """

        reasons = {rejection.id: rejection.reason for rejection in rejections}
        self._queue = [
            replace(item, status=QueueStatus.REJECTED, error=reasons[item.id])
            if item.id in reasons and item.status == QueueStatus.PENDING
            else item
            for item in self._queue
        ]
        self._notify("rejected")

    def reset(self) -> None:
        """Return to the starter town with an empty queue."""

        self._town = self._state_factory()
        self._queue = []
        self._notify("reset")

    def restore(self, state: TownState, queue: Sequence[QueuedCommand]) -> None:
        """Load a persisted snapshot and queue as-is, without replay."""

        self._town = state
        self._queue = list(queue)
        self._notify("restore")

    def _apply(
        self, state: TownState, command: Command, timestamp: datetime | None
    ) -> ApplyResult:
        # replays evaluate a command at its creation instant, same as the server
        when = timestamp or command.client_created_at
        return apply_command(state, command, when, rules=self._rules)

    def _notify(self, reason: str) -> None:
        self.events.publish(
            StoreChanged(reason=reason, version=self._town.version, queue_length=len(self._queue))
        )
