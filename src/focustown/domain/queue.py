"""Queue entries and server round-trip results."""

from __future__ import annotations

from dataclasses import dataclass, field

from .commands import Command
from .enums import QueueStatus
from .models import TownState


@dataclass(frozen=True, slots=True)
class QueuedCommand:
    """A command waiting for, or refused by, the server."""

    command: Command
    status: QueueStatus = QueueStatus.PENDING
    error: str | None = None

    @property
    def id(self) -> str:
        return self.command.id


@dataclass(frozen=True, slots=True)
class CommandRejection:
    id: str
    reason: str


@dataclass(frozen=True, slots=True)
class PushCommandsResult:
    """Per-command outcome of a push plus an optional fresh snapshot."""

    acked: list[str] = field(default_factory=list)
    rejected: list[CommandRejection] = field(default_factory=list)
    new_state: TownState | None = None
