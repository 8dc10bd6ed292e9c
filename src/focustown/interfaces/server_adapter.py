"""Server Adapter Protocol Interface.

This module defines the protocol (interface) the sync service uses to talk
to whatever holds the authoritative town snapshot.
"""

from collections.abc import Sequence
from typing import Protocol

from focustown.domain.commands import Command
from focustown.domain.models import TownState
from focustown.domain.queue import PushCommandsResult


class IServerAdapter(Protocol):
    """Protocol defining the authoritative-state round trip.

    Implementations may be an HTTP client, a local mock or the in-process
    reference server; the sync service depends only on this contract.
    """

    async def fetch_state(self) -> TownState:
        """Return the authoritative snapshot.

        Returns:
            The latest TownState known to the server
        """
        ...

    async def push_commands(self, commands: Sequence[Command]) -> PushCommandsResult:
        """Submit pending commands for acknowledgement.

        Args:
            commands: Pending commands in enqueue order

        Returns:
            PushCommandsResult with acked ids, rejections and, optionally,
            a fresh snapshot
        """
        ...
