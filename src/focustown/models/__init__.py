"""SQLAlchemy models for Focustown local persistence.

Four tables back the offline-first client: the command queue, the single-row
town snapshot, the focus session history and the economy log.
"""

from .base import Base, TimestampCreatedMixin, utc_now
from .economy import EconomyLogEntry
from .queue import CommandQueueEntry
from .session import SessionRecord
from .town import SNAPSHOT_ROW_ID, TownStateSnapshot

__all__ = [
    "SNAPSHOT_ROW_ID",
    "Base",
    "CommandQueueEntry",
    "EconomyLogEntry",
    "SessionRecord",
    "TimestampCreatedMixin",
    "TownStateSnapshot",
    "utc_now",
]
