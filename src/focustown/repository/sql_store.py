"""SQLAlchemy-backed repository for the offline queue and town snapshot."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, sessionmaker

from focustown.domain.commands import command_from_payload, command_to_payload
from focustown.domain.enums import QueueStatus
from focustown.domain.models import TownState, utc_now
from focustown.domain.queue import QueuedCommand
from focustown.models import (
    SNAPSHOT_ROW_ID,
    CommandQueueEntry,
    EconomyLogEntry,
    SessionRecord,
    TownStateSnapshot,
)


class SqlTownRepository:
    """Persist the town snapshot, the command queue and the history logs."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._adapter: TypeAdapter[TownState] = TypeAdapter(TownState)

    # -- snapshot -----------------------------------------------------------

    def save_snapshot(self, state: TownState) -> None:
        """Write ``state`` as the single stored snapshot."""

        with self._session_factory() as session, session.begin():
            self._write_snapshot(session, state)

    def save_state(
        self,
        state: TownState,
        queue: Sequence[QueuedCommand],
        *,
        server_state: TownState | None = None,
    ) -> None:
        """Write the snapshot and the queue in one transaction.

        ``server_state`` replaces the stored server-confirmed state when given;
        otherwise the previous one is kept.
        """

        with self._session_factory() as session, session.begin():
            self._write_snapshot(session, state, server_state=server_state)
            self._write_queue(session, queue)

    def load_snapshot(self) -> TownState | None:
        """Return the stored snapshot, or ``None`` when nothing was saved."""

        with self._session_factory() as session:
            row = session.get(TownStateSnapshot, SNAPSHOT_ROW_ID)
            if row is None:
                return None
            return self._adapter.validate_python(row.snapshot)

    def load_server_snapshot(self) -> TownState | None:
        """Return the last server-confirmed state, or ``None`` before any sync."""

        with self._session_factory() as session:
            row = session.get(TownStateSnapshot, SNAPSHOT_ROW_ID)
            if row is None or row.server_snapshot is None:
                return None
            return self._adapter.validate_python(row.server_snapshot)

    def _write_snapshot(
        self, session: Session, state: TownState, *, server_state: TownState | None = None
    ) -> None:
        payload = self._adapter.dump_python(state, mode="json")
        row = session.get(TownStateSnapshot, SNAPSHOT_ROW_ID)
        if row is None:
            row = TownStateSnapshot(id=SNAPSHOT_ROW_ID, version=state.version, snapshot=payload)
            session.add(row)
        row.version = state.version
        row.snapshot = payload
        row.updated_at = utc_now()
        if server_state is not None:
            row.server_version = server_state.version
            row.server_snapshot = self._adapter.dump_python(server_state, mode="json")

    # -- queue --------------------------------------------------------------

    def save_queue(self, queue: Sequence[QueuedCommand]) -> None:
        """Replace the stored queue with ``queue``, keeping retry counters."""

        with self._session_factory() as session, session.begin():
            self._write_queue(session, queue)

    def _write_queue(self, session: Session, queue: Sequence[QueuedCommand]) -> None:
        retries = dict(
            session.execute(select(CommandQueueEntry.id, CommandQueueEntry.retry_count)).all()
        )
        session.execute(delete(CommandQueueEntry))
        for position, item in enumerate(queue):
            session.add(
                CommandQueueEntry(
                    id=item.id,
                    position=position,
                    created_at=item.command.client_created_at,
                    payload=command_to_payload(item.command),
                    status=str(item.status),
                    error=item.error,
                    retry_count=retries.get(item.id, 0),
                )
            )

    def load_queue(self) -> list[QueuedCommand]:
        """Return the stored queue in enqueue order.

        Raises:
            CommandDecodeError: If a stored payload no longer decodes.
        """

        with self._session_factory() as session:
            rows = session.scalars(
                select(CommandQueueEntry).order_by(CommandQueueEntry.position)
            ).all()
            return [
                QueuedCommand(
                    command=command_from_payload(row.payload),
                    status=QueueStatus(row.status),
                    error=row.error,
                )
                for row in rows
            ]

    def increment_retry_counts(self, ids: Iterable[str]) -> None:
        """Bump ``retry_count`` for the given still-pending commands."""

        id_list = list(ids)
        if not id_list:
            return
        with self._session_factory() as session, session.begin():
            session.execute(
                update(CommandQueueEntry)
                .where(CommandQueueEntry.id.in_(id_list))
                .where(CommandQueueEntry.status == str(QueueStatus.PENDING))
                .values(retry_count=CommandQueueEntry.retry_count + 1)
            )

    def retry_counts(self) -> dict[str, int]:
        with self._session_factory() as session:
            rows = session.execute(select(CommandQueueEntry.id, CommandQueueEntry.retry_count))
            return {command_id: count for command_id, count in rows}

    # -- history ------------------------------------------------------------

    def record_session(
        self,
        session_id: str,
        *,
        activity_id: str,
        start_at: datetime,
        planned_duration: int,
        status: str,
        reward: dict[str, Any] | None = None,
    ) -> None:
        """Insert or update a focus session record."""

        with self._session_factory() as session, session.begin():
            row = session.get(SessionRecord, session_id)
            if row is None:
                session.add(
                    SessionRecord(
                        id=session_id,
                        activity_id=activity_id,
                        start_at=start_at,
                        planned_duration=planned_duration,
                        status=status,
                        reward=reward,
                    )
                )
            else:
                row.status = status
                row.reward = reward

    def list_sessions(self) -> list[dict[str, object]]:
        with self._session_factory() as session:
            rows = session.scalars(select(SessionRecord).order_by(SessionRecord.start_at)).all()
            return [
                {
                    "id": row.id,
                    "activity_id": row.activity_id,
                    "start_at": row.start_at,
                    "planned_duration": row.planned_duration,
                    "status": row.status,
                    "reward": row.reward,
                }
                for row in rows
            ]

    def record_economy_delta(
        self, change_type: str, delta: dict[str, int], note: str | None = None
    ) -> None:
        """Append a resource change to the economy log."""

        with self._session_factory() as session, session.begin():
            session.add(
                EconomyLogEntry(type=change_type, delta=delta, note=note, created_at=utc_now())
            )

    def list_economy_logs(self) -> list[dict[str, object]]:
        with self._session_factory() as session:
            rows = session.scalars(select(EconomyLogEntry).order_by(EconomyLogEntry.id)).all()
            return [
                {
                    "id": row.id,
                    "created_at": row.created_at,
                    "type": row.type,
                    "delta": row.delta,
                    "note": row.note,
                }
                for row in rows
            ]
