"""Command queue table.

Each row is one queued command: the serialised payload, its queue position
and status, and how many sync attempts it has survived while pending.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class CommandQueueEntry(Base):
    """Represents a command waiting in (or refused from) the local queue.

    Attributes:
        id: Command id (primary key)
        position: Zero-based position in enqueue order
        created_at: Client creation instant of the command
        payload: Tagged JSON payload produced by the command codec
        status: pending/acked/rejected
        error: Rejection reason, if any
        retry_count: Failed sync attempts while the command was pending
    """

    __tablename__ = "command_queue"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    error: Mapped[str | None] = mapped_column(String, nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'acked', 'rejected')", name="ck_command_queue_status"
        ),
        CheckConstraint("retry_count >= 0", name="ck_command_queue_retry_count"),
    )

    def __repr__(self) -> str:
        return (
            f"<CommandQueueEntry(id={self.id!r}, position={self.position}, "
            f"status={self.status!r})>"
        )
