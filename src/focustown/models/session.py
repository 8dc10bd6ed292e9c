"""Focus session history table."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class SessionRecord(Base):
    """One focus session, written when it starts and updated when it ends.

    Attributes:
        id: Session id (the id of the START_SESSION command)
        activity_id: Activity the session was bound to
        start_at: When the session started
        planned_duration: Planned length in seconds
        status: active/completed
        reward: JSON with minutes and resource deltas once completed
    """

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    activity_id: Mapped[str] = mapped_column(String, nullable=False)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    planned_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    reward: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<SessionRecord(id={self.id!r}, status={self.status!r})>"
