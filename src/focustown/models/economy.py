"""Economy log table: resource deltas caused by applied commands."""

from typing import Any

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampCreatedMixin


class EconomyLogEntry(Base, TimestampCreatedMixin):
    """Append-only record of a change to the town's resources.

    Attributes:
        id: Autoincrement primary key
        created_at: When the change was applied locally
        type: Command type that caused the change
        delta: Mapping of resource kind to signed amount
        note: Free text, usually the command id
    """

    __tablename__ = "economy_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    delta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    note: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<EconomyLogEntry(id={self.id}, type={self.type!r})>"
