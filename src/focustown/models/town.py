"""Single-row table holding the local town snapshot and the last server state."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utc_now

SNAPSHOT_ROW_ID = 1


class TownStateSnapshot(Base):
    """Latest town state, serialised as JSON.

    Attributes:
        id: Always 1; the table holds a single row
        version: TownState.version of the snapshot
        snapshot: JSON dump of the TownState
        server_version: Version of the last server-confirmed state, if any
        server_snapshot: JSON dump of the last server-confirmed state
        updated_at: When the row was last written
    """

    __tablename__ = "town_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SNAPSHOT_ROW_ID)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    server_version: Mapped[int | None] = mapped_column(Integer, nullable=True)
    server_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (CheckConstraint("id = 1", name="ck_town_state_single_row"),)

    def __repr__(self) -> str:
        return f"<TownStateSnapshot(version={self.version})>"
