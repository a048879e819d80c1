"""
db/models/event_history.py

Aggregated event history rows written by the per-service aggregation tasks.
One row per event held by a dojo on an event service.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.dojo import Dojo


class EventHistory(Base, TimestampMixin):
    """
    ``(service_name, event_id)`` is unique so re-running a task for the same
    window after ``delete_history`` never duplicates rows.
    """

    __tablename__ = "event_histories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    dojo_id: Mapped[int | None] = mapped_column(
        ForeignKey("dojos.id", ondelete="SET NULL"),
        nullable=True,
    )
    dojo_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Dojo name at aggregation time",
    )
    service_name: Mapped[str] = mapped_column(String(50), nullable=False)
    service_group_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    event_id: Mapped[str] = mapped_column(String(255), nullable=False)
    event_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    participants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    evented_at: Mapped[datetime] = mapped_column(nullable=False)

    dojo: Mapped[Optional["Dojo"]] = relationship("Dojo", back_populates="event_histories")

    __table_args__ = (
        UniqueConstraint("service_name", "event_id", name="uq_event_histories_service_event"),
        Index("ix_event_histories_service_evented_at", "service_name", "evented_at"),
        Index("ix_event_histories_dojo_id", "dojo_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<EventHistory service={self.service_name!r} event_id={self.event_id!r} "
            f"evented_at={self.evented_at.isoformat() if self.evented_at else None}>"
        )
