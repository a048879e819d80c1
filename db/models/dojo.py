"""
db/models/dojo.py

Dojo model: one organizational unit whose event history is aggregated.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.dojo_event_service import DojoEventService
    from db.models.event_history import EventHistory


class Dojo(Base, TimestampMixin):
    """
    A dojo publishes its events on one or more event services
    (connpass, doorkeeper, static JSON, ...). The aggregation batch looks
    dojos up by service name and passes them to the per-service tasks.
    """

    __tablename__ = "dojos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Inactive dojos are excluded from aggregation",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    event_services: Mapped[list["DojoEventService"]] = relationship(
        "DojoEventService",
        back_populates="dojo",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    event_histories: Mapped[list["EventHistory"]] = relationship(
        "EventHistory",
        back_populates="dojo",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_dojos_is_active", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Dojo id={self.id} name={self.name!r}>"
