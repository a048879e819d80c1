"""
db/models/dojo_event_service.py

Membership of a dojo in one event service, with the service-side group id.
"""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from db.models.dojo import Dojo


class DojoEventService(Base, TimestampMixin):
    __tablename__ = "dojo_event_services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    dojo_id: Mapped[int] = mapped_column(
        ForeignKey("dojos.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Source kind, e.g. connpass, doorkeeper, static_json",
    )

    group_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Series / group identifier on the event service",
    )

    url: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
    )

    dojo: Mapped["Dojo"] = relationship("Dojo", back_populates="event_services")

    __table_args__ = (
        UniqueConstraint("dojo_id", "name", "group_id", name="uq_dojo_event_services_dojo_name_group"),
        Index("ix_dojo_event_services_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<DojoEventService dojo_id={self.dojo_id} name={self.name!r} group_id={self.group_id!r}>"
