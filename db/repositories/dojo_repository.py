"""
db/repositories/dojo_repository.py

Read-only lookups of dojos by event service membership.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from db.models.dojo import Dojo
from db.models.dojo_event_service import DojoEventService


class DojoRepository:
    """
    Fetches dojos for the aggregation batch.

    ``event_services`` is eager-loaded on every returned dojo so tasks can
    read group ids without issuing one query per dojo.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_by_event_service(self, name: str) -> list[Dojo]:
        """
        Return active dojos holding at least one ``dojo_event_services`` row
        named *name*, ordered by id. An unknown name yields an empty list.
        """
        stmt = (
            select(Dojo)
            .join(Dojo.event_services)
            .where(
                DojoEventService.name == name,
                Dojo.is_active.is_(True),
            )
            .options(selectinload(Dojo.event_services))
            .order_by(Dojo.id)
            .distinct()
        )
        return list(self._session.scalars(stmt).all())
