"""
db/repositories/event_history_repository.py

Persistence for aggregated EventHistory rows.

The caller controls commit/rollback; this repository only flushes.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from db.models.event_history import EventHistory


class EventHistoryRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def delete_for_service(
        self,
        service_name: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        """
        Delete rows of *service_name*, restricted to ``start <= evented_at <= end``
        when bounds are given. Returns the number of deleted rows.

        Deleting an already-empty range is a no-op, so the call is idempotent.
        """
        stmt = delete(EventHistory).where(EventHistory.service_name == service_name)
        if start is not None:
            stmt = stmt.where(EventHistory.evented_at >= start)
        if end is not None:
            stmt = stmt.where(EventHistory.evented_at <= end)

        result = self._session.execute(stmt.execution_options(synchronize_session=False))
        self._session.flush()
        return int(result.rowcount or 0)

    def add_all(self, histories: Iterable[EventHistory]) -> int:
        """
        Stage *histories*, skipping any ``(service_name, event_id)`` already
        stored or already present in the batch. Returns the number staged.
        """
        pending = list(histories)
        if not pending:
            return 0

        service_names = {history.service_name for history in pending}
        rows = self._session.execute(
            select(EventHistory.service_name, EventHistory.event_id).where(
                EventHistory.service_name.in_(service_names),
                EventHistory.event_id.in_({history.event_id for history in pending}),
            )
        )
        existing = {(row[0], row[1]) for row in rows}

        staged = 0
        for history in pending:
            key = (history.service_name, history.event_id)
            if key in existing:
                continue
            existing.add(key)
            self._session.add(history)
            staged += 1

        self._session.flush()
        return staged

    def count_for_service(
        self,
        service_name: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        stmt = select(func.count(EventHistory.id)).where(EventHistory.service_name == service_name)
        if start is not None:
            stmt = stmt.where(EventHistory.evented_at >= start)
        if end is not None:
            stmt = stmt.where(EventHistory.evented_at <= end)
        return int(self._session.scalar(stmt) or 0)

    def list_for_service(self, service_name: str) -> list[EventHistory]:
        stmt = (
            select(EventHistory)
            .where(EventHistory.service_name == service_name)
            .order_by(EventHistory.evented_at, EventHistory.event_id)
        )
        return list(self._session.scalars(stmt).all())
