"""
aggregation/tasks/event_service.py

Task for external event services (connpass, Doorkeeper, ...): events are
fetched through a connector one sub-period at a time and stored as
EventHistory rows.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from aggregation import calendar
from aggregation.period import PeriodSpec
from aggregation.tasks.base import AggregationTask
from app.connectors.base import BaseConnector
from app.domain.service_event import ServiceEvent
from db.models.dojo import Dojo
from db.models.event_history import EventHistory
from db.repositories.event_history_repository import EventHistoryRepository

logger = logging.getLogger(__name__)


def subperiod_end(anchor: datetime, weekly: bool) -> datetime:
    if weekly:
        return calendar.end_of_week(anchor)
    return calendar.end_of_month(anchor)


class EventServiceTask(AggregationTask):
    runs_once = False

    def __init__(
        self,
        *,
        kind: str,
        session: Session,
        connector: BaseConnector,
    ) -> None:
        self.kind = kind
        self._connector = connector
        self._repository = EventHistoryRepository(session)

    def delete_history(self, period: PeriodSpec) -> None:
        deleted = self._repository.delete_for_service(self.kind, start=period.start, end=period.end)
        logger.info("Deleted %d %s event histories in [%s, %s]", deleted, self.kind, period.start, period.end)

    def run_for_subperiod(self, dojos: Sequence[Dojo], anchor: datetime, weekly: bool) -> None:
        dojos_by_group = self._dojos_by_group(dojos)
        if not dojos_by_group:
            return

        end = subperiod_end(anchor, weekly)
        result = self._connector.fetch_events(
            group_ids=sorted(dojos_by_group.keys()),
            start=anchor,
            end=end,
        )
        if result.failed_records:
            logger.warning("%s: %d event(s) could not be normalized", self.kind, result.failed_records)

        histories = [
            self._to_history(event, dojos_by_group[event.group_id])
            for event in result.events
            if event.group_id in dojos_by_group
        ]
        staged = self._repository.add_all(histories)
        logger.info(
            "%s: stored %d event histories for %s~%s (%d dojo(s))",
            self.kind,
            staged,
            anchor.date(),
            end.date(),
            len(dojos),
        )

    def run_once(self, dojos: Sequence[Dojo]) -> None:
        raise NotImplementedError(f"'{self.kind}' is aggregated per sub-period and has no unbounded run.")

    def _dojos_by_group(self, dojos: Sequence[Dojo]) -> dict[str, Dojo]:
        mapping: dict[str, Dojo] = {}
        for dojo in dojos:
            for service in dojo.event_services:
                if service.name == self.kind and service.group_id:
                    mapping[str(service.group_id)] = dojo
        return mapping

    def _to_history(self, event: ServiceEvent, dojo: Dojo) -> EventHistory:
        return EventHistory(
            dojo_id=dojo.id,
            dojo_name=dojo.name,
            service_name=self.kind,
            service_group_id=event.group_id,
            event_id=event.event_id,
            event_url=event.event_url,
            participants=event.participants,
            evented_at=event.started_at,
        )
