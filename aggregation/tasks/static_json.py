"""
aggregation/tasks/static_json.py

Internal source: events listed by hand in a JSON file, for dojos that do not
publish on any event service.

File shape::

    [
      {"dojo_id": 1, "event_id": "2023-01-14", "participants": 12,
       "evented_at": "2023-01-14T10:00:00+09:00", "event_url": null},
      ...
    ]

The whole file is reloaded on every run, so delete_history clears every
static row regardless of the window.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from aggregation.period import PeriodSpec
from aggregation.tasks.base import AggregationTask
from db.models.dojo import Dojo
from db.models.event_history import EventHistory
from db.repositories.event_history_repository import EventHistoryRepository

logger = logging.getLogger(__name__)


class StaticEventsError(RuntimeError):
    """Raised when the static events file is missing or malformed."""


class StaticJSONTask(AggregationTask):
    kind = "static_json"
    runs_per_subperiod = False

    def __init__(self, *, session: Session, events_path: str | Path) -> None:
        self._events_path = Path(events_path)
        self._repository = EventHistoryRepository(session)

    def delete_history(self, period: PeriodSpec) -> None:
        deleted = self._repository.delete_for_service(self.kind)
        logger.info("Deleted %d %s event histories", deleted, self.kind)

    def run_for_subperiod(self, dojos: Sequence[Dojo], anchor: datetime, weekly: bool) -> None:
        raise NotImplementedError(f"'{self.kind}' is an internal source and only supports run_once.")

    def run_once(self, dojos: Sequence[Dojo]) -> None:
        dojos_by_id = {dojo.id: dojo for dojo in dojos}
        histories: list[EventHistory] = []
        for index, entry in enumerate(self._load_entries()):
            dojo = dojos_by_id.get(entry.get("dojo_id"))
            if dojo is None:
                continue
            try:
                histories.append(self._to_history(entry, dojo))
            except (KeyError, TypeError, ValueError) as exc:
                raise StaticEventsError(f"{self._events_path}: invalid entry at index {index}: {exc}") from exc

        staged = self._repository.add_all(histories)
        logger.info("%s: stored %d event histories (%d dojo(s))", self.kind, staged, len(dojos))

    def _load_entries(self) -> list[dict[str, Any]]:
        if not self._events_path.is_file():
            raise StaticEventsError(f"Static events file not found: {self._events_path}")

        try:
            payload = json.loads(self._events_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StaticEventsError(f"{self._events_path}: invalid JSON: {exc}") from exc

        if not isinstance(payload, list):
            raise StaticEventsError(f"{self._events_path}: expected a JSON array of events.")
        return [entry for entry in payload if isinstance(entry, dict)]

    def _to_history(self, entry: dict[str, Any], dojo: Dojo) -> EventHistory:
        evented_at = datetime.fromisoformat(str(entry["evented_at"]))
        if evented_at.tzinfo is None:
            evented_at = evented_at.replace(tzinfo=timezone.utc)
        return EventHistory(
            dojo_id=dojo.id,
            dojo_name=dojo.name,
            service_name=self.kind,
            service_group_id=None,
            event_id=f"{dojo.id}:{entry['event_id']}",
            event_url=entry.get("event_url"),
            participants=int(entry.get("participants") or 0),
            evented_at=evented_at,
        )
