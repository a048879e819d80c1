"""
app/connectors/connpass_connector.py

connpass event search API connector.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from datetime import datetime, timedelta
from typing import Any

import requests

from aggregation import calendar
from app.config import ConnpassSettings, ExternalHTTPSettings
from app.connectors.base import BaseConnector, ConnectorFetchResult
from app.domain.service_event import ServiceEvent

logger = logging.getLogger(__name__)

_SERIES_PER_REQUEST = 20


def _chunked(items: Sequence[str], size: int) -> Iterator[list[str]]:
    for offset in range(0, len(items), size):
        yield list(items[offset:offset + size])


def _date_params(start: datetime, end: datetime) -> list[tuple[str, str]]:
    """
    Whole months are queried with ``ym``; any other window with one ``ymd``
    per day.
    """
    if start == calendar.beginning_of_month(start) and end == calendar.end_of_month(start):
        return [("ym", start.strftime("%Y%m"))]

    params: list[tuple[str, str]] = []
    day = calendar.beginning_of_day(start)
    while day <= end:
        params.append(("ymd", day.strftime("%Y%m%d")))
        day += timedelta(days=1)
    return params


class ConnpassConnector(BaseConnector):
    """
    Fetches events of connpass series (groups) held within a window.
    """

    def __init__(
        self,
        *,
        settings: ConnpassSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="connpass", http_settings=http_settings, session=session)
        self._settings = settings

    def fetch_events(
        self,
        *,
        group_ids: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> ConnectorFetchResult:
        if not group_ids or start > end:
            return ConnectorFetchResult(source=self.source)

        headers = {"X-API-Key": self._settings.api_key} if self._settings.api_key else None
        events: list[ServiceEvent] = []
        failed_records = 0

        for series_ids in _chunked(list(group_ids), _SERIES_PER_REQUEST):
            for item in self._iter_pages(series_ids, start, end, headers):
                try:
                    event = self._normalize_event(item)
                except (KeyError, TypeError, ValueError) as exc:
                    failed_records += 1
                    logger.warning("Failed to normalize connpass event error=%s", exc)
                    continue
                if event is None:
                    failed_records += 1
                    continue
                if start <= event.started_at <= end:
                    events.append(event)

        return ConnectorFetchResult(source=self.source, events=events, failed_records=failed_records)

    def _iter_pages(
        self,
        series_ids: list[str],
        start: datetime,
        end: datetime,
        headers: dict[str, str] | None,
    ) -> Iterator[Any]:
        position = 1
        while True:
            params: list[tuple[str, Any]] = [("series_id", series_id) for series_id in series_ids]
            params.extend(_date_params(start, end))
            params.extend([("count", self._settings.page_size), ("start", position), ("order", 2)])

            payload = self._request_json(
                method="GET",
                url=self._settings.base_url,
                params=params,
                headers=headers,
            )
            if not isinstance(payload, dict):
                logger.error("Unexpected connpass payload shape.")
                return

            page = payload.get("events") or []
            yield from page

            returned = int(payload.get("results_returned") or len(page))
            available = int(payload.get("results_available") or 0)
            if returned <= 0 or position + returned > available:
                return
            position += returned

    def _normalize_event(self, item: Any) -> ServiceEvent | None:
        if not isinstance(item, dict):
            return None

        series = item.get("series") if isinstance(item.get("series"), dict) else {}
        event_id = item.get("id") or item.get("event_id")
        started_raw = item.get("started_at")
        if event_id is None or not started_raw or series.get("id") is None:
            return None

        return ServiceEvent(
            service_name=self.source,
            group_id=str(series["id"]),
            event_id=str(event_id),
            event_url=item.get("url") or item.get("event_url"),
            participants=int(item.get("accepted") or 0),
            started_at=self.parse_iso_datetime(started_raw),
        )
