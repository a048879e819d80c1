"""
app/connectors/doorkeeper_connector.py

Doorkeeper group events API connector.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import requests

from app.config import DoorkeeperSettings, ExternalHTTPSettings
from app.connectors.base import BaseConnector, ConnectorFetchResult
from app.domain.service_event import ServiceEvent

logger = logging.getLogger(__name__)

# Doorkeeper pages are fixed at 25 events.
_PAGE_SIZE = 25


class DoorkeeperConnector(BaseConnector):
    """
    Fetches events of Doorkeeper groups held within a window, one group at a time.
    """

    def __init__(
        self,
        *,
        settings: DoorkeeperSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="doorkeeper", http_settings=http_settings, session=session)
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

        headers = {"Authorization": f"Bearer {self._settings.api_token}"} if self._settings.api_token else None
        events: list[ServiceEvent] = []
        failed_records = 0

        for group_id in group_ids:
            url = f"{self._settings.base_url.rstrip('/')}/groups/{group_id}/events"
            page = 1
            while True:
                payload = self._request_json(
                    method="GET",
                    url=url,
                    params={
                        "since": start.isoformat(),
                        "until": end.isoformat(),
                        "page": page,
                    },
                    headers=headers,
                )
                if not isinstance(payload, list):
                    logger.error("Unexpected Doorkeeper payload shape group=%s", group_id)
                    break

                for item in payload:
                    try:
                        event = self._normalize_event(item, group_id)
                    except (KeyError, TypeError, ValueError) as exc:
                        failed_records += 1
                        logger.warning("Failed to normalize Doorkeeper event group=%s error=%s", group_id, exc)
                        continue
                    if event is None:
                        failed_records += 1
                        continue
                    if start <= event.started_at <= end:
                        events.append(event)

                if len(payload) < _PAGE_SIZE:
                    break
                page += 1

        return ConnectorFetchResult(source=self.source, events=events, failed_records=failed_records)

    def _normalize_event(self, item: Any, group_id: str) -> ServiceEvent | None:
        # The payload "group" is Doorkeeper's numeric id; results are keyed by the
        # group id the events were requested for.
        event = item.get("event") if isinstance(item, dict) else None
        if not isinstance(event, dict):
            return None

        event_id = event.get("id")
        starts_raw = event.get("starts_at")
        if event_id is None or not starts_raw:
            return None

        return ServiceEvent(
            service_name=self.source,
            group_id=str(group_id),
            event_id=str(event_id),
            event_url=event.get("public_url"),
            participants=int(event.get("participants") or 0),
            started_at=self.parse_iso_datetime(starts_raw),
        )
