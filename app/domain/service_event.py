"""
app/domain/service_event.py

Normalized event record returned by event service connectors.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ServiceEvent:
    """
    One event held on an event service, normalized across services.

    ``group_id`` is the service-side series / group the event belongs to and
    is matched against ``DojoEventService.group_id``.
    """

    service_name: str
    group_id: str
    event_id: str
    event_url: str | None
    participants: int
    started_at: datetime
