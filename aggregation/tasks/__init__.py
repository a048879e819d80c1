"""
Aggregation task handlers, one per source kind.
"""

from aggregation.tasks.base import AggregationTask
from aggregation.tasks.event_service import EventServiceTask
from aggregation.tasks.static_json import StaticEventsError, StaticJSONTask

__all__ = [
    "AggregationTask",
    "EventServiceTask",
    "StaticEventsError",
    "StaticJSONTask",
]
