"""
app/domain package marker.
"""

from app.domain.service_event import ServiceEvent

__all__ = ["ServiceEvent"]
