"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.dojo import Dojo
from db.models.dojo_event_service import DojoEventService
from db.models.event_history import EventHistory

__all__ = [
    "Dojo",
    "DojoEventService",
    "EventHistory",
]
