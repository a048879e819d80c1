"""
Repository layer exports.
"""

from db.repositories.dojo_repository import DojoRepository
from db.repositories.event_history_repository import EventHistoryRepository

__all__ = [
    "DojoRepository",
    "EventHistoryRepository",
]
