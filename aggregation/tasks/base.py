"""
aggregation/tasks/base.py

Handler contract shared by every event service task.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from aggregation.period import PeriodSpec
from db.models.dojo import Dojo


class AggregationTask(ABC):
    """
    Per-source handler invoked by the aggregation runner.

    ``kind`` is the source identifier the task is registered under.
    ``runs_per_subperiod`` / ``runs_once`` declare which of the two run
    operations the task implements, so the external / internal role of a
    kind can be checked before anything runs. The runner never inspects
    dojos itself; it only forwards the list fetched for ``kind``.
    """

    kind: str
    runs_per_subperiod: bool = True
    runs_once: bool = True

    @abstractmethod
    def delete_history(self, period: PeriodSpec) -> None:
        """
        Delete previously aggregated rows inside *period*. Must be idempotent.
        """

    @abstractmethod
    def run_for_subperiod(self, dojos: Sequence[Dojo], anchor: datetime, weekly: bool) -> None:
        """
        Aggregate the week (``weekly=True``) or month starting at *anchor*.
        """

    @abstractmethod
    def run_once(self, dojos: Sequence[Dojo]) -> None:
        """
        Aggregate without date bounds. Used for internal sources.
        """
