"""
aggregation/dispatcher.py

Static source-kind -> task registry and the dispatcher the runner talks to.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from aggregation.period import PeriodSpec
from aggregation.tasks.base import AggregationTask
from db.models.dojo import Dojo

logger = logging.getLogger(__name__)


class UnknownSourceKindError(LookupError):
    """
    Raised when a configured source kind has no registered task.

    This is a configuration error, never retried.
    """

    def __init__(self, kind: str, registered: Iterable[str]) -> None:
        self.kind = kind
        self.registered = tuple(sorted(registered))
        allowed = ", ".join(self.registered) or "<none>"
        super().__init__(f"No aggregation task registered for source kind '{kind}'. Registered kinds: {allowed}.")


class UnsupportedSourceRoleError(ValueError):
    """
    Raised when a kind is configured as external (or internal) but its task
    does not implement per sub-period (or once per run) aggregation.

    This is a configuration error, never retried.
    """

    def __init__(self, kind: str, role: str) -> None:
        self.kind = kind
        self.role = role
        super().__init__(f"Source kind '{kind}' cannot be aggregated as an {role} source.")


class TaskRegistry:
    """
    Mapping of source kind to task instance, populated at startup.
    """

    def __init__(self, tasks: Mapping[str, AggregationTask] | None = None) -> None:
        self._tasks: dict[str, AggregationTask] = {}
        for kind, task in (tasks or {}).items():
            self.register(kind, task)

    def register(self, kind: str, task: AggregationTask) -> None:
        self._tasks[kind.strip().lower()] = task

    def resolve(self, kind: str) -> AggregationTask:
        task = self._tasks.get(kind.strip().lower())
        if task is None:
            raise UnknownSourceKindError(kind, self._tasks.keys())
        return task

    def kinds(self) -> tuple[str, ...]:
        return tuple(self._tasks.keys())

    def __contains__(self, kind: object) -> bool:
        return isinstance(kind, str) and kind.strip().lower() in self._tasks


class TaskDispatcher:
    """
    Resolves a source kind to its task and invokes one of its operations.
    """

    def __init__(self, registry: TaskRegistry) -> None:
        self._registry = registry

    def ensure_registered(self, kinds: Iterable[str]) -> None:
        """Fail fast on the first kind without a task."""
        for kind in kinds:
            self._registry.resolve(kind)

    def ensure_supported(self, *, external_kinds: Iterable[str], internal_kinds: Iterable[str]) -> None:
        """
        Fail fast on an unregistered kind or on a kind whose task does not
        implement the operation its role needs.
        """
        for kind in external_kinds:
            if not self._registry.resolve(kind).runs_per_subperiod:
                raise UnsupportedSourceRoleError(kind, "external")
        for kind in internal_kinds:
            if not self._registry.resolve(kind).runs_once:
                raise UnsupportedSourceRoleError(kind, "internal")

    def delete_history(self, kind: str, period: PeriodSpec) -> None:
        logger.debug("delete_history kind=%s [%s, %s]", kind, period.start.isoformat(), period.end.isoformat())
        self._registry.resolve(kind).delete_history(period)

    def run_for_subperiod(
        self,
        kind: str,
        dojos: Sequence[Dojo],
        anchor: datetime,
        weekly: bool,
    ) -> None:
        logger.debug("run_for_subperiod kind=%s anchor=%s weekly=%s dojos=%d", kind, anchor.date(), weekly, len(dojos))
        self._registry.resolve(kind).run_for_subperiod(dojos, anchor, weekly)

    def run_once(self, kind: str, dojos: Sequence[Dojo]) -> None:
        logger.debug("run_once kind=%s dojos=%d", kind, len(dojos))
        self._registry.resolve(kind).run_once(dojos)
