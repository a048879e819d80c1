"""
aggregation/orchestrator.py

Entry point of one event history aggregation.

    raw from/to
        -> resolve_period            (InvalidPeriodFormatError, no side effects)
        -> build_source_partition    (dojos per configured source kind)
        -> ensure_registered         (UnknownSourceKindError, no side effects)
        -> ensure_supported          (UnsupportedSourceRoleError, no side effects)
        -> AggregationRunner.run     (delete -> externals -> internals)
        -> notify outcome

Only the configuration errors above can propagate to the caller. Every
error raised while aggregating comes back as a failed
:class:`~aggregation.runner.AggregationResult` after the failure has been
notified.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

import requests
from sqlalchemy.orm import Session

from aggregation.dispatcher import TaskDispatcher, TaskRegistry
from aggregation.notifier import AggregationNotifier
from aggregation.period import resolve_period
from aggregation.runner import AggregationResult, AggregationRunner, strategy_for
from aggregation.sources import build_source_partition
from aggregation.tasks import EventServiceTask, StaticJSONTask
from app.config import (
    AggregationSettings,
    get_aggregation_settings,
    get_connpass_settings,
    get_doorkeeper_settings,
    get_external_http_settings,
    get_static_json_settings,
)
from app.connectors import ConnpassConnector, DoorkeeperConnector
from db.repositories.dojo_repository import DojoRepository

logger = logging.getLogger(__name__)


def build_default_registry(
    session: Session,
    *,
    http_session: requests.Session | None = None,
) -> TaskRegistry:
    """
    Register the bundled tasks bound to *session*.
    """
    http_settings = get_external_http_settings()
    return TaskRegistry(
        {
            "connpass": EventServiceTask(
                kind="connpass",
                session=session,
                connector=ConnpassConnector(
                    settings=get_connpass_settings(),
                    http_settings=http_settings,
                    session=http_session,
                ),
            ),
            "doorkeeper": EventServiceTask(
                kind="doorkeeper",
                session=session,
                connector=DoorkeeperConnector(
                    settings=get_doorkeeper_settings(),
                    http_settings=http_settings,
                    session=http_session,
                ),
            ),
            "static_json": StaticJSONTask(
                session=session,
                events_path=get_static_json_settings().events_path,
            ),
        }
    )


class AggregationOrchestrator:
    """
    Wires period resolution, dojo lookup, the runner and the notifier for a
    single run. The caller owns *session*. The orchestrator commits it at every
    runner checkpoint and rolls back only the uncommitted tail of a failed run.
    """

    def __init__(
        self,
        *,
        session: Session,
        settings: AggregationSettings | None = None,
        registry: TaskRegistry | None = None,
        notifier: AggregationNotifier | None = None,
        now: datetime | None = None,
        echo: Callable[[str], None] = print,
    ) -> None:
        self._session = session
        self._settings = settings or get_aggregation_settings()
        self._registry = registry if registry is not None else build_default_registry(session)
        self._notifier = notifier if notifier is not None else AggregationNotifier.from_settings(self._settings, echo=echo)
        self._now = now
        self._echo = echo

    def run(self, raw_from: str | None = None, raw_to: str | None = None) -> AggregationResult:
        period = resolve_period(raw_from, raw_to, now=self._now, tz=ZoneInfo(self._settings.timezone))
        logger.info(
            "Resolved aggregation window mode=%s start=%s end=%s",
            period.mode.value,
            period.start.isoformat(),
            period.end.isoformat(),
        )

        partition = build_source_partition(
            DojoRepository(self._session),
            external_kinds=self._settings.external_sources,
            internal_kinds=self._settings.internal_sources,
        )
        dispatcher = TaskDispatcher(self._registry)
        dispatcher.ensure_registered(partition.all_kinds())
        dispatcher.ensure_supported(
            external_kinds=partition.externals.keys(),
            internal_kinds=partition.internals.keys(),
        )

        strategy = strategy_for(period.mode)
        runner = AggregationRunner(
            partition=partition,
            period=period,
            dispatcher=dispatcher,
            strategy=strategy,
            echo=self._echo,
            checkpoint=self._session.commit,
        )
        result = runner.run()

        from_label = strategy.format_label(period.start)
        to_label = strategy.format_label(period.end)
        if result.succeeded:
            self._session.commit()
            self._notifier.notify_success(from_label, to_label)
        else:
            self._session.rollback()
            self._notifier.notify_failure(from_label, to_label, result.error, result.traceback_text)
        return result
