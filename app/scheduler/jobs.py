"""
app/scheduler/jobs.py

APScheduler-based trigger for the weekly event history aggregation.

Schedule
--------
  weekly_event_aggregation: every Monday 04:00 in AGGREGATION_TIMEZONE by
  default (AGGREGATION_CRON_DAY_OF_WEEK / _HOUR / _MINUTE override it). With
  no arguments the run covers the previous calendar week.

Lifecycle
---------
``build_scheduler()`` returns a configured but *not yet started* scheduler.
``scripts/run_scheduler.py`` runs it in the foreground with
``blocking=True``; an embedding process can use the background flavour and
call ``.start()`` / ``.shutdown(wait=True)`` itself.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler

from aggregation.orchestrator import AggregationOrchestrator
from aggregation.runner import AggregationResult
from app.config import AggregationSettings, get_aggregation_settings
from db.session import session_scope

logger = logging.getLogger(__name__)

WEEKLY_AGGREGATION_JOB_ID = "weekly_event_aggregation"


def run_weekly_aggregation(
    raw_from: str | None = None,
    raw_to: str | None = None,
) -> AggregationResult | None:
    """
    Run one aggregation in a fresh session.

    Configuration errors (bad period, unknown source kind, database
    misconfiguration) are logged and swallowed so the scheduler keeps
    running; aggregation failures have already been notified by the
    orchestrator.
    """
    logger.info("Scheduler: weekly_event_aggregation starting")
    try:
        with session_scope() as db:
            result = AggregationOrchestrator(session=db).run(raw_from, raw_to)
    except Exception:  # noqa: BLE001
        logger.exception("Scheduler: weekly_event_aggregation could not start")
        return None

    logger.info(
        "Scheduler: weekly_event_aggregation complete succeeded=%s subperiods=%s",
        result.succeeded,
        result.subperiods_completed,
    )
    return result


def build_scheduler(
    settings: AggregationSettings | None = None,
    *,
    blocking: bool = False,
) -> BaseScheduler:
    """
    Build the scheduler and register the aggregation job.
    """
    settings = settings or get_aggregation_settings()
    scheduler_cls = BlockingScheduler if blocking else BackgroundScheduler
    scheduler = scheduler_cls(timezone=settings.timezone)

    scheduler.add_job(
        run_weekly_aggregation,
        trigger="cron",
        day_of_week=settings.cron_day_of_week,
        hour=settings.cron_hour,
        minute=settings.cron_minute,
        id=WEEKLY_AGGREGATION_JOB_ID,
        name="Weekly event history aggregation",
        replace_existing=True,
        misfire_grace_time=3600,
        coalesce=True,
        max_instances=1,
    )

    return scheduler
