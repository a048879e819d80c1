"""
Shared fixtures: an in-memory SQLite database with the aggregation schema,
dojo factories and recording test doubles for tasks and the notifier.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from aggregation.period import PeriodSpec
from aggregation.tasks.base import AggregationTask
from db.base import Base
from db.models import Dojo, DojoEventService

TOKYO = ZoneInfo("Asia/Tokyo")


@pytest.fixture()
def tz() -> ZoneInfo:
    return TOKYO


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_dojo(db_session: Session):
    """Persist a dojo with ``(service_name, group_id)`` memberships."""

    def _make(name: str, *services: tuple[str, str | None], is_active: bool = True) -> Dojo:
        dojo = Dojo(name=name, is_active=is_active)
        dojo.event_services = [DojoEventService(name=kind, group_id=group_id) for kind, group_id in services]
        db_session.add(dojo)
        db_session.flush()
        return dojo

    return _make


class RecordingTask(AggregationTask):
    """
    Task double appending every call to a shared journal.

    ``fail_on_anchor`` makes ``run_for_subperiod`` raise for that anchor.
    """

    def __init__(
        self,
        kind: str,
        journal: list[tuple],
        *,
        fail_on_anchor: datetime | None = None,
        error: Exception | None = None,
    ) -> None:
        self.kind = kind
        self.journal = journal
        self.fail_on_anchor = fail_on_anchor
        self.error = error or RuntimeError(f"{kind} API is down")

    def delete_history(self, period: PeriodSpec) -> None:
        self.journal.append(("delete", self.kind, period.start, period.end))

    def run_for_subperiod(self, dojos: Sequence[Dojo], anchor: datetime, weekly: bool) -> None:
        if self.fail_on_anchor is not None and anchor == self.fail_on_anchor:
            raise self.error
        self.journal.append(("run", self.kind, anchor, weekly, tuple(dojos)))

    def run_once(self, dojos: Sequence[Dojo]) -> None:
        self.journal.append(("once", self.kind, tuple(dojos)))


class RecordingNotifier:
    def __init__(self) -> None:
        self.successes: list[tuple[str, str]] = []
        self.failures: list[tuple[str, str, BaseException, str | None]] = []

    def notify_success(self, from_label: str, to_label: str) -> None:
        self.successes.append((from_label, to_label))

    def notify_failure(
        self,
        from_label: str,
        to_label: str,
        error: BaseException,
        traceback_text: str | None = None,
    ) -> None:
        self.failures.append((from_label, to_label, error, traceback_text))


@pytest.fixture()
def journal() -> list[tuple]:
    return []


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
