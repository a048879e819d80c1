"""
aggregation/runner.py

Runs one aggregation over a resolved window.

Sequence
--------
1. delete_history:  every source kind (externals and internals) over [start, end]
2. externals:       per sub-period anchor, ascending, every external kind
3. internals:       every internal kind, exactly once, no date bounds

Steps run strictly in that order. The optional ``checkpoint`` callback runs
after the delete step, after every sub-period and after the internals, so
the caller can commit at those points. The first exception stops the run;
sub-periods already checkpointed are kept. The exception is captured in
the returned :class:`AggregationResult` instead of being raised, so the
caller decides how to report it.

Weekly and monthly runs share this algorithm and differ only by their
:class:`AggregationStrategy` (sub-period enumeration, the weekly flag passed
to tasks, and label formatting).
"""

from __future__ import annotations

import logging
import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from aggregation import calendar
from aggregation.dispatcher import TaskDispatcher
from aggregation.period import AggregationMode, PeriodSpec
from aggregation.sources import SourcePartition
from app.logging_utils import log_event

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Strategy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AggregationStrategy:
    """
    What distinguishes a weekly run from a monthly one.

    Attributes
    ----------
    mode:
        The aggregation mode this strategy implements.
    enumerate:
        ``(start, end) -> [anchor, ...]`` sub-period enumeration.
    weekly:
        Flag forwarded to ``run_for_subperiod`` of external tasks.
    label_format:
        strftime format for window and anchor labels.
    """

    mode: AggregationMode
    enumerate: Callable[[datetime, datetime], list[datetime]]
    weekly: bool
    label_format: str

    def format_label(self, value: datetime) -> str:
        return value.strftime(self.label_format)

    def format_progress(self, anchor: datetime) -> str:
        if self.weekly:
            return f"Aggregate for {self.format_label(anchor)}~{self.format_label(calendar.end_of_week(anchor))}"
        return f"Aggregate for {self.format_label(anchor)}"


WEEKLY_STRATEGY = AggregationStrategy(
    mode=AggregationMode.WEEKLY,
    enumerate=calendar.every_week,
    weekly=True,
    label_format="%Y/%m/%d",
)

MONTHLY_STRATEGY = AggregationStrategy(
    mode=AggregationMode.MONTHLY,
    enumerate=calendar.every_month,
    weekly=False,
    label_format="%Y/%m",
)

_STRATEGIES: dict[AggregationMode, AggregationStrategy] = {
    AggregationMode.WEEKLY: WEEKLY_STRATEGY,
    AggregationMode.MONTHLY: MONTHLY_STRATEGY,
}


def strategy_for(mode: AggregationMode) -> AggregationStrategy:
    return _STRATEGIES[mode]


def _no_checkpoint() -> None:
    return None


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AggregationResult:
    """
    Outcome of one run: either succeeded, or failed with the causing error
    and its formatted traceback.
    """

    period: PeriodSpec
    succeeded: bool
    subperiods_completed: int = 0
    error: BaseException | None = None
    traceback_text: str | None = None

    @classmethod
    def success(cls, period: PeriodSpec, *, subperiods_completed: int) -> AggregationResult:
        return cls(period=period, succeeded=True, subperiods_completed=subperiods_completed)

    @classmethod
    def failure(
        cls,
        period: PeriodSpec,
        error: BaseException,
        *,
        subperiods_completed: int,
    ) -> AggregationResult:
        return cls(
            period=period,
            succeeded=False,
            subperiods_completed=subperiods_completed,
            error=error,
            traceback_text="".join(traceback.format_exception(type(error), error, error.__traceback__)),
        )

    @property
    def failed(self) -> bool:
        return not self.succeeded


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class AggregationRunner:
    """
    Executes delete -> externals -> internals for one window.

    The runner holds no state across runs; construct one per invocation.
    """

    def __init__(
        self,
        *,
        partition: SourcePartition,
        period: PeriodSpec,
        dispatcher: TaskDispatcher,
        strategy: AggregationStrategy,
        echo: Callable[[str], None] = print,
        checkpoint: Callable[[], None] | None = None,
    ) -> None:
        self._partition = partition
        self._period = period
        self._dispatcher = dispatcher
        self._strategy = strategy
        self._echo = echo
        self._checkpoint = checkpoint or _no_checkpoint
        self._anchors = strategy.enumerate(period.start, period.end)
        self._completed = 0

    @property
    def anchors(self) -> list[datetime]:
        return list(self._anchors)

    @property
    def strategy(self) -> AggregationStrategy:
        return self._strategy

    def run(self) -> AggregationResult:
        self._completed = 0
        started = time.monotonic()
        log_event(
            logger,
            logging.INFO,
            "aggregation_started",
            mode=self._strategy.mode.value,
            start=self._period.start,
            end=self._period.end,
            subperiods=len(self._anchors),
        )

        try:
            self._delete_histories()
            self._execute_externals()
            self._execute_internals_once()
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.ERROR,
                "aggregation_failed",
                mode=self._strategy.mode.value,
                error=repr(exc),
                subperiods_completed=self._completed,
            )
            return AggregationResult.failure(self._period, exc, subperiods_completed=self._completed)

        log_event(
            logger,
            logging.INFO,
            "aggregation_completed",
            mode=self._strategy.mode.value,
            subperiods_completed=self._completed,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )
        return AggregationResult.success(self._period, subperiods_completed=self._completed)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _delete_histories(self) -> None:
        for kind in self._partition.all_kinds():
            self._dispatcher.delete_history(kind, self._period)
        self._checkpoint()

    def _execute_externals(self) -> None:
        for anchor in self._anchors:
            self._echo(self._strategy.format_progress(anchor))
            for kind, dojos in self._partition.externals.items():
                self._dispatcher.run_for_subperiod(kind, dojos, anchor, self._strategy.weekly)
            self._checkpoint()
            self._completed += 1

    def _execute_internals_once(self) -> None:
        for kind, dojos in self._partition.internals.items():
            self._dispatcher.run_once(kind, dojos)
        self._checkpoint()
