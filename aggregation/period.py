"""
aggregation/period.py

Resolves the raw ``from`` / ``to`` arguments of an aggregation run into a
calendar-aligned window and an aggregation mode.

Input precision drives both decisions:

    absent      -> previous calendar week            (weekly)
    YYYY        -> whole year                        (monthly)
    YYYYMM      -> whole month                       (monthly)
    YYYYMMDD    -> week containing that day          (weekly)

Precision is that of the format the input matched, so ``2023-01`` and
``202301`` are equivalent and ``2023-1-5`` is a day. ``from`` and ``to``
are resolved independently of each other; the mode is decided by ``from``
alone.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Final
from zoneinfo import ZoneInfo

from aggregation import calendar
from app.config import DEFAULT_TIMEZONE

ACCEPTED_FORMATS: Final[tuple[str, ...]] = (
    "%Y%m%d",
    "%Y/%m/%d",
    "%Y-%m-%d",
    "%Y%m",
    "%Y/%m",
    "%Y-%m",
)
"""strptime formats tried in order; a bare ``%Y`` year is accepted on top."""

_YEAR_DIGITS = 4


class AggregationMode(str, enum.Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class _Precision(enum.Enum):
    YEAR = "year"
    MONTH = "month"
    DAY = "day"


_FORMAT_PRECISION: Final[dict[str, _Precision]] = {
    "%Y%m%d": _Precision.DAY,
    "%Y/%m/%d": _Precision.DAY,
    "%Y-%m-%d": _Precision.DAY,
    "%Y%m": _Precision.MONTH,
    "%Y/%m": _Precision.MONTH,
    "%Y-%m": _Precision.MONTH,
}

# strptime reads "202311" with "%Y%m%d" as 2023-01-01, so unseparated formats
# only apply to all-digit input of exactly their full width.
_UNSEPARATED_WIDTH: Final[dict[str, int]] = {"%Y%m%d": 8, "%Y%m": 6}


class InvalidPeriodFormatError(ValueError):
    """
    Raised when a period argument matches none of the accepted formats.
    """

    def __init__(self, raw: str) -> None:
        self.raw = raw
        self.allowed_formats = (*ACCEPTED_FORMATS, "%Y")
        super().__init__(
            f"Invalid format: `{raw}`, allowed formats are {' or '.join(self.allowed_formats)}"
        )


@dataclass(frozen=True)
class PeriodSpec:
    """
    Resolved aggregation window. ``start`` and ``end`` are inclusive,
    timezone-aware boundaries.
    """

    mode: AggregationMode
    start: datetime
    end: datetime

    @property
    def is_weekly(self) -> bool:
        return self.mode is AggregationMode.WEEKLY

    @property
    def is_empty(self) -> bool:
        return self.start > self.end


def _match(raw: str) -> tuple[datetime, _Precision] | None:
    """Naive midnight of *raw* and the precision of the format it matched."""
    value = raw.strip()
    for fmt in ACCEPTED_FORMATS:
        width = _UNSEPARATED_WIDTH.get(fmt)
        if width is not None and (len(value) != width or not value.isdigit()):
            continue
        try:
            return datetime.strptime(value, fmt), _FORMAT_PRECISION[fmt]
        except ValueError:
            continue

    if len(value) == _YEAR_DIGITS and value.isdigit():
        try:
            return datetime(int(value), 1, 1), _Precision.YEAR
        except ValueError:
            return None
    return None


def _parse(raw: str, zone: tzinfo) -> tuple[datetime, _Precision]:
    matched = _match(raw)
    if matched is None:
        raise InvalidPeriodFormatError(raw)
    parsed, precision = matched
    return parsed.replace(tzinfo=zone), precision


def _resolve_tz(tz: tzinfo | str | None) -> tzinfo:
    if tz is None:
        return ZoneInfo(DEFAULT_TIMEZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def _resolve_now(now: datetime | None, tz: tzinfo) -> datetime:
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def detect_mode(raw_from: str | None) -> AggregationMode:
    """
    Year or year-month precision selects monthly aggregation; everything
    else, including an absent ``from``, selects weekly aggregation.
    Unparseable input is reported later by :func:`resolve_start`.
    """
    if raw_from is None:
        return AggregationMode.WEEKLY
    matched = _match(raw_from)
    if matched is not None and matched[1] is not _Precision.DAY:
        return AggregationMode.MONTHLY
    return AggregationMode.WEEKLY


def parse_period_date(raw: str, *, tz: tzinfo | str | None = None) -> datetime:
    """
    Parse *raw* with the first matching accepted format.

    Returns midnight of the parsed day in *tz*. Missing components default
    to the first month / first day.

    Raises:
        InvalidPeriodFormatError: no format matches.
    """
    return _parse(raw, _resolve_tz(tz))[0]


def resolve_start(
    raw_from: str | None,
    *,
    now: datetime | None = None,
    tz: tzinfo | str | None = None,
) -> datetime:
    zone = _resolve_tz(tz)
    if raw_from is None:
        return calendar.beginning_of_week(calendar.previous_week(_resolve_now(now, zone)))

    parsed, precision = _parse(raw_from, zone)
    if precision is _Precision.YEAR:
        return calendar.beginning_of_year(parsed)
    if precision is _Precision.MONTH:
        return calendar.beginning_of_month(parsed)
    return calendar.beginning_of_week(parsed)


def resolve_end(
    raw_to: str | None,
    *,
    now: datetime | None = None,
    tz: tzinfo | str | None = None,
) -> datetime:
    zone = _resolve_tz(tz)
    if raw_to is None:
        return calendar.end_of_week(calendar.previous_week(_resolve_now(now, zone)))

    parsed, precision = _parse(raw_to, zone)
    if precision is _Precision.YEAR:
        return calendar.end_of_year(parsed)
    if precision is _Precision.MONTH:
        return calendar.end_of_month(parsed)
    return calendar.end_of_week(parsed)


def resolve_period(
    raw_from: str | None = None,
    raw_to: str | None = None,
    *,
    now: datetime | None = None,
    tz: tzinfo | str | None = None,
) -> PeriodSpec:
    """
    Resolve raw CLI / scheduler arguments into a :class:`PeriodSpec`.

    Empty strings are treated as absent. No side effects happen here, so an
    :class:`InvalidPeriodFormatError` always surfaces before any data is
    touched.
    """
    raw_from = raw_from or None
    raw_to = raw_to or None
    zone = _resolve_tz(tz)
    return PeriodSpec(
        mode=detect_mode(raw_from),
        start=resolve_start(raw_from, now=now, tz=zone),
        end=resolve_end(raw_to, now=now, tz=zone),
    )
