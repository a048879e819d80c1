"""
aggregation/calendar.py

Calendar boundary helpers and sub-period enumeration.

Weeks start on Monday. Every ``end_of_*`` helper returns the last
microsecond of the period so that ``start <= t <= end`` covers it fully.
All helpers preserve the tzinfo of their argument.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta

_ONE_WEEK = timedelta(days=7)
_LAST_MICROSECOND = time(23, 59, 59, 999999)


def beginning_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(value: datetime) -> datetime:
    return value.replace(
        hour=_LAST_MICROSECOND.hour,
        minute=_LAST_MICROSECOND.minute,
        second=_LAST_MICROSECOND.second,
        microsecond=_LAST_MICROSECOND.microsecond,
    )


def beginning_of_week(value: datetime) -> datetime:
    return beginning_of_day(value - timedelta(days=value.weekday()))


def end_of_week(value: datetime) -> datetime:
    return end_of_day(beginning_of_week(value) + timedelta(days=6))


def beginning_of_month(value: datetime) -> datetime:
    return beginning_of_day(value.replace(day=1))


def end_of_month(value: datetime) -> datetime:
    return end_of_day(add_months(beginning_of_month(value), 1) - timedelta(days=1))


def beginning_of_year(value: datetime) -> datetime:
    return beginning_of_day(value.replace(month=1, day=1))


def end_of_year(value: datetime) -> datetime:
    return end_of_day(value.replace(month=12, day=31))


def previous_week(value: datetime) -> datetime:
    """Same instant one week earlier."""
    return value - _ONE_WEEK


def add_months(value: datetime, months: int) -> datetime:
    """
    Shift *value* by whole months, clamping the day to the target month's
    length (Jan 31 + 1 month -> Feb 28/29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, _days_in_month(year, month))
    return value.replace(year=year, month=month, day=day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        following = datetime(year + 1, 1, 1)
    else:
        following = datetime(year, month + 1, 1)
    return (following - timedelta(days=1)).day


# ---------------------------------------------------------------------------
# Sub-period enumeration
# ---------------------------------------------------------------------------


def every_week(start: datetime, end: datetime) -> list[datetime]:
    """
    Week-start anchors from the week of *start* through the week containing *end*.

    Returns an empty list when ``start > end``.
    """
    if start > end:
        return []

    anchors: list[datetime] = []
    current = beginning_of_week(start)
    while current <= end:
        anchors.append(current)
        current = beginning_of_day(current + _ONE_WEEK)
    return anchors


def every_month(start: datetime, end: datetime) -> list[datetime]:
    """
    Month-start anchors from the month of *start* through the month containing *end*.

    Returns an empty list when ``start > end``.
    """
    if start > end:
        return []

    anchors: list[datetime] = []
    current = beginning_of_month(start)
    while current <= end:
        anchors.append(current)
        current = add_months(current, 1)
    return anchors
