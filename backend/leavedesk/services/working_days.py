"""Chargeable-day arithmetic for leave periods.

Institutional rules: Sundays are never charged, and the second Saturday of
every month is a holiday. Everything else (including the other Saturdays)
counts as one working day. Half-day scaling is applied on top of the whole-day
count by :func:`compute_duration`, never inside :func:`count_chargeable_days`.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from leavedesk.core.errors import InvalidRangeError
from leavedesk.models.enums import HalfDaySession

SUNDAY = 6
SATURDAY = 5
HALF_DAY_FACTOR = 0.5


@dataclass(frozen=True)
class DurationBreakdown:
    from_date: date
    to_date: date
    chargeable_days: int
    calendar_span_days: int
    no_of_days: float


def second_saturday(year: int, month: int) -> date:
    first = date(year, month, 1)
    first_saturday = first + timedelta(days=(SATURDAY - first.weekday()) % 7)
    return first_saturday + timedelta(days=7)


def _check_range(from_date: date, to_date: date) -> None:
    if from_date > to_date:
        raise InvalidRangeError(f"from_date {from_date} is after to_date {to_date}")


def count_chargeable_days(from_date: date, to_date: date) -> int:
    _check_range(from_date, to_date)

    total = 0
    months_with_holiday: set[tuple[int, int]] = set()
    day = from_date
    while day <= to_date:
        if day.weekday() != SUNDAY:
            total += 1
            if day.weekday() == SATURDAY and day == second_saturday(day.year, day.month):
                months_with_holiday.add((day.year, day.month))
        day += timedelta(days=1)

    # One decrement per distinct month whose second Saturday falls in range.
    return total - len(months_with_holiday)


def calendar_span_days(from_date: date, to_date: date) -> int:
    _check_range(from_date, to_date)
    return (to_date - from_date).days + 1


def duration_breakdown(
    from_date: date,
    to_date: Optional[date] = None,
    is_half_day: Optional[HalfDaySession] = None,
) -> DurationBreakdown:
    end = to_date or from_date
    chargeable = count_chargeable_days(from_date, end)
    return DurationBreakdown(
        from_date=from_date,
        to_date=end,
        chargeable_days=chargeable,
        calendar_span_days=calendar_span_days(from_date, end),
        no_of_days=chargeable * HALF_DAY_FACTOR if is_half_day else float(chargeable),
    )


def compute_duration(
    from_date: date,
    to_date: Optional[date] = None,
    is_half_day: Optional[HalfDaySession] = None,
) -> float:
    """Chargeable days for a period, halved for FN/AN requests. ``to_date=None`` means one day."""
    return duration_breakdown(from_date, to_date, is_half_day).no_of_days
