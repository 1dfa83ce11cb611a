from __future__ import annotations

from datetime import date, timedelta

import pytest

from leavedesk.core.errors import InvalidRangeError
from leavedesk.models.enums import HalfDaySession
from leavedesk.services.working_days import (
    calendar_span_days,
    compute_duration,
    count_chargeable_days,
    duration_breakdown,
    second_saturday,
)


@pytest.mark.parametrize(
    ("year", "month", "expected"),
    [
        (2024, 6, date(2024, 6, 8)),  # month starts on a Saturday
        (2024, 9, date(2024, 9, 14)),  # month starts on a Sunday
        (2024, 3, date(2024, 3, 9)),
        (2025, 2, date(2025, 2, 8)),
        (2024, 12, date(2024, 12, 14)),
    ],
)
def test_second_saturday(year, month, expected):
    assert second_saturday(year, month) == expected
    assert expected.weekday() == 5


def test_plain_weekdays_count_inclusively():
    # Mon 2024-06-17 .. Fri 2024-06-21
    assert count_chargeable_days(date(2024, 6, 17), date(2024, 6, 21)) == 5


def test_other_saturdays_are_working_days():
    # Mon 2024-06-17 .. Sat 2024-06-22 (fourth Saturday)
    assert count_chargeable_days(date(2024, 6, 17), date(2024, 6, 22)) == 6


def test_range_without_sunday_or_second_saturday_equals_span():
    start, end = date(2024, 7, 1), date(2024, 7, 6)  # Mon..Sat, second Saturday is the 13th
    assert count_chargeable_days(start, end) == calendar_span_days(start, end) == 6


def test_sundays_are_excluded():
    # Fri 2024-06-14 .. Mon 2024-06-17 with Sunday the 16th
    assert count_chargeable_days(date(2024, 6, 14), date(2024, 6, 17)) == 3


def test_second_saturday_and_sunday_excluded():
    # Sat 2024-06-08 (second Saturday), Sun 2024-06-09, Mon 2024-06-10
    assert count_chargeable_days(date(2024, 6, 8), date(2024, 6, 10)) == 1


def test_first_saturday_of_june_2024_is_charged():
    # 2024-06-01 is the first Saturday of June; only the Sunday is dropped.
    assert count_chargeable_days(date(2024, 6, 1), date(2024, 6, 3)) == 2


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (date(2024, 6, 9), 0),  # Sunday
        (date(2024, 6, 8), 0),  # second Saturday
        (date(2024, 6, 15), 1),  # third Saturday
        (date(2024, 6, 1), 1),  # first Saturday
        (date(2024, 6, 12), 1),  # Wednesday
    ],
)
def test_single_day(day, expected):
    assert count_chargeable_days(day, day) == expected


def test_each_month_second_saturday_counted_independently():
    # 2024-06-03 .. 2024-07-19 crosses June (8th) and July (13th) second Saturdays.
    start, end = date(2024, 6, 3), date(2024, 7, 19)
    span = calendar_span_days(start, end)
    sundays = sum(1 for offset in range(span) if (start + timedelta(days=offset)).weekday() == 6)
    assert count_chargeable_days(start, end) == span - sundays - 2


def test_year_boundary():
    # Mon 2024-12-09 .. Sat 2025-01-11: Dec 14 and Jan 11 are both second Saturdays.
    start, end = date(2024, 12, 9), date(2025, 1, 11)
    span = calendar_span_days(start, end)
    sundays = sum(1 for offset in range(span) if (start + timedelta(days=offset)).weekday() == 6)
    assert count_chargeable_days(start, end) == span - sundays - 2


def test_reversed_range_is_a_caller_error():
    with pytest.raises(InvalidRangeError):
        count_chargeable_days(date(2024, 6, 10), date(2024, 6, 3))
    with pytest.raises(InvalidRangeError):
        calendar_span_days(date(2024, 6, 10), date(2024, 6, 3))


def test_half_day_scales_after_counting():
    assert compute_duration(date(2024, 6, 12), None, HalfDaySession.FN) == 0.5
    assert compute_duration(date(2024, 6, 9), date(2024, 6, 9), HalfDaySession.AN) == 0.0
    assert compute_duration(date(2024, 6, 12)) == 1.0


def test_duration_breakdown_keeps_calendar_span():
    breakdown = duration_breakdown(date(2024, 6, 7), date(2024, 6, 10))
    assert breakdown.chargeable_days == 2  # Fri and Mon
    assert breakdown.calendar_span_days == 4
    assert breakdown.no_of_days == 2.0
    assert breakdown.to_date == date(2024, 6, 10)
