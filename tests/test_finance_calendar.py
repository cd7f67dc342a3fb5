"""
Tests for the Thursday → Wednesday finance calendar.

Covers:
- week_start / week_end for every weekday, including the week boundaries
- Calendar properties over a two-year span of dates
- Month arithmetic (days in month, days accounted, days left)
- finance_weeks_between / finance_weeks_overlapping enumeration
- Date string parsing
"""

from datetime import date, datetime, timedelta

import pytest

from app.analyzer import finance_calendar as fc
from app.core.exceptions import ValidationError


def _every_day(start: date, end: date):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


class TestWeekBounds:
    def test_monday_maps_to_previous_thursday(self):
        assert fc.week_start(date(2025, 11, 17)) == datetime(2025, 11, 13)
        assert fc.week_end(date(2025, 11, 17)) == datetime(
            2025, 11, 19, 23, 59, 59, 999000
        )

    def test_thursday_starts_its_own_week(self):
        assert fc.week_start(date(2025, 11, 13)) == datetime(2025, 11, 13)
        assert fc.week_start(date(2025, 11, 20)) == datetime(2025, 11, 20)

    def test_wednesday_closes_the_week(self):
        assert fc.week_start(date(2025, 11, 19)) == datetime(2025, 11, 13)
        assert fc.week_end(date(2025, 11, 19)).date() == date(2025, 11, 19)

    @pytest.mark.parametrize(
        "day, expected",
        [
            ("2025-11-14", date(2025, 11, 13)),  # Friday
            ("2025-11-15", date(2025, 11, 13)),  # Saturday
            ("2025-11-16", date(2025, 11, 13)),  # Sunday
            ("2025-11-18", date(2025, 11, 13)),  # Tuesday
        ],
    )
    def test_accepts_date_strings(self, day, expected):
        assert fc.week_start(day).date() == expected

    def test_week_crosses_month_and_year(self):
        # 2026-01-01 is a Thursday; 2025-12-31 belongs to the prior week
        assert fc.week_start("2025-12-31").date() == date(2025, 12, 25)
        assert fc.week_start("2026-01-01").date() == date(2026, 1, 1)

    def test_datetime_input_ignores_time_of_day(self):
        assert fc.week_start(datetime(2025, 11, 17, 22, 30)) == datetime(2025, 11, 13)


class TestWeekProperties:
    """Properties that must hold for every date."""

    DAYS = list(_every_day(date(2024, 1, 1), date(2025, 12, 31)))

    def test_week_start_is_thursday_on_or_before(self):
        for d in self.DAYS:
            start = fc.week_start(d)
            assert start.weekday() == 3, d
            assert start.date() <= d <= fc.week_end(d).date()

    def test_week_is_seven_days(self):
        for d in self.DAYS:
            assert fc.week_end(d).date() - fc.week_start(d).date() == timedelta(days=6)

    def test_week_start_is_idempotent(self):
        for d in self.DAYS:
            start = fc.week_start(d)
            assert fc.week_start(start) == start
            assert fc.week_start(fc.week_end(d)) == start


class TestMonthArithmetic:
    def test_mid_november(self):
        assert fc.days_in_month(date(2025, 11, 17)) == 30
        assert fc.days_accounted(date(2025, 11, 17)) == 17
        assert fc.days_left(date(2025, 11, 17)) == 13

    def test_leap_february(self):
        assert fc.days_in_month("2024-02-10") == 29
        assert fc.days_in_month("2025-02-10") == 28

    def test_last_day_has_none_left(self):
        assert fc.days_left("2025-11-30") == 0

    def test_month_bounds(self):
        assert fc.month_bounds("2025-11-17") == (date(2025, 11, 1), date(2025, 11, 30))


class TestFinanceWeeks:
    def test_weeks_between_start_on_first_thursday(self):
        # 2025-11-01 is a Saturday; the first Thursday is 2025-11-06
        weeks = fc.finance_weeks_between("2025-11-01", "2025-11-30")
        assert [w.start for w in weeks] == [
            date(2025, 11, 6),
            date(2025, 11, 13),
            date(2025, 11, 20),
            date(2025, 11, 27),
        ]
        assert all(w.end == w.start + timedelta(days=6) for w in weeks)

    def test_weeks_are_contiguous_and_increasing(self):
        weeks = fc.finance_weeks_between("2025-01-01", "2025-12-31")
        for prev, nxt in zip(weeks, weeks[1:]):
            assert nxt.start == prev.start + timedelta(days=7)
            assert nxt.start == prev.end + timedelta(days=1)

    def test_thursday_start_is_included(self):
        weeks = fc.finance_weeks_between("2025-11-13", "2025-11-13")
        assert len(weeks) == 1
        assert weeks[0].start == date(2025, 11, 13)

    def test_range_without_thursday_is_empty(self):
        assert fc.finance_weeks_between("2025-11-14", "2025-11-19") == []

    def test_overlapping_includes_partial_first_week(self):
        weeks = fc.finance_weeks_overlapping("2025-11-01", "2025-11-30")
        assert weeks[0].start == date(2025, 10, 30)
        assert weeks[-1].start == date(2025, 11, 27)
        assert len(weeks) == 5

    def test_overlapping_inverted_range_is_empty(self):
        assert fc.finance_weeks_overlapping("2025-11-30", "2025-11-01") == []


class TestParsing:
    @pytest.mark.parametrize(
        "value", ["2025-11-17", "11/17/2025", "2025/11/17", "11/17/25", "2025-11-17T08:00:00"]
    )
    def test_supported_formats(self, value):
        assert fc.parse_date(value) == date(2025, 11, 17)

    @pytest.mark.parametrize("value", ["", "   ", "not a date", "2025-13-01", None])
    def test_invalid_dates_raise(self, value):
        with pytest.raises(ValidationError):
            fc.parse_date(value)

    def test_parse_month(self):
        assert fc.parse_month("2025-11") == date(2025, 11, 1)
        with pytest.raises(ValidationError):
            fc.parse_month("Nov 2025")
