"""
Unit Tests - Reporting Periods
"""
from datetime import date

import pytest

from visitarchive.core.periods import Period, PeriodType


class TestPeriod:
    """Tests for Period"""

    @pytest.mark.parametrize("period_type, start, end", [
        ("day", date(2024, 3, 6), date(2024, 3, 6)),
        ("week", date(2024, 3, 4), date(2024, 3, 10)),
        ("month", date(2024, 3, 1), date(2024, 3, 31)),
        ("year", date(2024, 1, 1), date(2024, 12, 31)),
    ])
    def test_containing(self, period_type, start, end):
        period = Period.containing(period_type, date(2024, 3, 6))

        assert period.start == start
        assert period.end == end

    def test_leap_february(self):
        assert Period.containing(PeriodType.MONTH, date(2024, 2, 10)).end == date(2024, 2, 29)

    def test_week_sub_periods_are_days(self):
        days = Period.containing(PeriodType.WEEK, date(2024, 3, 6)).sub_periods()

        assert len(days) == 7
        assert all(day.period_type == PeriodType.DAY for day in days)
        assert days[0].start == date(2024, 3, 4)

    def test_year_sub_periods_are_months(self):
        months = Period.containing(PeriodType.YEAR, date(2024, 3, 6)).sub_periods()

        assert [month.start.month for month in months] == list(range(1, 13))
        assert all(month.period_type == PeriodType.MONTH for month in months)

    def test_day_has_no_sub_periods(self):
        assert Period.day(date(2024, 3, 6)).sub_periods() == []

    def test_key(self):
        assert str(Period.containing("week", date(2024, 3, 6))) == "week:2024-03-04"
