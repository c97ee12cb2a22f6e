"""
Reporting Periods

Days are archived from raw logs; weeks, months and years are rolled up from
the archives of their sub-periods.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List


class PeriodType(str, Enum):
    """Supported period granularities"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class Period:
    """A calendar period identified by its type and first day"""
    period_type: PeriodType
    start: date

    @classmethod
    def containing(cls, period_type, day: date) -> "Period":
        """The period of the given type that contains ``day``"""
        period_type = PeriodType(period_type)
        if period_type == PeriodType.DAY:
            start = day
        elif period_type == PeriodType.WEEK:
            start = day - timedelta(days=day.weekday())
        elif period_type == PeriodType.MONTH:
            start = day.replace(day=1)
        else:
            start = day.replace(month=1, day=1)
        return cls(period_type=period_type, start=start)

    @classmethod
    def day(cls, day: date) -> "Period":
        return cls(period_type=PeriodType.DAY, start=day)

    @property
    def end(self) -> date:
        """Last day of the period, inclusive"""
        if self.period_type == PeriodType.DAY:
            return self.start
        if self.period_type == PeriodType.WEEK:
            return self.start + timedelta(days=6)
        if self.period_type == PeriodType.MONTH:
            last = calendar.monthrange(self.start.year, self.start.month)[1]
            return self.start.replace(day=last)
        return self.start.replace(month=12, day=31)

    @property
    def key(self) -> str:
        return f"{self.period_type.value}:{self.start.isoformat()}"

    def sub_periods(self) -> List["Period"]:
        """Periods whose archives are summed into this one"""
        if self.period_type == PeriodType.YEAR:
            return [
                Period(PeriodType.MONTH, self.start.replace(month=month))
                for month in range(1, 13)
            ]
        if self.period_type == PeriodType.DAY:
            return []
        days = (self.end - self.start).days + 1
        return [Period.day(self.start + timedelta(days=offset)) for offset in range(days)]

    def __str__(self) -> str:
        return self.key
