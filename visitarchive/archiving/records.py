"""
Archive Records

The output of archiving one site for one period: numeric records (distinct
counts) and blob records (serialized report tables), each under a stable
name.
"""

from datetime import date
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field

from visitarchive.core.exceptions import DuplicateRecordError
from visitarchive.core.periods import Period, PeriodType


class ArchiveRecordSet(BaseModel):
    """All records archived for one site and period"""
    site_id: int
    period_type: PeriodType
    date1: date
    date2: date
    numeric: Dict[str, Union[int, float]] = Field(default_factory=dict)
    blobs: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def for_period(cls, site_id: int, period: Period) -> "ArchiveRecordSet":
        return cls(
            site_id=site_id,
            period_type=period.period_type,
            date1=period.start,
            date2=period.end,
        )

    @property
    def period(self) -> Period:
        return Period(period_type=self.period_type, start=self.date1)

    @property
    def record_count(self) -> int:
        return len(self.numeric) + len(self.blobs)

    def _check_unique(self, name: str) -> None:
        if name in self.numeric or name in self.blobs:
            raise DuplicateRecordError(
                f"Record {name!r} already archived for site {self.site_id}, {self.period}"
            )

    def add_numeric(self, name: str, value: Union[int, float]) -> None:
        self._check_unique(name)
        self.numeric[name] = value

    def add_blob(self, name: str, blob: str) -> None:
        self._check_unique(name)
        self.blobs[name] = blob

    def get_numeric(self, name: str) -> Optional[Union[int, float]]:
        return self.numeric.get(name)

    def get_blob(self, name: str) -> Optional[str]:
        return self.blobs.get(name)
