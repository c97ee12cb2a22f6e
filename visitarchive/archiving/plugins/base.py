"""
Report Archiver Base

A report archiver turns the rows handed out by a processor into the records
of one report family. It holds its processor rather than extending it, and
every instance owns its own accumulator tables for one period.
"""

from typing import Optional

from visitarchive.config.settings import ArchivingSettings, get_settings

from ..processor import ArchiveProcessor, DayArchiveProcessor, PeriodArchiveProcessor


class ReportArchiver:
    """Base class for report archivers"""

    def __init__(self, processor: ArchiveProcessor, settings: Optional[ArchivingSettings] = None):
        self.processor = processor
        self.settings = settings or get_settings().archiving

    def _day_processor(self) -> DayArchiveProcessor:
        if not isinstance(self.processor, DayArchiveProcessor):
            raise TypeError(f"{type(self).__name__}.archive_day() needs a DayArchiveProcessor")
        return self.processor

    def _period_processor(self) -> PeriodArchiveProcessor:
        if not isinstance(self.processor, PeriodArchiveProcessor):
            raise TypeError(f"{type(self).__name__}.archive_period() needs a PeriodArchiveProcessor")
        return self.processor

    def archive_day(self) -> None:
        """Aggregate the day's logs and record the reports"""
        raise NotImplementedError

    def archive_period(self) -> None:
        """Roll up sub-period reports and record the period's reports"""
        raise NotImplementedError
