"""
Archive Runner

Runs every report archiver for one site and period and returns the records
they produced.
"""

import time
from typing import Optional, Sequence, Tuple, Type

import polars as pl
import structlog

from visitarchive.config.logging import archive_context
from visitarchive.config.settings import ArchivingSettings, get_settings
from visitarchive.core.periods import Period

from .plugins import ARCHIVERS, ReportArchiver
from .processor import ArchiveProcessor, DayArchiveProcessor, PeriodArchiveProcessor
from .records import ArchiveRecordSet

logger = structlog.get_logger(__name__)


class ArchiveRunner:
    """
    Entry point for archiving a day from logs or a period from sub-period archives.

    Example:
        runner = ArchiveRunner()
        day_records = runner.archive_day(Period.day(day), visits_df, conversions_df)
        week_records = runner.archive_period(week, [day_records, ...])
    """

    def __init__(
        self,
        settings: Optional[ArchivingSettings] = None,
        archivers: Sequence[Type[ReportArchiver]] = ARCHIVERS,
    ):
        self.settings = settings or get_settings().archiving
        self.archivers: Tuple[Type[ReportArchiver], ...] = tuple(archivers)

    def archive_day(
        self,
        period: Period,
        visits: Optional[pl.DataFrame],
        conversions: Optional[pl.DataFrame] = None,
        site_id: Optional[int] = None,
    ) -> ArchiveRecordSet:
        """Aggregate one day of visit and conversion logs into archive records"""
        processor = DayArchiveProcessor(
            period,
            visits,
            conversions,
            site_id=site_id or self.settings.site_id,
        )
        return self._run(processor, "archive_day")

    def archive_period(
        self,
        period: Period,
        sub_period_archives: Sequence[ArchiveRecordSet],
        site_id: Optional[int] = None,
    ) -> ArchiveRecordSet:
        """Roll the archives of a period's sub-periods up into the period's records"""
        processor = PeriodArchiveProcessor(
            period,
            sub_period_archives,
            site_id=site_id or self.settings.site_id,
        )
        return self._run(processor, "archive_period")

    def _run(self, processor: ArchiveProcessor, method: str) -> ArchiveRecordSet:
        with archive_context(processor.site_id, processor.period):
            started = time.perf_counter()
            logger.info("Archiving started", step=method)

            for archiver_cls in self.archivers:
                archiver = archiver_cls(processor, self.settings)
                getattr(archiver, method)()

            logger.info(
                "Archiving complete",
                step=method,
                numeric_records=len(processor.records.numeric),
                blob_records=len(processor.records.blobs),
                duration_seconds=round(time.perf_counter() - started, 3),
            )
        return processor.records
