"""
Prefect Workflow Orchestration - Archiving

Flows that archive a day from raw logs and roll weeks, months and years up
from stored sub-period archives, with:
- Retries on loading and storage
- Persistence of every record set produced
"""

from datetime import date
from pathlib import Path
from typing import List, Optional

import polars as pl
import structlog
from prefect import flow, get_run_logger, task

from visitarchive.archiving.records import ArchiveRecordSet
from visitarchive.archiving.runner import ArchiveRunner
from visitarchive.config.settings import get_settings
from visitarchive.core.periods import Period, PeriodType
from visitarchive.database.connection import close_database, get_db, init_database
from visitarchive.database.repository import ArchiveRepository
from visitarchive.ingestion.log_loader import LogFileConfig, LogFormat, LogKind, LogLoader

logger = structlog.get_logger(__name__)


def log_file_path(logs_path: str, kind: LogKind, day: date, file_format: LogFormat) -> Path:
    """Raw logs are laid out as <logs_path>/<kind>/<YYYY-MM-DD>.<format>"""
    return Path(logs_path) / kind.value / f"{day.isoformat()}.{file_format.value}"


# =============================================================================
# TASKS
# =============================================================================

@task(
    name="load_day_log",
    description="Load one day of a raw visit or conversion log",
    retries=3,
    retry_delay_seconds=60,
)
def load_day_log(
    logs_path: str,
    kind: LogKind,
    day: date,
    file_format: LogFormat = LogFormat.PARQUET,
    required: bool = True,
) -> Optional[pl.DataFrame]:
    """Load a day's log, or None for an optional log that is absent"""
    path = log_file_path(logs_path, kind, day, file_format)
    if not path.exists() and not required:
        logger.warning("Optional log missing", file=str(path), kind=kind.value)
        return None

    return LogLoader().load(
        LogFileConfig(file_path=path, kind=kind, file_format=file_format, period=Period.day(day))
    )


@task(
    name="archive_day_records",
    description="Aggregate a day of logs into archive records",
)
def archive_day_records(
    day: date,
    visits: Optional[pl.DataFrame],
    conversions: Optional[pl.DataFrame],
    site_id: Optional[int] = None,
) -> ArchiveRecordSet:
    return ArchiveRunner().archive_day(Period.day(day), visits, conversions, site_id=site_id)


@task(
    name="archive_period_records",
    description="Roll sub-period archives up into a period's records",
)
def archive_period_records(
    period: Period,
    sub_period_archives: List[ArchiveRecordSet],
    site_id: Optional[int] = None,
) -> ArchiveRecordSet:
    return ArchiveRunner().archive_period(period, sub_period_archives, site_id=site_id)


@task(
    name="store_archive",
    description="Persist an archive record set",
    retries=2,
    retry_delay_seconds=30,
)
async def store_archive(records: ArchiveRecordSet) -> int:
    async with get_db() as db:
        return await ArchiveRepository(db).save(records)


@task(
    name="load_sub_period_archives",
    description="Load the stored archives of a period's sub-periods",
    retries=2,
    retry_delay_seconds=30,
)
async def load_sub_period_archives(site_id: int, period: Period) -> List[ArchiveRecordSet]:
    async with get_db() as db:
        return await ArchiveRepository(db).load_many(site_id, period.sub_periods())


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="archive_day",
    description="Archive one day of visit and conversion logs",
)
async def archive_day_flow(
    day: date,
    site_id: Optional[int] = None,
    logs_path: Optional[str] = None,
    file_format: Optional[str] = None,
    database_url: Optional[str] = None,
) -> dict:
    """
    Daily archiving.

    Steps:
    1. Load the day's visit log and, if present, its conversion log
    2. Aggregate both into archive records
    3. Store the records
    """
    run_logger = get_run_logger()
    settings = get_settings()

    site_id = site_id or settings.archiving.site_id
    logs_path = logs_path or settings.data_lake.logs_path
    log_format = LogFormat(file_format or settings.data_lake.log_format)

    run_logger.info(f"Archiving site {site_id} for {day.isoformat()}")

    visits_path = log_file_path(logs_path, LogKind.VISITS, day, log_format)
    if not visits_path.exists():
        # missing logs are not retried
        raise FileNotFoundError(f"Visit log not found: {visits_path}")

    visits = load_day_log(logs_path, LogKind.VISITS, day, log_format)
    conversions = load_day_log(logs_path, LogKind.CONVERSIONS, day, log_format, required=False)
    records = archive_day_records(day, visits, conversions, site_id)

    await init_database(database_url)
    try:
        stored = await store_archive(records)
    finally:
        await close_database()

    run_logger.info(f"Stored {stored} records for {records.period}")
    return {
        "site_id": site_id,
        "period": str(records.period),
        "numeric_records": len(records.numeric),
        "blob_records": len(records.blobs),
    }


@flow(
    name="archive_period",
    description="Roll stored sub-period archives up into a week, month or year",
)
async def archive_period_flow(
    period_type: str,
    day: date,
    site_id: Optional[int] = None,
    database_url: Optional[str] = None,
) -> dict:
    """
    Period archiving.

    Steps:
    1. Load the stored archives of every sub-period
    2. Sum them into the period's records
    3. Store the records
    """
    run_logger = get_run_logger()
    period = Period.containing(PeriodType(period_type), day)
    site_id = site_id or get_settings().archiving.site_id

    await init_database(database_url)
    try:
        sub_period_archives = await load_sub_period_archives(site_id, period)
        run_logger.info(
            f"Rolling up {len(sub_period_archives)} of {len(period.sub_periods())} sub-periods into {period}"
        )
        records = archive_period_records(period, sub_period_archives, site_id)
        stored = await store_archive(records)
    finally:
        await close_database()

    run_logger.info(f"Stored {stored} records for {period}")
    return {
        "site_id": site_id,
        "period": str(period),
        "sub_periods": len(sub_period_archives),
        "numeric_records": len(records.numeric),
        "blob_records": len(records.blobs),
    }


if __name__ == "__main__":
    import asyncio
    from datetime import timedelta

    from visitarchive.config.logging import configure_logging

    configure_logging()
    asyncio.run(archive_day_flow(date.today() - timedelta(days=1)))
