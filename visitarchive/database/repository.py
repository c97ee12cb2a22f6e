"""
Archive Repository

Stores and retrieves ArchiveRecordSets through an async SQLAlchemy session.
"""

from typing import Dict, List, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from visitarchive.archiving.records import ArchiveRecordSet
from visitarchive.core.exceptions import ArchiveNotFoundError, DuplicateRecordError
from visitarchive.core.periods import Period

from .models import ArchiveBlob, ArchiveNumeric

logger = structlog.get_logger(__name__)


def _numeric_value(value: float):
    """Integral values were stored as floats and come back as ints"""
    return int(value) if float(value).is_integer() else value


class ArchiveRepository:
    """
    Persistence for archived records.

    Example:
        async with get_db() as db:
            repository = ArchiveRepository(db)
            await repository.save(records)
            week = await repository.load_many(1, Period.containing("week", day).sub_periods())
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, records: ArchiveRecordSet) -> int:
        """
        Insert every record of the set.

        Returns:
            Number of rows inserted

        Raises:
            DuplicateRecordError: If any record already exists for the site and period
        """
        key = {
            "site_id": records.site_id,
            "period_type": records.period_type.value,
            "date1": records.date1,
            "date2": records.date2,
        }
        self.session.add_all(
            [ArchiveNumeric(name=name, value=float(value), **key) for name, value in records.numeric.items()]
            + [ArchiveBlob(name=name, value=blob, **key) for name, blob in records.blobs.items()]
        )
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateRecordError(
                f"Archive for site {records.site_id}, {records.period} already stored"
            ) from e

        logger.info(
            "Stored archive",
            site_id=records.site_id,
            period=str(records.period),
            records=records.record_count,
        )
        return records.record_count

    async def load(self, site_id: int, period: Period) -> Optional[ArchiveRecordSet]:
        """Records archived for the site and period, or None if nothing was stored"""
        numeric_rows = await self._select(ArchiveNumeric, site_id, period)
        blob_rows = await self._select(ArchiveBlob, site_id, period)

        if not numeric_rows and not blob_rows:
            return None

        records = ArchiveRecordSet.for_period(site_id, period)
        for row in numeric_rows:
            records.add_numeric(row.name, _numeric_value(row.value))
        for row in blob_rows:
            records.add_blob(row.name, row.value)
        return records

    async def _select(self, model, site_id: int, period: Period):
        query = select(model).where(
            model.site_id == site_id,
            model.period_type == period.period_type.value,
            model.date1 == period.start,
        ).order_by(model.id)
        return (await self.session.execute(query)).scalars().all()

    async def get(self, site_id: int, period: Period) -> ArchiveRecordSet:
        """
        Records archived for the site and period.

        Raises:
            ArchiveNotFoundError: If the period was never archived
        """
        records = await self.load(site_id, period)
        if records is None:
            raise ArchiveNotFoundError(f"No archive for site {site_id}, {period}")
        return records

    async def load_many(self, site_id: int, periods: Sequence[Period]) -> List[ArchiveRecordSet]:
        """Archives of the given periods, skipping periods that were never archived"""
        found: Dict[str, ArchiveRecordSet] = {}
        for period in periods:
            records = await self.load(site_id, period)
            if records is not None:
                found[period.key] = records

        missing = [period.key for period in periods if period.key not in found]
        if missing:
            logger.warning("Sub-period archives missing", site_id=site_id, periods=missing)
        return list(found.values())
