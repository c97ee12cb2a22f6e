"""
Archive Processors

Processors are the collaborators report archivers work against: they hand
out grouped log rows, create empty metric rows and collect the records an
archiver emits.

- ``DayArchiveProcessor`` groups the raw visit and conversion logs of a day
  with Polars.
- ``PeriodArchiveProcessor`` sums the archives of a period's sub-periods.
"""

from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import polars as pl
import structlog

from visitarchive.core.datatable import RowCount
from visitarchive.core.metrics import GoalMetric, Metric, RowFactory
from visitarchive.core.periods import Period, PeriodType
from visitarchive.core.rollup import rollup_data_tables
from visitarchive.ingestion.log_loader import (
    CONVERSION_LOG_SCHEMA,
    VISIT_LOG_SCHEMA,
    conform_log_frame,
)

from .records import ArchiveRecordSet

logger = structlog.get_logger(__name__)

RowCursor = Iterator[Dict[str, Any]]


def visit_metric_expressions() -> List[pl.Expr]:
    """Per-group visit metrics, named after the MetricsRow columns"""
    actions = pl.col("visit_total_actions")
    return [
        pl.col("idvisitor").n_unique().alias(Metric.NB_UNIQ_VISITORS.value),
        pl.len().alias(Metric.NB_VISITS.value),
        actions.sum().alias(Metric.NB_ACTIONS.value),
        actions.max().alias(Metric.MAX_ACTIONS.value),
        pl.col("visit_total_time").sum().alias(Metric.SUM_VISIT_LENGTH.value),
        (actions == 1).sum().alias(Metric.BOUNCE_COUNT.value),
        (pl.col("visit_goal_converted") == 1).sum().alias(Metric.NB_VISITS_CONVERTED.value),
    ]


def conversion_metric_expressions() -> List[pl.Expr]:
    """Per-group goal metrics, named after the goal MetricsRow columns"""
    summed = [
        GoalMetric.REVENUE,
        GoalMetric.REVENUE_SUBTOTAL,
        GoalMetric.REVENUE_TAX,
        GoalMetric.REVENUE_SHIPPING,
        GoalMetric.REVENUE_DISCOUNT,
        GoalMetric.ITEMS,
    ]
    return [
        pl.len().alias(GoalMetric.NB_CONVERSIONS.value),
        pl.col("idvisit").n_unique().alias(GoalMetric.NB_VISITS_CONVERTED.value),
    ] + [pl.col(metric.value).sum().alias(metric.value) for metric in summed]


class ArchiveProcessor(RowFactory):
    """
    Base processor: empty rows and record collection for one site and period.
    """

    def __init__(self, period: Period, site_id: int = 1):
        self.period = period
        self.site_id = site_id
        self.records = ArchiveRecordSet.for_period(site_id, period)

    def insert_numeric_record(self, name: str, value: Union[int, float]) -> None:
        self.records.add_numeric(name, value)
        logger.debug("Archived numeric record", record=name, value=value, period=str(self.period))

    def insert_blob_record(self, name: str, blob: str) -> None:
        self.records.add_blob(name, blob)
        logger.debug("Archived blob record", record=name, size=len(blob), period=str(self.period))


class DayArchiveProcessor(ArchiveProcessor):
    """
    Processor over the raw logs of a single day.

    Example:
        processor = DayArchiveProcessor(Period.day(day), visits_df, conversions_df)
        for row in processor.query_visits_by_dimension(["referer_type"]):
            ...
    """

    def __init__(
        self,
        period: Period,
        visits: Optional[pl.DataFrame],
        conversions: Optional[pl.DataFrame] = None,
        site_id: int = 1,
    ):
        if period.period_type != PeriodType.DAY:
            raise ValueError(f"Day processor requires a day period, got {period}")
        super().__init__(period, site_id)
        self.visits = conform_log_frame(visits, VISIT_LOG_SCHEMA) if visits is not None else None
        self.conversions = (
            conform_log_frame(conversions, CONVERSION_LOG_SCHEMA) if conversions is not None else None
        )

    def query_visits_by_dimension(
        self,
        dimensions: Sequence[str],
        extra: Optional[List[pl.Expr]] = None,
    ) -> Optional[RowCursor]:
        """
        Visits grouped by the given dimensions, one dict per group.

        Args:
            dimensions: Log columns to group by
            extra: Additional per-group aggregations to select

        Returns:
            Row iterator, or None when no visit log is available
        """
        if self.visits is None:
            return None
        grouped = self.visits.group_by(list(dimensions), maintain_order=True).agg(
            visit_metric_expressions() + list(extra or [])
        )
        logger.debug("Queried visits", dimensions=list(dimensions), groups=len(grouped))
        return grouped.iter_rows(named=True)

    def query_conversions_by_dimension(self, dimensions: Sequence[str]) -> Optional[RowCursor]:
        """Conversions grouped by goal and the given dimensions, or None without a log"""
        if self.conversions is None:
            return None
        grouped = self.conversions.group_by(["idgoal"] + list(dimensions), maintain_order=True).agg(
            conversion_metric_expressions()
        )
        logger.debug("Queried conversions", dimensions=list(dimensions), groups=len(grouped))
        return grouped.iter_rows(named=True)


class PeriodArchiveProcessor(ArchiveProcessor):
    """
    Processor for a week, month or year, fed by the archives of its sub-periods.
    """

    def __init__(
        self,
        period: Period,
        sub_period_archives: Sequence[ArchiveRecordSet],
        site_id: int = 1,
    ):
        if period.period_type == PeriodType.DAY:
            raise ValueError("Days are archived from logs, not rolled up")
        super().__init__(period, site_id)
        self.sub_period_archives = list(sub_period_archives)

    def archive_data_table(
        self,
        record_names: Sequence[str],
        max_rows_level0: Optional[int] = None,
        max_rows_subtable: Optional[int] = None,
        sort_column: Union[str, Metric] = Metric.NB_VISITS,
    ) -> Dict[str, RowCount]:
        """
        Sum the named blob records over all sub-periods and archive the result.

        Returns:
            Pre-truncation row counts per record name
        """
        result = rollup_data_tables(
            record_names,
            [archive.blobs for archive in self.sub_period_archives],
            max_rows_level0=max_rows_level0,
            max_rows_subtable=max_rows_subtable,
            sort_column=sort_column,
        )
        for name, blob in result.blobs.items():
            self.insert_blob_record(name, blob)
        return result.counts
