"""
Period Roll-up

Sums the report blobs archived for the sub-periods of a period (the days
of a week, the months of a year, ...) into one report per record name,
without going back to the raw logs.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence, Union

import structlog

from .datatable import DataTable, RowCount
from .metrics import Metric

logger = structlog.get_logger(__name__)


@dataclass
class RollupResult:
    """Summed blobs and their pre-truncation row counts, keyed by record name"""
    blobs: Dict[str, str] = field(default_factory=dict)
    counts: Dict[str, RowCount] = field(default_factory=dict)


def sum_blobs(blobs: Iterable[Optional[str]]) -> DataTable:
    """Deserialize and sum report blobs; missing ones contribute nothing"""
    total = DataTable()
    for blob in blobs:
        if not blob:
            continue
        total.sum_table(DataTable.deserialize(blob))
    return total


def rollup_data_tables(
    record_names: Sequence[str],
    sub_period_archives: Sequence[Mapping[str, str]],
    max_rows_level0: Optional[int] = None,
    max_rows_subtable: Optional[int] = None,
    sort_column: Union[str, Metric] = Metric.NB_VISITS,
) -> RollupResult:
    """
    Roll up report blobs over sub-periods.

    Row counts are taken on the summed table before truncation, so
    distinct-count metrics derived from them are not capped by the limits.

    Args:
        record_names: Blob record names to sum
        sub_period_archives: One name -> blob mapping per sub-period
        max_rows_level0: Top-level truncation limit
        max_rows_subtable: Subtable truncation limit
        sort_column: Column ranked by before truncation

    Returns:
        RollupResult with a blob for every name found at least once
    """
    result = RollupResult()
    for name in record_names:
        blobs = [archive.get(name) for archive in sub_period_archives]
        found = sum(1 for blob in blobs if blob)
        if not found:
            logger.debug("No sub-period archive holds record", record=name)
            result.counts[name] = RowCount()
            continue

        table = sum_blobs(blobs)
        result.counts[name] = table.count_rows()
        result.blobs[name] = table.serialize(max_rows_level0, max_rows_subtable, sort_column)
        logger.debug(
            "Rolled up record",
            record=name,
            sub_periods=found,
            level0=result.counts[name].level0,
            recursive=result.counts[name].recursive,
        )
    return result
