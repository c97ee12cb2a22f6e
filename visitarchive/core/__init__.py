"""
Aggregation Core

Row classification, metric accumulation, conversion enrichment,
hierarchical report tables and period roll-up.
"""
from .accumulator import AccumulatorTable, PivotTable
from .classifier import RefererType, classify_referer_type
from .datatable import DataTable, DataTableRow, RowCount
from .enrichment import enrich_pivot_with_conversions, enrich_with_conversions
from .exceptions import (
    ArchiveNotFoundError,
    ArchivingError,
    BlobFormatError,
    DuplicateRecordError,
    MalformedRowError,
)
from .geo import CityCoordinates, make_region_city_labels_unique
from .metrics import GoalMetric, Metric, MetricsRow, RowFactory
from .periods import Period, PeriodType
from .rollup import RollupResult, rollup_data_tables

__all__ = [
    "AccumulatorTable",
    "PivotTable",
    "RefererType",
    "classify_referer_type",
    "DataTable",
    "DataTableRow",
    "RowCount",
    "enrich_with_conversions",
    "enrich_pivot_with_conversions",
    "ArchivingError",
    "ArchiveNotFoundError",
    "BlobFormatError",
    "DuplicateRecordError",
    "MalformedRowError",
    "CityCoordinates",
    "make_region_city_labels_unique",
    "GoalMetric",
    "Metric",
    "MetricsRow",
    "RowFactory",
    "Period",
    "PeriodType",
    "RollupResult",
    "rollup_data_tables",
]
