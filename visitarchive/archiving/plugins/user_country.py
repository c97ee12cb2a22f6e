"""
Visitor Location Reports

Country, region and city reports. City rows carry the coordinates first
seen for the city as metadata.
"""

from typing import Any, Dict, Mapping, Optional

import polars as pl
import structlog

from visitarchive.config.settings import ArchivingSettings
from visitarchive.core.accumulator import AccumulatorTable
from visitarchive.core.datatable import DataTable
from visitarchive.core.enrichment import enrich_with_conversions
from visitarchive.core.geo import (
    CITY_COLUMN,
    COUNTRY_COLUMN,
    LATITUDE_COLUMN,
    LONGITUDE_COLUMN,
    REGION_COLUMN,
    CityCoordinates,
    make_region_city_labels_unique,
)
from visitarchive.core.metrics import Metric

from ..processor import ArchiveProcessor, RowCursor
from .base import ReportArchiver

logger = structlog.get_logger(__name__)


class UserCountryArchiver(ReportArchiver):
    """
    Archives the visitor location reports of a day or rolls them up for a period.
    """

    VISITS_BY_COUNTRY_RECORD_NAME = "UserCountry_country"
    VISITS_BY_REGION_RECORD_NAME = "UserCountry_region"
    VISITS_BY_CITY_RECORD_NAME = "UserCountry_city"
    DISTINCT_COUNTRIES_METRIC = "UserCountry_distinctCountries"

    DIMENSIONS = (COUNTRY_COLUMN, REGION_COLUMN, CITY_COLUMN)

    def __init__(self, processor: ArchiveProcessor, settings: Optional[ArchivingSettings] = None):
        super().__init__(processor, settings)
        self.maximum_rows = self.settings.maximum_rows_standard
        self.metrics_by_dimension: Dict[str, AccumulatorTable] = {
            dimension: AccumulatorTable(processor) for dimension in self.DIMENSIONS
        }
        self.city_coordinates = CityCoordinates()

    # =========================================================================
    # DAY
    # =========================================================================

    def archive_day(self) -> None:
        processor = self._day_processor()
        self.aggregate_from_visits(
            processor.query_visits_by_dimension(
                self.DIMENSIONS,
                extra=[
                    pl.col(LATITUDE_COLUMN).max().alias(LATITUDE_COLUMN),
                    pl.col(LONGITUDE_COLUMN).max().alias(LONGITUDE_COLUMN),
                ],
            )
        )
        self.aggregate_from_conversions(processor.query_conversions_by_dimension(self.DIMENSIONS))
        self.record_day_reports()

    def aggregate_from_visits(self, cursor: Optional[RowCursor]) -> None:
        if cursor is None:
            return
        for row in cursor:
            self.record_visit(row)

    def record_visit(self, row: Mapping[str, Any]) -> None:
        row = make_region_city_labels_unique(row)
        self.city_coordinates.remember(row)
        for dimension, table in self.metrics_by_dimension.items():
            table.sum_metrics(row[dimension], row)

    def aggregate_from_conversions(self, cursor: Optional[RowCursor]) -> None:
        if cursor is None:
            return
        for row in cursor:
            self.record_conversion(row)

        for table in self.metrics_by_dimension.values():
            enrich_with_conversions(table)

    def record_conversion(self, row: Mapping[str, Any]) -> None:
        row = make_region_city_labels_unique(row)
        id_goal = int(row["idgoal"])
        for dimension, table in self.metrics_by_dimension.items():
            table.sum_goal_metrics(row[dimension], id_goal, row)

    def record_day_reports(self) -> None:
        table_country = DataTable.from_accumulator(self.metrics_by_dimension[COUNTRY_COLUMN])
        self.processor.insert_blob_record(self.VISITS_BY_COUNTRY_RECORD_NAME, table_country.serialize())
        self.processor.insert_numeric_record(self.DISTINCT_COUNTRIES_METRIC, len(table_country))

        table_region = DataTable.from_accumulator(self.metrics_by_dimension[REGION_COLUMN])
        self.processor.insert_blob_record(
            self.VISITS_BY_REGION_RECORD_NAME,
            table_region.serialize(self.maximum_rows, self.maximum_rows, Metric.NB_VISITS),
        )

        table_city = DataTable.from_accumulator(self.metrics_by_dimension[CITY_COLUMN])
        annotated = self.city_coordinates.annotate(table_city)
        self.processor.insert_blob_record(
            self.VISITS_BY_CITY_RECORD_NAME,
            table_city.serialize(self.maximum_rows, self.maximum_rows, Metric.NB_VISITS),
        )
        logger.debug(
            "Recorded location reports",
            countries=len(table_country),
            regions=len(table_region),
            cities=len(table_city),
            cities_with_coordinates=annotated,
        )

    # =========================================================================
    # PERIOD
    # =========================================================================

    def archive_period(self) -> None:
        processor = self._period_processor()
        name_to_count = processor.archive_data_table([self.VISITS_BY_COUNTRY_RECORD_NAME])
        processor.archive_data_table(
            [self.VISITS_BY_REGION_RECORD_NAME, self.VISITS_BY_CITY_RECORD_NAME],
            self.maximum_rows,
            self.maximum_rows,
            Metric.NB_VISITS,
        )
        processor.insert_numeric_record(
            self.DISTINCT_COUNTRIES_METRIC,
            name_to_count[self.VISITS_BY_COUNTRY_RECORD_NAME].level0,
        )
