"""
Referrers Reports

Breaks visits and conversions down by how visitors arrived: search engine
and keyword, referring website and URL, campaign and campaign keyword, and
the referrer type itself.
"""

import hashlib
from typing import Any, Dict, Mapping, Optional, Set

import structlog

from visitarchive.config.settings import ArchivingSettings
from visitarchive.core.accumulator import AccumulatorTable, PivotTable
from visitarchive.core.classifier import RefererType, classify_referer_type
from visitarchive.core.datatable import DataTable
from visitarchive.core.enrichment import enrich_pivot_with_conversions, enrich_with_conversions
from visitarchive.core.exceptions import MalformedRowError
from visitarchive.core.metrics import Metric

from ..processor import ArchiveProcessor, RowCursor
from .base import ReportArchiver

logger = structlog.get_logger(__name__)

KEYWORD_NOT_DEFINED = "Keyword not defined"


def _label(value: Any) -> str:
    return "" if value is None else str(value)


def _keyword(value: Any) -> str:
    """Keyword label, "" for a missing keyword, "0" included"""
    keyword = _label(value)
    return "" if keyword == "0" else keyword


def url_fingerprint(url: str) -> str:
    """Short content hash identifying a referrer URL"""
    return hashlib.md5(url.encode("utf-8")).hexdigest()[:10]


class ReferrersArchiver(ReportArchiver):
    """
    Archives the referrer reports of a day or rolls them up for a period.

    Example:
        archiver = ReferrersArchiver(DayArchiveProcessor(period, visits, conversions))
        archiver.archive_day()
        archiver.processor.records
    """

    KEYWORDS_BY_SEARCH_ENGINE_RECORD_NAME = "Referers_keywordBySearchEngine"
    SEARCH_ENGINE_BY_KEYWORD_RECORD_NAME = "Referers_searchEngineByKeyword"
    KEYWORD_BY_CAMPAIGN_RECORD_NAME = "Referers_keywordByCampaign"
    URL_BY_WEBSITE_RECORD_NAME = "Referers_urlByWebsite"
    REFERER_TYPE_RECORD_NAME = "Referers_type"

    METRIC_DISTINCT_SEARCH_ENGINE_RECORD_NAME = "Referers_distinctSearchEngines"
    METRIC_DISTINCT_KEYWORD_RECORD_NAME = "Referers_distinctKeywords"
    METRIC_DISTINCT_CAMPAIGN_RECORD_NAME = "Referers_distinctCampaigns"
    METRIC_DISTINCT_WEBSITE_RECORD_NAME = "Referers_distinctWebsites"
    METRIC_DISTINCT_URLS_RECORD_NAME = "Referers_distinctWebsitesUrls"

    VISIT_DIMENSIONS = ("referer_type", "referer_name", "referer_keyword", "referer_url")
    CONVERSION_DIMENSIONS = ("referer_type", "referer_name", "referer_keyword")

    # distinct-count record -> (table it is counted on, "level0" or "recursive")
    PERIOD_COUNT_SOURCES = {
        METRIC_DISTINCT_SEARCH_ENGINE_RECORD_NAME: (KEYWORDS_BY_SEARCH_ENGINE_RECORD_NAME, "level0"),
        METRIC_DISTINCT_KEYWORD_RECORD_NAME: (SEARCH_ENGINE_BY_KEYWORD_RECORD_NAME, "level0"),
        METRIC_DISTINCT_CAMPAIGN_RECORD_NAME: (KEYWORD_BY_CAMPAIGN_RECORD_NAME, "level0"),
        METRIC_DISTINCT_WEBSITE_RECORD_NAME: (URL_BY_WEBSITE_RECORD_NAME, "level0"),
        METRIC_DISTINCT_URLS_RECORD_NAME: (URL_BY_WEBSITE_RECORD_NAME, "recursive"),
    }

    def __init__(self, processor: ArchiveProcessor, settings: Optional[ArchivingSettings] = None):
        super().__init__(processor, settings)
        self.column_to_sort_by = Metric.NB_VISITS
        self.max_rows_level0 = self.settings.maximum_rows_referers
        self.max_rows_subtable = self.settings.maximum_rows_subtable_referers

        self.metrics_by_type = AccumulatorTable(processor)
        self.metrics_by_search_engine = AccumulatorTable(processor)
        self.metrics_by_keyword = AccumulatorTable(processor)
        self.metrics_by_search_engine_and_keyword = PivotTable(processor)
        self.metrics_by_keyword_and_search_engine = PivotTable(processor)
        self.metrics_by_website = AccumulatorTable(processor)
        self.metrics_by_website_and_url = PivotTable(processor)
        self.metrics_by_campaign = AccumulatorTable(processor)
        self.metrics_by_campaign_and_keyword = PivotTable(processor)
        self.distinct_urls: Set[str] = set()

    # =========================================================================
    # DAY
    # =========================================================================

    def archive_day(self) -> None:
        processor = self._day_processor()
        self.aggregate_from_visits(processor.query_visits_by_dimension(self.VISIT_DIMENSIONS))
        self.aggregate_from_conversions(
            processor.query_conversions_by_dimension(self.CONVERSION_DIMENSIONS)
        )
        self.record_day_reports()

    def aggregate_from_visits(self, cursor: Optional[RowCursor]) -> None:
        if cursor is None:
            return
        rows = 0
        for row in cursor:
            self.record_visit(row)
            rows += 1
        logger.debug("Aggregated referrer visits", rows=rows)

    def record_visit(self, row: Mapping[str, Any]) -> None:
        """
        Add one grouped visit row to every referrer table it belongs to.

        Raises:
            MalformedRowError: If the referrer type is not recognized
        """
        row = dict(row)
        referer_type = classify_referer_type(row.get("referer_type"))

        if referer_type == RefererType.SEARCH_ENGINE:
            self._aggregate_visit_by_search_engine(row)
        elif referer_type == RefererType.WEBSITE:
            self._aggregate_visit_by_website(row)
        elif referer_type == RefererType.CAMPAIGN:
            self._aggregate_visit_by_campaign(row)
        elif referer_type == RefererType.DIRECT_ENTRY:
            # direct entries only show up in the type table
            pass
        else:
            raise MalformedRowError(
                f"Unexpected referer_type = {row.get('referer_type')!r}", row=row
            )

        self.metrics_by_type.sum_metrics(str(referer_type.value), row)

    def _aggregate_visit_by_search_engine(self, row: Dict[str, Any]) -> None:
        name = _label(row.get("referer_name"))
        keyword = _keyword(row.get("referer_keyword")) or KEYWORD_NOT_DEFINED

        self.metrics_by_search_engine.sum_metrics(name, row)
        self.metrics_by_keyword.sum_metrics(keyword, row)
        self.metrics_by_search_engine_and_keyword.sum_metrics(name, keyword, row)
        self.metrics_by_keyword_and_search_engine.sum_metrics(keyword, name, row)

    def _aggregate_visit_by_website(self, row: Dict[str, Any]) -> None:
        name = _label(row.get("referer_name"))
        url = _label(row.get("referer_url"))

        self.metrics_by_website.sum_metrics(name, row)
        self.metrics_by_website_and_url.sum_metrics(name, url, row)
        self.distinct_urls.add(url_fingerprint(url))

    def _aggregate_visit_by_campaign(self, row: Dict[str, Any]) -> None:
        name = _label(row.get("referer_name"))
        keyword = _keyword(row.get("referer_keyword"))

        if keyword:
            self.metrics_by_campaign_and_keyword.sum_metrics(name, keyword, row)
        self.metrics_by_campaign.sum_metrics(name, row)

    def aggregate_from_conversions(self, cursor: Optional[RowCursor]) -> None:
        if cursor is None:
            return
        rows = skipped = 0
        for row in cursor:
            rows += 1
            if not self.record_conversion(row):
                skipped += 1

        enrich_with_conversions(self.metrics_by_type)
        enrich_with_conversions(self.metrics_by_search_engine)
        enrich_with_conversions(self.metrics_by_keyword)
        enrich_with_conversions(self.metrics_by_website)
        enrich_with_conversions(self.metrics_by_campaign)
        enrich_pivot_with_conversions(self.metrics_by_campaign_and_keyword)
        logger.debug("Aggregated referrer conversions", rows=rows, skipped=skipped)

    def record_conversion(self, row: Mapping[str, Any]) -> bool:
        """
        Add one grouped conversion row to the goal rows of its referrer buckets.

        The referrer type of a conversion can be user supplied, so rows with
        an unrecognized type are dropped instead of failing the archive.

        Returns:
            False if the row was skipped
        """
        row = dict(row)
        referer_type = classify_referer_type(row.get("referer_type"))
        id_goal = int(row["idgoal"])

        if referer_type == RefererType.SEARCH_ENGINE:
            self._aggregate_conversion_by_search_engine(row, id_goal)
        elif referer_type == RefererType.WEBSITE:
            self._aggregate_conversion_by_website(row, id_goal)
        elif referer_type == RefererType.CAMPAIGN:
            self._aggregate_conversion_by_campaign(row, id_goal)
        elif referer_type == RefererType.DIRECT_ENTRY:
            pass
        else:
            logger.debug(
                "Skipping conversion with unrecognized referer type",
                referer_type=row.get("referer_type"),
                idgoal=id_goal,
            )
            return False

        self.metrics_by_type.sum_goal_metrics(str(referer_type.value), id_goal, row)
        return True

    def _aggregate_conversion_by_search_engine(self, row: Dict[str, Any], id_goal: int) -> None:
        name = _label(row.get("referer_name"))
        keyword = _keyword(row.get("referer_keyword")) or KEYWORD_NOT_DEFINED

        self.metrics_by_search_engine.sum_goal_metrics(name, id_goal, row)
        self.metrics_by_keyword.sum_goal_metrics(keyword, id_goal, row)

    def _aggregate_conversion_by_website(self, row: Dict[str, Any], id_goal: int) -> None:
        self.metrics_by_website.sum_goal_metrics(_label(row.get("referer_name")), id_goal, row)

    def _aggregate_conversion_by_campaign(self, row: Dict[str, Any], id_goal: int) -> None:
        name = _label(row.get("referer_name"))
        keyword = _keyword(row.get("referer_keyword"))

        if keyword:
            self.metrics_by_campaign_and_keyword.sum_goal_metrics(name, keyword, id_goal, row)
        self.metrics_by_campaign.sum_goal_metrics(name, id_goal, row)

    def record_day_reports(self) -> None:
        self.record_day_numeric()
        self.record_day_blobs()

    def record_day_numeric(self) -> None:
        numeric_records = {
            self.METRIC_DISTINCT_SEARCH_ENGINE_RECORD_NAME: len(self.metrics_by_search_engine_and_keyword),
            self.METRIC_DISTINCT_KEYWORD_RECORD_NAME: len(self.metrics_by_keyword_and_search_engine),
            self.METRIC_DISTINCT_CAMPAIGN_RECORD_NAME: len(self.metrics_by_campaign),
            self.METRIC_DISTINCT_WEBSITE_RECORD_NAME: len(self.metrics_by_website),
            self.METRIC_DISTINCT_URLS_RECORD_NAME: len(self.distinct_urls),
        }
        for name, value in numeric_records.items():
            self.processor.insert_numeric_record(name, value)

    def record_day_blobs(self) -> None:
        table = DataTable.from_accumulator(self.metrics_by_type)
        self.processor.insert_blob_record(self.REFERER_TYPE_RECORD_NAME, table.serialize())

        blob_records = {
            self.KEYWORDS_BY_SEARCH_ENGINE_RECORD_NAME: DataTable.from_pivot(
                self.metrics_by_search_engine, self.metrics_by_search_engine_and_keyword
            ),
            self.SEARCH_ENGINE_BY_KEYWORD_RECORD_NAME: DataTable.from_pivot(
                self.metrics_by_keyword, self.metrics_by_keyword_and_search_engine
            ),
            self.KEYWORD_BY_CAMPAIGN_RECORD_NAME: DataTable.from_pivot(
                self.metrics_by_campaign, self.metrics_by_campaign_and_keyword
            ),
            self.URL_BY_WEBSITE_RECORD_NAME: DataTable.from_pivot(
                self.metrics_by_website, self.metrics_by_website_and_url
            ),
        }
        for name, table in blob_records.items():
            blob = table.serialize(self.max_rows_level0, self.max_rows_subtable, self.column_to_sort_by)
            self.processor.insert_blob_record(name, blob)

    # =========================================================================
    # PERIOD
    # =========================================================================

    def archive_period(self) -> None:
        processor = self._period_processor()
        data_tables_to_sum = [
            self.REFERER_TYPE_RECORD_NAME,
            self.KEYWORDS_BY_SEARCH_ENGINE_RECORD_NAME,
            self.SEARCH_ENGINE_BY_KEYWORD_RECORD_NAME,
            self.KEYWORD_BY_CAMPAIGN_RECORD_NAME,
            self.URL_BY_WEBSITE_RECORD_NAME,
        ]
        name_to_count = processor.archive_data_table(
            data_tables_to_sum,
            self.max_rows_level0,
            self.max_rows_subtable,
            self.column_to_sort_by,
        )

        for name, (table_name, count_type) in self.PERIOD_COUNT_SOURCES.items():
            count = name_to_count[table_name]
            if count_type == "recursive":
                value = count.recursive - count.level0
            else:
                value = count.level0
            processor.insert_numeric_record(name, value)
