"""
Unit Tests - Archive Runner and Processors
"""
from datetime import timedelta

import polars as pl
import pytest
import structlog

from visitarchive.archiving.plugins import UserCountryArchiver
from visitarchive.archiving.processor import DayArchiveProcessor, PeriodArchiveProcessor
from visitarchive.archiving.records import ArchiveRecordSet
from visitarchive.archiving.runner import ArchiveRunner
from visitarchive.core.datatable import DataTable
from visitarchive.core.exceptions import DuplicateRecordError
from visitarchive.core.metrics import Metric
from visitarchive.core.periods import Period, PeriodType


class TestDayArchiveProcessor:
    """Tests for DayArchiveProcessor"""

    def test_requires_day_period(self, archive_day, sample_visits_df):
        with pytest.raises(ValueError):
            DayArchiveProcessor(Period.containing(PeriodType.MONTH, archive_day), sample_visits_df)

    def test_query_visits(self, day_processor):
        rows = list(day_processor.query_visits_by_dimension(["referer_type"]))

        assert [row["referer_type"] for row in rows] == ["2", "3", "6", "1"]
        search = rows[0]
        assert search["nb_visits"] == 3
        assert search["nb_uniq_visitors"] == 3
        assert search["bounce_count"] == 1
        assert search["nb_visits_converted"] == 1

    def test_query_visits_extra_columns(self, day_processor):
        rows = list(day_processor.query_visits_by_dimension(
            ["location_country"],
            extra=[pl.col("visit_total_time").min().alias("shortest")],
        ))

        assert rows[0]["location_country"] == "fr"
        assert rows[0]["shortest"] == 10

    def test_query_conversions_grouped_by_goal(self, day_processor):
        rows = list(day_processor.query_conversions_by_dimension(["referer_type"]))

        by_key = {(row["idgoal"], row["referer_type"]): row for row in rows}
        assert by_key[(0, "3")]["revenue"] == 99.5
        assert by_key[(0, "3")]["items"] == 2
        assert by_key[(-1, "3")]["nb_conversions"] == 1

    def test_missing_logs(self, archive_day):
        processor = DayArchiveProcessor(Period.day(archive_day), None)

        assert processor.query_visits_by_dimension(["referer_type"]) is None
        assert processor.query_conversions_by_dimension(["referer_type"]) is None

    def test_duplicate_record_rejected(self, day_processor):
        day_processor.insert_numeric_record("Referers_distinctKeywords", 2)

        with pytest.raises(DuplicateRecordError):
            day_processor.insert_blob_record("Referers_distinctKeywords", "{}")


class TestPeriodArchiveProcessor:
    """Tests for PeriodArchiveProcessor"""

    def test_rejects_day(self, archive_day):
        with pytest.raises(ValueError):
            PeriodArchiveProcessor(Period.day(archive_day), [])


class TestArchiveRunner:
    """Tests for ArchiveRunner"""

    def test_archive_day(self, archive_day, sample_visits_df, sample_conversions_df, archiving_settings):
        records = ArchiveRunner(archiving_settings).archive_day(
            Period.day(archive_day), sample_visits_df, sample_conversions_df
        )

        assert isinstance(records, ArchiveRecordSet)
        assert records.site_id == 1
        assert records.date1 == records.date2 == archive_day
        assert records.record_count == 14
        assert records.get_numeric("UserCountry_distinctCountries") == 3

    def test_archive_week_from_days(self, archive_day, sample_visits_df, sample_conversions_df, archiving_settings):
        runner = ArchiveRunner(archiving_settings)
        days = [
            runner.archive_day(
                Period.day(archive_day + timedelta(days=offset)), sample_visits_df, sample_conversions_df
            )
            for offset in range(7)
        ]

        week = runner.archive_period(Period.containing(PeriodType.WEEK, archive_day), days)

        assert week.period_type == PeriodType.WEEK
        assert week.get_numeric("Referers_distinctSearchEngines") == 2
        types = DataTable.deserialize(week.get_blob("Referers_type"))
        assert sum(row.metrics[Metric.NB_VISITS] for row in types) == 49

    def test_site_id_override(self, archive_day, sample_visits_df, archiving_settings):
        records = ArchiveRunner(archiving_settings).archive_day(Period.day(archive_day), sample_visits_df, site_id=7)

        assert records.site_id == 7

    def test_selected_archivers_only(self, archive_day, sample_visits_df, archiving_settings):
        runner = ArchiveRunner(archiving_settings, archivers=[UserCountryArchiver])
        records = runner.archive_day(Period.day(archive_day), sample_visits_df)

        assert set(records.numeric) == {"UserCountry_distinctCountries"}

    def test_archivers_log_with_site_and_period(self, archive_day, sample_visits_df, archiving_settings):
        seen = []

        class RecordingArchiver(UserCountryArchiver):
            def archive_day(self):
                seen.append(structlog.contextvars.get_contextvars())
                super().archive_day()

        runner = ArchiveRunner(archiving_settings, archivers=[RecordingArchiver])
        runner.archive_day(Period.day(archive_day), sample_visits_df, site_id=4)

        assert seen[0]["site_id"] == 4
        assert seen[0]["period"] == str(Period.day(archive_day))
        assert "site_id" not in structlog.contextvars.get_contextvars()
