"""
Unit Tests - Visitor Location Reports
"""
from datetime import timedelta

import pytest

from visitarchive.archiving.plugins.user_country import UserCountryArchiver
from visitarchive.archiving.processor import DayArchiveProcessor, PeriodArchiveProcessor
from visitarchive.config.settings import ArchivingSettings
from visitarchive.core.datatable import DataTable
from visitarchive.core.metrics import Metric
from visitarchive.core.periods import Period, PeriodType


@pytest.fixture
def day_records(day_processor, archiving_settings):
    UserCountryArchiver(day_processor, archiving_settings).archive_day()
    return day_processor.records


def load(records, name):
    return DataTable.deserialize(records.get_blob(name))


class TestUserCountryDay:
    """Tests for day archiving"""

    def test_country_table(self, day_records):
        countries = load(day_records, "UserCountry_country")

        assert countries.labels == ["fr", "us", "de"]
        assert countries.get_row_from_label("fr").metrics[Metric.NB_VISITS] == 3
        assert day_records.get_numeric("UserCountry_distinctCountries") == 3

    def test_conversions_enriched(self, day_records):
        countries = load(day_records, "UserCountry_country")

        france = countries.get_row_from_label("fr").metrics
        assert france[Metric.NB_CONVERSIONS] == 2
        assert france[Metric.REVENUE] == 15
        usa = countries.get_row_from_label("us").metrics
        assert usa[Metric.NB_CONVERSIONS] == 1
        assert usa[Metric.REVENUE] == 99.5

    def test_region_labels_carry_country(self, day_records):
        regions = load(day_records, "UserCountry_region")

        assert regions.labels == ["11|fr", "CA|us", "BE|de", ""]

    def test_city_coordinates(self, day_records):
        cities = load(day_records, "UserCountry_city")

        assert cities.get_row_from_label("Paris|11|fr").metadata == {"lat": 48.857, "long": 2.352}
        assert cities.get_row_from_label("San Francisco|CA|us").metadata == {"lat": 37.775, "long": -122.419}
        assert cities.get_row_from_label("Los Angeles|CA|us").metadata == {}
        assert cities.get_row_from_label("").metadata == {}

    def test_city_truncation(self, day_processor):
        UserCountryArchiver(day_processor, ArchivingSettings(maximum_rows_standard=2)).archive_day()

        cities = load(day_processor.records, "UserCountry_city")
        assert cities.labels == ["Paris|11|fr", "Berlin|BE|de"]
        assert cities.summary_row.metrics[Metric.NB_VISITS] == 3
        # the country table is never truncated
        assert len(load(day_processor.records, "UserCountry_country")) == 3


class TestUserCountryPeriod:
    """Tests for period roll-up"""

    @pytest.fixture
    def week_records(self, archive_day, sample_visits_df, sample_conversions_df, archiving_settings):
        days = []
        for offset in range(3):
            processor = DayArchiveProcessor(
                Period.day(archive_day + timedelta(days=offset)), sample_visits_df, sample_conversions_df
            )
            UserCountryArchiver(processor, archiving_settings).archive_day()
            days.append(processor.records)

        week = PeriodArchiveProcessor(Period.containing(PeriodType.WEEK, archive_day), days)
        UserCountryArchiver(week, archiving_settings).archive_period()
        return week.records

    def test_tables_summed(self, week_records):
        countries = load(week_records, "UserCountry_country")

        assert countries.get_row_from_label("fr").metrics[Metric.NB_VISITS] == 9
        assert week_records.get_numeric("UserCountry_distinctCountries") == 3

    def test_city_metadata_survives_roll_up(self, week_records):
        paris = load(week_records, "UserCountry_city").get_row_from_label("Paris|11|fr")

        assert paris.metrics[Metric.NB_VISITS] == 9
        assert paris.metadata == {"lat": 48.857, "long": 2.352}
