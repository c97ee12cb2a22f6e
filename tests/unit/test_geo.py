"""
Unit Tests - Location Labels and City Coordinates
"""
from visitarchive.core.datatable import DataTable, DataTableRow
from visitarchive.core.geo import CityCoordinates, make_region_city_labels_unique


class TestUniqueLabels:
    """Tests for make_region_city_labels_unique"""

    def test_region_and_city_qualified(self):
        row = {"location_country": "fr", "location_region": "11", "location_city": "Paris", "nb_visits": 2}

        result = make_region_city_labels_unique(row)

        assert result["location_region"] == "11|fr"
        assert result["location_city"] == "Paris|11|fr"
        assert result["nb_visits"] == 2

    def test_input_not_modified(self):
        row = {"location_country": "fr", "location_region": "11", "location_city": "Paris"}

        make_region_city_labels_unique(row)

        assert row["location_region"] == "11"

    def test_separator_stripped_from_raw_values(self):
        row = {"location_country": "us", "location_region": "C|A", "location_city": "San|Jose"}

        result = make_region_city_labels_unique(row)

        assert result["location_region"] == "CA|us"
        assert result["location_city"] == "SanJose|CA|us"

    def test_unknown_locations_stay_empty(self):
        row = {"location_country": "us", "location_region": None, "location_city": None}

        result = make_region_city_labels_unique(row)

        assert result["location_region"] == ""
        assert result["location_city"] == ""

    def test_same_city_name_in_two_countries(self):
        paris_fr = make_region_city_labels_unique(
            {"location_country": "fr", "location_region": "11", "location_city": "Paris"}
        )
        paris_us = make_region_city_labels_unique(
            {"location_country": "us", "location_region": "TX", "location_city": "Paris"}
        )

        assert paris_fr["location_city"] != paris_us["location_city"]


class TestCityCoordinates:
    """Tests for CityCoordinates"""

    def test_first_seen_coordinates_win(self):
        coordinates = CityCoordinates()

        assert coordinates.remember(
            {"location_city": "Paris|11|fr", "location_latitude": 48.8566, "location_longitude": 2.3522}
        )
        assert not coordinates.remember(
            {"location_city": "Paris|11|fr", "location_latitude": 48.9, "location_longitude": 2.4}
        )

        assert coordinates.get("Paris|11|fr") == (48.8566, 2.3522)
        assert len(coordinates) == 1

    def test_empty_or_zero_coordinates_ignored(self):
        coordinates = CityCoordinates()

        assert not coordinates.remember({"location_city": "A", "location_latitude": 0.0, "location_longitude": 1.0})
        assert not coordinates.remember({"location_city": "A", "location_latitude": 1.0, "location_longitude": None})
        assert not coordinates.remember({"location_city": "", "location_latitude": 1.0, "location_longitude": 1.0})
        assert coordinates.remember({"location_city": "A", "location_latitude": 1.0, "location_longitude": 2.0})

        assert coordinates.get("A") == (1.0, 2.0)

    def test_annotate_rounds_coordinates(self):
        coordinates = CityCoordinates()
        coordinates.remember(
            {"location_city": "Paris|11|fr", "location_latitude": 48.8566, "location_longitude": 2.3522}
        )
        table = DataTable([DataTableRow(label="Paris|11|fr"), DataTableRow(label="Berlin|BE|de")])

        annotated = coordinates.annotate(table)

        assert annotated == 1
        assert table.get_row_from_label("Paris|11|fr").metadata == {"lat": 48.857, "long": 2.352}
        assert table.get_row_from_label("Berlin|BE|de").metadata == {}
