"""
Location Labels and City Coordinates

Region and city names are not unique across countries, so their report
labels carry the enclosing location after a separator. Coordinates seen for
a city are kept and attached to the city report as row metadata.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from .datatable import DataTable

LOCATION_SEPARATOR = "|"
GEOGRAPHIC_COORD_PRECISION = 3

COUNTRY_COLUMN = "location_country"
REGION_COLUMN = "location_region"
CITY_COLUMN = "location_city"
LATITUDE_COLUMN = "location_latitude"
LONGITUDE_COLUMN = "location_longitude"


def make_region_city_labels_unique(row: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Copy of a row with unique region and city labels.

    The separator is stripped from the raw values first. Unknown (empty)
    regions and cities are left empty so they share one bucket.
    """
    unique = dict(row)
    for column in (REGION_COLUMN, COUNTRY_COLUMN, CITY_COLUMN):
        value = unique.get(column)
        unique[column] = "" if value is None else str(value).replace(LOCATION_SEPARATOR, "")

    if unique[REGION_COLUMN]:
        unique[REGION_COLUMN] = unique[REGION_COLUMN] + LOCATION_SEPARATOR + unique[COUNTRY_COLUMN]
    if unique[CITY_COLUMN]:
        unique[CITY_COLUMN] = unique[CITY_COLUMN] + LOCATION_SEPARATOR + unique[REGION_COLUMN]
    return unique


class CityCoordinates:
    """
    First-seen latitude/longitude per city label.

    Example:
        coordinates = CityCoordinates()
        coordinates.remember(row)
        coordinates.annotate(city_table)
    """

    def __init__(self, precision: int = GEOGRAPHIC_COORD_PRECISION):
        self.precision = precision
        self._coordinates: Dict[str, Tuple[float, float]] = {}

    def __len__(self) -> int:
        return len(self._coordinates)

    def get(self, city_label: str) -> Optional[Tuple[float, float]]:
        return self._coordinates.get(city_label)

    def remember(self, row: Mapping[str, Any]) -> bool:
        """
        Record the row's coordinates for its city unless already known.

        Rows without a city or with an empty/zero latitude or longitude are
        ignored. Returns True when a new pair was stored.
        """
        city = row.get(CITY_COLUMN)
        latitude = row.get(LATITUDE_COLUMN)
        longitude = row.get(LONGITUDE_COLUMN)
        if not city or not latitude or not longitude:
            return False
        if city in self._coordinates:
            return False
        self._coordinates[city] = (float(latitude), float(longitude))
        return True

    def annotate(self, city_table: DataTable) -> int:
        """Attach rounded ``lat``/``long`` metadata to known cities; returns rows annotated"""
        annotated = 0
        for row in city_table:
            coordinates = self._coordinates.get(row.label)
            if coordinates is None:
                continue
            latitude, longitude = coordinates
            row.metadata["lat"] = round(latitude, self.precision)
            row.metadata["long"] = round(longitude, self.precision)
            annotated += 1
        return annotated
