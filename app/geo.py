"""Geographic helpers: locations, great-circle distance, and city lookup.

Provides ~50 major US freight cities with lat/lng coordinates so search
requests can name a city ("Dallas, TX", "dallas tx", "Dallas") instead of
sending raw coordinates.
"""

import math
from typing import Optional

from pydantic import BaseModel

EARTH_RADIUS_MILES = 3959.0


class Location(BaseModel):
    """A point on the map with its human-readable city and state."""

    city: str = ""
    state: str = ""
    lat: float
    lng: float
    address: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.city}, {self.state}" if self.city else f"({self.lat:.3f}, {self.lng:.3f})"


def distance_miles(a: Location, b: Location) -> float:
    """Haversine distance between two locations in miles, unrounded."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_MILES * c


# ---------------------------------------------------------------------------
# City coordinates: ~50 major US freight hubs
# ---------------------------------------------------------------------------

CITY_COORDS: dict[str, tuple[float, float]] = {
    "Atlanta, GA": (33.749, -84.388),
    "Austin, TX": (30.267, -97.743),
    "Baltimore, MD": (39.290, -76.612),
    "Birmingham, AL": (33.521, -86.802),
    "Boise, ID": (43.615, -116.202),
    "Boston, MA": (42.360, -71.059),
    "Buffalo, NY": (42.887, -78.879),
    "Charlotte, NC": (35.227, -80.843),
    "Chicago, IL": (41.878, -87.630),
    "Cincinnati, OH": (39.103, -84.512),
    "Cleveland, OH": (41.500, -81.694),
    "Columbus, OH": (39.961, -82.999),
    "Dallas, TX": (32.777, -96.797),
    "Denver, CO": (39.739, -104.990),
    "Des Moines, IA": (41.586, -93.625),
    "Detroit, MI": (42.331, -83.046),
    "El Paso, TX": (31.762, -106.485),
    "Fort Worth, TX": (32.755, -97.331),
    "Fresno, CA": (36.737, -119.787),
    "Houston, TX": (29.760, -95.370),
    "Indianapolis, IN": (39.768, -86.158),
    "Jacksonville, FL": (30.332, -81.656),
    "Kansas City, MO": (39.100, -94.578),
    "Laredo, TX": (27.506, -99.507),
    "Las Vegas, NV": (36.169, -115.140),
    "Little Rock, AR": (34.746, -92.290),
    "Los Angeles, CA": (34.052, -118.244),
    "Louisville, KY": (38.253, -85.759),
    "Memphis, TN": (35.150, -90.049),
    "Miami, FL": (25.762, -80.192),
    "Milwaukee, WI": (43.039, -87.907),
    "Minneapolis, MN": (44.978, -93.265),
    "Nashville, TN": (36.163, -86.781),
    "New Orleans, LA": (29.951, -90.072),
    "New York, NY": (40.713, -74.006),
    "Newark, NJ": (40.736, -74.172),
    "Norfolk, VA": (36.851, -76.286),
    "Oklahoma City, OK": (35.468, -97.522),
    "Omaha, NE": (41.257, -95.934),
    "Orlando, FL": (28.538, -81.379),
    "Philadelphia, PA": (39.953, -75.164),
    "Phoenix, AZ": (33.449, -112.074),
    "Pittsburgh, PA": (40.441, -79.996),
    "Portland, OR": (45.505, -122.675),
    "Raleigh, NC": (35.780, -78.639),
    "Richmond, VA": (37.541, -77.436),
    "Sacramento, CA": (38.582, -121.494),
    "Salt Lake City, UT": (40.761, -111.891),
    "San Antonio, TX": (29.425, -98.494),
    "San Diego, CA": (32.716, -117.161),
    "San Francisco, CA": (37.775, -122.419),
    "Savannah, GA": (32.081, -81.091),
    "Seattle, WA": (47.606, -122.332),
    "St. Louis, MO": (38.627, -90.199),
    "Tampa, FL": (27.951, -82.458),
    "Tucson, AZ": (32.222, -110.975),
    "Tulsa, OK": (36.154, -95.993),
}


def _build_city_lookup() -> dict[str, str]:
    """Build a normalised lookup: multiple forms -> canonical "City, ST"."""
    lookup: dict[str, str] = {}
    for canonical in CITY_COORDS:
        city, state = canonical.split(", ")
        low_city = city.lower()
        low_state = state.lower()
        # "chicago, il", "chicago,il", "chicago il", "chicago"
        lookup[f"{low_city}, {low_state}"] = canonical
        lookup[f"{low_city},{low_state}"] = canonical
        lookup[f"{low_city} {low_state}"] = canonical
        lookup[low_city] = canonical
    return lookup


_CITY_LOOKUP: dict[str, str] = _build_city_lookup()


def resolve_city(text: Optional[str]) -> Optional[Location]:
    """Fuzzy-match a free-form city string to a Location.

    Returns None for empty input or a city outside the lookup table.
    """
    if not text:
        return None
    canonical = _CITY_LOOKUP.get(text.strip().lower())
    if canonical is None:
        return None
    city, state = canonical.split(", ")
    lat, lng = CITY_COORDS[canonical]
    return Location(city=city, state=state, lat=lat, lng=lng)
