import pytest

from app.geo import Location, distance_miles, resolve_city


class TestResolveCity:
    def test_canonical_form(self):
        location = resolve_city("Chicago, IL")
        assert (location.city, location.state) == ("Chicago", "IL")

    def test_lowercase(self):
        assert resolve_city("chicago, il").label == "Chicago, IL"

    def test_no_comma(self):
        assert resolve_city("chicago il").label == "Chicago, IL"

    def test_city_only(self):
        assert resolve_city("Dallas").label == "Dallas, TX"

    def test_whitespace_stripped(self):
        assert resolve_city("  Houston  ").label == "Houston, TX"

    def test_carries_coordinates(self):
        location = resolve_city("Dallas, TX")
        assert location.lat == 32.777
        assert location.lng == -96.797

    def test_unresolvable_returns_none(self):
        assert resolve_city("Timbuktu") is None

    def test_empty_returns_none(self):
        assert resolve_city("") is None

    def test_none_returns_none(self):
        assert resolve_city(None) is None


class TestDistanceMiles:
    def test_same_point_is_zero(self):
        dallas = resolve_city("Dallas")
        assert distance_miles(dallas, dallas) == 0.0

    def test_symmetric(self):
        dallas, atlanta = resolve_city("Dallas"), resolve_city("Atlanta")
        assert distance_miles(dallas, atlanta) == distance_miles(atlanta, dallas)

    def test_dallas_to_atlanta(self):
        # Great-circle distance, not road miles
        assert 700 < distance_miles(resolve_city("Dallas"), resolve_city("Atlanta")) < 740

    def test_one_degree_of_longitude_on_equator(self):
        a = Location(lat=0, lng=0)
        b = Location(lat=0, lng=1)
        assert distance_miles(a, b) == pytest.approx(69.1, abs=0.05)

    def test_keeps_full_precision(self):
        # A hair past 75 miles must not round back inside a 75 mile radius
        a = Location(lat=0, lng=0)
        b = Location(lat=0, lng=75.02 / 69.09)
        assert distance_miles(a, b) > 75


class TestLocationLabel:
    def test_city_and_state(self):
        assert Location(city="Memphis", state="TN", lat=35.15, lng=-90.049).label == "Memphis, TN"

    def test_coordinates_when_no_city(self):
        assert Location(lat=35.15, lng=-90.049).label == "(35.150, -90.049)"
