from app.geo import distance_miles
from app.trips.direct import score_load, search_direct
from tests.fakes import city, make_load


def test_returns_loads_within_both_radii(sample_loads):
    results = search_direct(sample_loads, city("Dallas"), city("Atlanta"), city("Dallas"))
    assert [r.load.load_id for r in results] == ["LOAD-001"]


def test_nearby_origin_counts(sample_loads):
    # Fort Worth is ~30 miles from Dallas
    results = search_direct(sample_loads, city("Dallas"), city("Houston"), city("Dallas"))
    assert [r.load.load_id for r in results] == ["LOAD-004"]
    assert results[0].deadhead_miles == round(distance_miles(city("Dallas"), city("Fort Worth")), 1)


def test_origin_outside_radius_excluded(sample_loads):
    results = search_direct(sample_loads, city("Memphis"), city("Atlanta"), city("Memphis"), radius_miles=75)
    assert [r.load.load_id for r in results] == ["LOAD-003"]
    results = search_direct(sample_loads, city("Nashville"), city("Atlanta"), city("Nashville"), radius_miles=75)
    assert results == []


def test_sorted_by_trip_score():
    loads = [
        make_load("CHEAP", "Dallas", "Atlanta", posted_rate=1.90),
        make_load("RICH", "Dallas", "Atlanta", posted_rate=3.10),
        make_load("MID", "Dallas", "Atlanta", posted_rate=2.50),
    ]
    results = search_direct(loads, city("Dallas"), city("Atlanta"), city("Dallas"))
    assert [r.load.load_id for r in results] == ["RICH", "MID", "CHEAP"]


def test_empty_when_nothing_matches():
    assert search_direct([], city("Dallas"), city("Atlanta"), city("Dallas")) == []


def test_score_load_uses_deadhead_from_given_point():
    load = make_load("L1", "Memphis", "Atlanta", posted_rate=2.5, market_rate_avg=2.5)
    scored = score_load(load, city("Dallas"))
    assert scored.deadhead_miles == round(distance_miles(city("Dallas"), city("Memphis")), 1)
    assert scored.revenue_per_mile == 2.5
    assert scored.market_comparison == "at"
