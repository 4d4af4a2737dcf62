import pytest

from app.geo import Location
from app.loads.models import Broker, Load
from app.trips.chains import build_chain, find_chains, is_toward, search_chains
from tests.fakes import city, make_load


def point(lng: float) -> Location:
    """A spot on the equator; one degree of longitude is ~69.1 miles."""
    return Location(city=f"P{lng:g}", state="EQ", lat=0.0, lng=lng)


def leg(load_id: str, start: float, end: float, posted_rate: float = 2.5) -> Load:
    return Load(
        load_id=load_id,
        origin=point(start),
        destination=point(end),
        distance_miles=round(abs(end - start) * 69.1, 1),
        equipment="Dry Van",
        posted_rate=posted_rate,
        market_rate_avg=2.5,
        broker=Broker(name="Test Broker", email="broker@example.com"),
    )


def ids(sequences):
    return {tuple(load.load_id for load in sequence) for sequence in sequences}


class TestIsToward:
    def test_twenty_five_percent_shrink_is_toward(self):
        assert is_toward(leg("A", 0, 2.5), point(10))

    def test_ten_percent_shrink_is_not_toward(self):
        assert not is_toward(leg("B", 0, 1), point(10))

    def test_moving_away_is_not_toward(self):
        assert not is_toward(leg("C", 0, -3), point(10))

    def test_custom_factor(self):
        # 25% shrink passes 0.8 but not the 0.7 triangle factor
        assert not is_toward(leg("A", 0, 2.5), point(10), factor=0.7)


class TestFindChains:
    def test_toward_leg_included_and_wandering_leg_excluded(self):
        loads = [
            leg("A", 0, 2.5),  # shrinks remaining distance by 25%
            leg("B", 0, 1),  # shrinks it by only 10%
            leg("C", 2.5, 10),
            leg("D", 1, 10),
        ]
        found = find_chains(loads, point(0), point(10), point(0))
        assert ids(found) == {("A", "C"), ("D",)}
        assert all("B" not in chain for chain in ids(found))

    def test_three_leg_chain(self):
        loads = [leg("L1", 0, 4), leg("L2", 4, 8), leg("L3", 8, 12)]
        assert ids(find_chains(loads, point(0), point(12), point(0))) == {("L1", "L2", "L3")}

    def test_depth_limit_discards_open_chains(self):
        loads = [leg("L1", 0, 3), leg("L2", 3, 6), leg("L3", 6, 9), leg("L4", 9, 12)]
        assert find_chains(loads, point(0), point(12), point(0), max_legs=3) == []

    def test_max_legs_two(self):
        loads = [leg("L1", 0, 4), leg("L2", 4, 8), leg("L3", 8, 12)]
        assert find_chains(loads, point(0), point(12), point(0), max_legs=2) == []

    def test_load_never_repeats_within_a_chain(self):
        # A short hop that is "toward" and picks up next to its own drop-off
        loads = [leg("SHORT", 0, 0.5)]
        found = find_chains(loads, point(0), point(1.5), point(0), radius_miles=50)
        assert found == []

    def test_landing_radius_override(self):
        loads = [leg("A", 0, 8.5)]
        # 1.5 degrees short of the target is ~104 miles
        assert find_chains(loads, point(0), point(10), point(0)) == []
        assert ids(find_chains(loads, point(0), point(10), point(0), landing_radius_miles=110)) == {("A",)}


class TestBuildChain:
    def test_totals(self):
        legs = [leg("A", 0, 2.5, posted_rate=2.0), leg("C", 3, 10, posted_rate=3.0)]
        chain = build_chain(legs, driver_location=point(-0.5))

        deadhead_1 = chain.legs[0].deadhead_miles
        deadhead_2 = chain.legs[1].deadhead_miles
        assert deadhead_1 == pytest.approx(34.5, abs=0.1)
        assert deadhead_2 == pytest.approx(34.5, abs=0.1)
        assert chain.total_deadhead == pytest.approx(deadhead_1 + deadhead_2, abs=0.1)
        assert chain.total_revenue == pytest.approx(2.0 * legs[0].distance_miles + 3.0 * legs[1].distance_miles)
        assert chain.total_miles == pytest.approx(
            legs[0].distance_miles + legs[1].distance_miles + chain.total_deadhead, abs=0.1
        )
        assert chain.total_miles >= legs[0].distance_miles + legs[1].distance_miles
        assert chain.revenue_per_mile == pytest.approx(chain.total_revenue / chain.total_miles, abs=0.001)
        assert 0 <= chain.chain_score <= 10

    def test_summary_lists_every_stop(self):
        legs = [
            make_load("LOAD-002", "Dallas, TX", "Memphis, TN"),
            make_load("LOAD-003", "Memphis, TN", "Atlanta, GA"),
        ]
        chain = build_chain(legs, city("Dallas"))
        assert chain.summary == "Dallas, TX → Memphis, TN → Atlanta, GA"
        assert chain.chain_id.startswith("CHAIN-")


class TestSearchChains:
    def test_real_corridor(self, sample_loads):
        chains, evaluated = search_chains(sample_loads, city("Dallas"), city("Atlanta"), city("Dallas"))
        assert evaluated == 2
        assert {tuple(leg.load.load_id for leg in c.legs) for c in chains} == {
            ("LOAD-001",),
            ("LOAD-002", "LOAD-003"),
        }

    def test_sorted_and_truncated(self):
        loads = [leg(f"A{i}", 0, 9.5, posted_rate=2.0 + i * 0.1) for i in range(15)]
        chains, evaluated = search_chains(loads, point(0), point(10), point(0), max_chains=10)
        assert evaluated == 15
        assert len(chains) == 10
        scores = [c.chain_score for c in chains]
        assert scores == sorted(scores, reverse=True)

    def test_every_multi_leg_chain_moves_toward_destination(self, sample_loads):
        chains, _ = search_chains(sample_loads, city("Dallas"), city("Atlanta"), city("Dallas"))
        for chain in chains:
            assert len(chain.legs) <= 3
            leg_ids = [l.load.load_id for l in chain.legs]
            assert len(leg_ids) == len(set(leg_ids))
            for scored in chain.legs:
                assert is_toward(scored.load, city("Atlanta"))
