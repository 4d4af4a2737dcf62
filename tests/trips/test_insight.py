import pytest

from app.trips.chains import build_chain
from app.trips.direct import score_load
from app.trips.insight import generate_insight
from tests.fakes import city, make_load


@pytest.fixture
def direct():
    # 2.50/mile over 500 miles = $1,250
    load = make_load("DIRECT", "Dallas", "Atlanta", posted_rate=2.50, market_rate_avg=2.40, distance=500)
    return score_load(load, city("Dallas"))


def chain_paying(total: float):
    load = make_load("CHAIN-LEG", "Dallas", "Atlanta", posted_rate=total / 500, market_rate_avg=2.60, distance=500)
    return build_chain([load], city("Dallas"))


def test_no_options():
    insight = generate_insight(None, None, [], 0)
    assert insight.best_option == "none"
    assert insight.load_count == 0
    assert insight.avg_market_rate == 0.0


def test_direct_only(direct):
    insight = generate_insight(direct, None, [direct.load], 12)
    assert insight.best_option == "direct"
    assert insight.savings_vs_direct is None
    assert insight.avg_market_rate == 2.40


def test_chain_only():
    chain = chain_paying(1300)
    insight = generate_insight(None, chain, [chain.legs[0].load], 12)
    assert insight.best_option == "chain"


def test_chain_wins_above_threshold(direct):
    insight = generate_insight(direct, chain_paying(1325), [direct.load], 12)
    assert insight.best_option == "chain"
    assert insight.savings_vs_direct == pytest.approx(75)


def test_direct_wins_when_chain_pays_much_less(direct):
    insight = generate_insight(direct, chain_paying(1100), [direct.load], 12)
    assert insight.best_option == "direct"
    assert insight.savings_vs_direct == pytest.approx(-150)


def test_tie_favours_direct(direct):
    insight = generate_insight(direct, chain_paying(1290), [direct.load], 12)
    assert insight.best_option == "direct"
    assert insight.savings_vs_direct == pytest.approx(40)


def test_avg_market_rate_counts_each_load_once(direct):
    chain = chain_paying(1300)
    insight = generate_insight(direct, chain, [direct.load, direct.load, chain.legs[0].load], 40)
    assert insight.avg_market_rate == pytest.approx(2.50)


def test_load_count_is_the_scan_size(direct):
    insight = generate_insight(direct, None, [direct.load], loads_scanned=40)
    assert insight.load_count == 40
