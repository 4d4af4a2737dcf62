"""Trip and chain scoring.

Pure functions, no I/O. Both scores land on a 0-10 scale so direct loads and
chains can be shown side by side.

Trip score breakdown:
- Rate:     50%, posted $/mile normalised over [1.50, 3.50]
- Deadhead: 30%, 10 points minus one point per 20 empty miles (floored at 0)
- Market:   20%, posted/market ratio normalised over [0.8, 1.2]

Chain score: 0.6 x revenue/mile + 0.2 x mean leg market score
- 0.2 x (total deadhead / 10), then normalised over [1.5, 3.0].
"""

from typing import Literal, Sequence

from app.loads.models import Load

RATE_SCORE_MIN = 1.5
RATE_SCORE_MAX = 3.5
DEADHEAD_PENALTY_DIVISOR = 20
MARKET_RATIO_MIN = 0.8
MARKET_RATIO_MAX = 1.2
RATE_WEIGHT = 0.5
DEADHEAD_WEIGHT = 0.3
MARKET_WEIGHT = 0.2

CHAIN_REVENUE_WEIGHT = 0.6
CHAIN_MARKET_WEIGHT = 0.2
CHAIN_DEADHEAD_WEIGHT = 0.2
CHAIN_DEADHEAD_PENALTY_DIVISOR = 10
CHAIN_SCORE_MIN = 1.5
CHAIN_SCORE_MAX = 3.0

MARKET_BAND = 0.05  # +/-5% around market average counts as "at" market


def normalize(value: float, minimum: float, maximum: float) -> float:
    """Clamp ``value`` to [minimum, maximum] and rescale linearly to [0, 10]."""
    clamped = max(minimum, min(maximum, value))
    return (clamped - minimum) / (maximum - minimum) * 10


def market_score(load: Load) -> float:
    return normalize(load.posted_rate / load.market_rate_avg, MARKET_RATIO_MIN, MARKET_RATIO_MAX)


def trip_score(load: Load, deadhead_miles: float) -> float:
    rate_score = normalize(load.posted_rate, RATE_SCORE_MIN, RATE_SCORE_MAX)
    deadhead_score = max(0.0, 10 - deadhead_miles / DEADHEAD_PENALTY_DIVISOR)
    return (
        rate_score * RATE_WEIGHT
        + deadhead_score * DEADHEAD_WEIGHT
        + market_score(load) * MARKET_WEIGHT
    )


def market_comparison(load: Load) -> Literal["above", "at", "below"]:
    if load.posted_rate > load.market_rate_avg * (1 + MARKET_BAND):
        return "above"
    if load.posted_rate < load.market_rate_avg * (1 - MARKET_BAND):
        return "below"
    return "at"


def load_revenue(load: Load) -> float:
    """Total pay for a load: posted $/mile times loaded miles."""
    return load.posted_rate * load.distance_miles


def chain_score(
    legs: Sequence[Load],
    total_revenue: float,
    total_miles: float,
    total_deadhead: float,
) -> float:
    if not legs or total_miles <= 0:
        return 0.0
    revenue_per_mile = total_revenue / total_miles
    avg_market_score = sum(market_score(load) for load in legs) / len(legs)
    deadhead_penalty = total_deadhead / CHAIN_DEADHEAD_PENALTY_DIVISOR
    raw = (
        revenue_per_mile * CHAIN_REVENUE_WEIGHT
        + avg_market_score * CHAIN_MARKET_WEIGHT
        - deadhead_penalty * CHAIN_DEADHEAD_WEIGHT
    )
    return normalize(raw, CHAIN_SCORE_MIN, CHAIN_SCORE_MAX)
