"""Broker behaviour simulator.

A probabilistic stand-in for a live freight broker, used to exercise the
negotiation loop end to end without real email traffic. Driver offers are
asks above the posted rate: the higher the ask, the less likely the broker
is to take it.
"""

import random
from dataclasses import dataclass
from typing import Literal, Optional

Action = Literal["accept", "counter", "reject"]

COUNTER_BAND = 1.15  # Asks up to 15% over posted get a split-the-difference counter
MARKET_BAND = 1.05  # Asks up to 5% over market may be accepted outright
BASE_ACCEPT_PROBABILITY = 0.8
ACCEPT_DECAY_PER_ROUND = 0.1
FALLBACK_COUNTER_RATIO = 0.95  # Counter at 95% of posted when declining a market-band ask

DELAY_SECONDS: dict[str, tuple[int, int]] = {
    "accept": (5, 45),
    "counter": (30, 120),
    "reject": (10, 60),
}

MESSAGES: dict[str, list[str]] = {
    "accept": [
        "We can work with ${driver:.2f}/mile. Let's get this load moving!",
        "Agreed at ${driver:.2f}/mile. I'll send the rate confirmation right away.",
        "That works for us. ${driver:.2f}/mile is fair for this lane.",
        "You've got a deal at ${driver:.2f}/mile. Sending paperwork now.",
    ],
    "counter": [
        "I can do ${broker:.2f}/mile on this lane. That's our best offer for this timeframe.",
        "How about we meet at ${broker:.2f}/mile? That's the highest I can go.",
        "I'm authorized to offer ${broker:.2f}/mile. Can you work with that?",
        "Best I can do is ${broker:.2f}/mile. This is a hot load and we need it covered.",
    ],
    "reject": [
        "Unfortunately, ${driver:.2f}/mile is outside our budget for this lane.",
        "I appreciate the offer, but we can't go that high on this load.",
        "That rate doesn't work for us. Thanks for your time.",
        "We'll have to pass at ${driver:.2f}/mile. Good luck out there!",
    ],
}


@dataclass
class BrokerReply:
    action: Action
    message: str
    delay_seconds: int
    broker_offer: Optional[float] = None


def _reply(action: Action, driver_offer: float, rng: random.Random, broker_offer: Optional[float] = None) -> BrokerReply:
    low, high = DELAY_SECONDS[action]
    template = rng.choice(MESSAGES[action])
    return BrokerReply(
        action=action,
        message=template.format(driver=driver_offer, broker=broker_offer or 0.0),
        delay_seconds=rng.randint(low, high),
        broker_offer=broker_offer,
    )


def simulate_broker_response(
    driver_offer: float,
    posted_rate: float,
    market_rate_avg: float,
    current_round: int,
    max_rounds: int = 4,
    rng: Optional[random.Random] = None,
) -> BrokerReply:
    """Decide how a broker answers ``driver_offer`` ($/mile) in ``current_round``.

    Rules, first match wins:
    1. Final round: the broker gives in and accepts.
    2. Ask at or below posted: accept.
    3. Ask up to 15% over posted: counter at the midpoint of ask and posted.
    4. Ask up to 5% over market: accept with probability 0.8 - 0.1 per extra
       round, otherwise counter at 95% of posted.
    5. Anything higher: reject.
    """
    rng = rng or random.Random()

    if current_round >= max_rounds:
        return _reply("accept", driver_offer, rng)

    if driver_offer <= posted_rate:
        return _reply("accept", driver_offer, rng)

    if driver_offer <= posted_rate * COUNTER_BAND:
        return _reply("counter", driver_offer, rng, broker_offer=round_rate((driver_offer + posted_rate) / 2))

    if driver_offer <= market_rate_avg * MARKET_BAND:
        accept_probability = BASE_ACCEPT_PROBABILITY - (current_round - 1) * ACCEPT_DECAY_PER_ROUND
        if rng.random() < accept_probability:
            return _reply("accept", driver_offer, rng)
        return _reply("counter", driver_offer, rng, broker_offer=round_rate(posted_rate * FALLBACK_COUNTER_RATIO))

    return _reply("reject", driver_offer, rng)


def round_rate(rate: float) -> float:
    """Rates are quoted to the tenth of a cent per mile."""
    return round(rate, 3)
