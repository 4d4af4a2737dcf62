"""Seed the loads and drivers collections with generated mock data.

Replaces all existing loads and drivers; safe to re-run since the data is
mock/sample data. Loads are spread over the busiest freight markets, each with
its own set of typical destinations and posted-rate band. Also creates the
indexes the booking and negotiation writes rely on.

Usage: .venv/bin/python scripts/seed_db.py [--seed 42]
"""

import argparse
import asyncio
import random
from datetime import datetime, timedelta, timezone

from motor.motor_asyncio import AsyncIOMotorClient

from app.config import settings
from app.database import ensure_indexes
from app.drivers.models import Driver
from app.geo import distance_miles, resolve_city
from app.loads.models import Broker, BookingType, EquipmentType, Load, RateTrend

# origin -> (load count, typical destinations, posted $/mile band)
MARKETS: dict[str, tuple[int, list[str], tuple[float, float]]] = {
    "Dallas": (12, ["Atlanta", "Memphis", "Houston", "Chicago", "Phoenix"], (2.30, 3.00)),
    "Atlanta": (10, ["Dallas", "Jacksonville", "Charlotte", "Memphis", "Chicago"], (2.00, 2.50)),
    "Chicago": (12, ["Memphis", "Dallas", "Atlanta", "Indianapolis", "Kansas City"], (2.30, 2.90)),
    "Philadelphia": (8, ["Charlotte", "Richmond", "Atlanta", "Baltimore", "Nashville"], (2.10, 2.60)),
    "Miami": (8, ["Jacksonville", "Atlanta", "Charlotte"], (1.50, 2.00)),
    "Houston": (8, ["Dallas", "Memphis", "Atlanta", "New Orleans", "Phoenix"], (2.20, 2.80)),
    "Memphis": (8, ["Dallas", "Chicago", "Atlanta", "Nashville", "Little Rock"], (2.00, 2.50)),
    "Los Angeles": (8, ["Phoenix", "Dallas", "Denver", "Houston"], (2.40, 3.00)),
    "Charlotte": (6, ["Atlanta", "Jacksonville", "Richmond", "Philadelphia"], (2.00, 2.50)),
    "Jacksonville": (6, ["Atlanta", "Miami", "Charlotte", "Memphis"], (1.60, 2.10)),
    "Nashville": (6, ["Memphis", "Atlanta", "Chicago", "Dallas"], (2.00, 2.50)),
    "Indianapolis": (6, ["Chicago", "Memphis", "Dallas", "Atlanta"], (2.00, 2.50)),
    "Kansas City": (5, ["Dallas", "Chicago", "Memphis", "Denver"], (2.10, 2.60)),
    "New Orleans": (5, ["Houston", "Dallas", "Memphis", "Atlanta"], (1.90, 2.40)),
    "Denver": (5, ["Dallas", "Kansas City", "Phoenix", "Chicago"], (2.20, 2.80)),
    "Phoenix": (5, ["Los Angeles", "Dallas", "Denver", "Houston"], (2.10, 2.70)),
    "Little Rock": (4, ["Memphis", "Dallas", "Houston", "Atlanta"], (1.90, 2.40)),
    "Birmingham": (4, ["Atlanta", "Memphis", "Nashville", "Jacksonville"], (1.90, 2.40)),
    "Richmond": (4, ["Philadelphia", "Charlotte", "Baltimore", "Atlanta"], (2.00, 2.50)),
    "Baltimore": (4, ["Philadelphia", "Richmond", "Charlotte", "New York"], (2.00, 2.50)),
}

BROKERS = [
    ("TQL Freight", "dispatch@tql.com", "+1-513-831-2000"),
    ("C.H. Robinson", "loads@chrobinson.com", "+1-800-323-7587"),
    ("XPO Logistics", "carrier@xpo.com", "+1-844-742-5976"),
    ("Coyote Logistics", "dispatch@coyote.com", "+1-877-269-6831"),
    ("Echo Global", "loads@echo.com", "+1-800-354-7993"),
    ("Landstar", "dispatch@landstar.com", "+1-877-696-4507"),
]

CONTACTS = ["Mike Johnson", "Sarah Williams", "David Brown", "Lisa Davis", "James Wilson"]
PAYMENT_TERMS = ["Net 15", "Net 30", "Quick Pay (2%)"]

# Road miles run longer than great-circle distance
ROAD_FACTOR = 1.18


def _broker(rng: random.Random) -> Broker:
    name, email, phone = rng.choice(BROKERS)
    return Broker(
        name=name,
        contact=rng.choice(CONTACTS),
        email=email,
        phone=phone,
        rating=round(rng.uniform(3.5, 5.0), 1),
        payment_terms=rng.choice(PAYMENT_TERMS),
        on_time_payment=round(rng.uniform(85, 99), 1),
    )


def generate_loads(rng: random.Random) -> list[Load]:
    loads = []
    now = datetime.now(timezone.utc)
    for origin_name, (count, destinations, (low, high)) in MARKETS.items():
        origin = resolve_city(origin_name)
        for _ in range(count):
            destination = resolve_city(rng.choice(destinations))
            posted = round(rng.uniform(low, high), 2)
            market_avg = round(posted * rng.uniform(0.92, 1.08), 2)
            booking_type = rng.choice(list(BookingType))
            pickup = now + timedelta(hours=rng.randint(6, 96))
            miles = round(distance_miles(origin, destination) * ROAD_FACTOR)
            loads.append(
                Load(
                    load_id=f"LOAD-{len(loads) + 1:05d}",
                    origin=origin,
                    destination=destination,
                    distance_miles=miles,
                    equipment=rng.choice(list(EquipmentType)),
                    weight_lbs=rng.randrange(10_000, 45_000, 500),
                    posted_rate=posted,
                    market_rate_avg=market_avg,
                    market_rate_high=round(market_avg * 1.12, 2),
                    market_rate_low=round(market_avg * 0.88, 2),
                    rate_trend=rng.choice(list(RateTrend)),
                    booking_type=booking_type,
                    book_now_rate=posted if booking_type == BookingType.BOOK_NOW else None,
                    broker=_broker(rng),
                    pickup_window=f"{pickup:%Y-%m-%d} 08:00-14:00",
                    delivery_deadline=f"{pickup + timedelta(hours=miles / 50 + 12):%Y-%m-%d %H:00}",
                )
            )
    return loads


def demo_driver() -> Driver:
    return Driver(
        driver_id="DRIVER-001",
        name="Marcus Reed",
        home_base=resolve_city("Atlanta, GA"),
        current_location=resolve_city("Dallas, TX"),
        equipment=EquipmentType.DRY_VAN.value,
        min_rate=2.40,
    )


async def seed(seed_value: int):
    client = AsyncIOMotorClient(settings.MONGODB_URI)
    db = client[settings.DATABASE_NAME]

    loads = generate_loads(random.Random(seed_value))
    await db.loads.delete_many({})  # destructive: wipes all existing loads
    await db.drivers.delete_many({})
    await db.loads.insert_many([load.model_dump(mode="json") for load in loads])
    await db.drivers.insert_one(demo_driver().model_dump(mode="json"))
    await ensure_indexes(db)
    print(f"Seeded {len(loads)} loads and 1 driver into '{settings.DATABASE_NAME}'")

    client.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducible data")
    args = parser.parse_args()
    asyncio.run(seed(args.seed))
