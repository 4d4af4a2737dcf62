from typing import Callable, Iterable, Optional

from app.geo import Location, distance_miles
from app.loads.models import Load
from app.trips.models import LoadWithScore
from app.trips.scoring import market_comparison, trip_score


def score_load(load: Load, deadhead_from: Location) -> LoadWithScore:
    """Score one load for a driver who starts the deadhead hop at ``deadhead_from``."""
    deadhead = distance_miles(deadhead_from, load.origin)
    return LoadWithScore(
        load=load,
        trip_score=trip_score(load, deadhead),
        deadhead_miles=round(deadhead, 1),
        revenue_per_mile=load.posted_rate,  # posted_rate is already $/mile
        market_comparison=market_comparison(load),
    )


def loads_between(
    loads: Iterable[Load],
    origin: Location,
    destination: Location,
    radius_miles: float,
    exclude: Optional[Callable[[Load], bool]] = None,
) -> list[Load]:
    """Loads picking up within ``radius_miles`` of origin and dropping within it of destination."""
    return [
        load
        for load in loads
        if not (exclude and exclude(load))
        and distance_miles(origin, load.origin) <= radius_miles
        and distance_miles(destination, load.destination) <= radius_miles
    ]


def search_direct(
    loads: Iterable[Load],
    origin: Location,
    destination: Location,
    driver_location: Location,
    radius_miles: float = 75,
) -> list[LoadWithScore]:
    """Single loads that already run origin -> destination, best trip score first.

    ``loads`` is the repository's available-load scan with equipment and
    minimum-rate filters already applied. An empty list is a normal result.
    """
    scored = [
        score_load(load, driver_location)
        for load in loads_between(loads, origin, destination, radius_miles)
    ]
    scored.sort(key=lambda s: s.trip_score, reverse=True)
    return scored
