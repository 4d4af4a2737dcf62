"""Search modes that go beyond a plain origin -> destination lookup."""

from collections import defaultdict
from itertools import product
from typing import Iterable

from app.geo import Location, distance_miles
from app.loads.models import Load
from app.trips.chains import build_chain, is_toward
from app.trips.direct import loads_between, score_load
from app.trips.models import LoadChain, LoadWithScore, RegionSummary, RoundTrip, SearchConfig
from app.trips.scoring import load_revenue


def search_open_ended(
    loads: Iterable[Load],
    origin: Location,
    driver_location: Location,
    max_deadhead: float,
) -> tuple[list[LoadWithScore], list[RegionSummary]]:
    """Everything picking up within ``max_deadhead`` of the origin, grouped by destination state.

    Returns the scored loads (best first) and one summary per destination
    state, ranked by mean trip score.
    """
    scored = [
        score_load(load, driver_location)
        for load in loads
        if distance_miles(origin, load.origin) <= max_deadhead
    ]
    scored.sort(key=lambda s: s.trip_score, reverse=True)

    by_region: dict[str, list[LoadWithScore]] = defaultdict(list)
    for item in scored:
        by_region[item.load.destination.state or "Unknown"].append(item)

    regions = [
        RegionSummary(
            region=region,
            load_count=len(items),
            avg_trip_score=round(sum(i.trip_score for i in items) / len(items), 2),
            best_load=items[0],  # scored is already sorted
        )
        for region, items in by_region.items()
    ]
    regions.sort(key=lambda r: r.avg_trip_score, reverse=True)
    return scored, regions


def search_backhaul(
    loads: Iterable[Load],
    origin: Location,
    home: Location,
    driver_location: Location,
    config: SearchConfig,
) -> tuple[list[LoadWithScore], list[LoadChain], int]:
    """Loads heading back to the driver's home base.

    Direct backhauls pick up within the direct radius of the origin and land
    within ``backhaul_home_radius_miles`` of home. Only when there are none,
    fall back to two-leg triangles (see find_triangles).
    """
    loads = list(loads)
    direct = [
        score_load(load, driver_location)
        for load in loads
        if distance_miles(origin, load.origin) <= config.direct_radius_miles
        and distance_miles(home, load.destination) <= config.backhaul_home_radius_miles
    ]
    direct.sort(key=lambda s: s.trip_score, reverse=True)
    if direct:
        return direct, [], 0

    triangles = [build_chain(legs, driver_location) for legs in find_triangles(loads, origin, home, config)]
    triangles.sort(key=lambda c: c.chain_score, reverse=True)
    return [], triangles[: config.max_chains], len(triangles)


def find_triangles(loads: list[Load], origin: Location, home: Location, config: SearchConfig) -> list[list[Load]]:
    """Origin -> intermediate -> home leg pairs.

    Only the intermediate leg has to cut the distance home by at least
    (1 - ``backhaul_triangle_factor``). The closing leg picks up within the
    corridor radius of the intermediate drop-off and lands within
    ``backhaul_home_radius_miles`` of home.
    """
    radius = config.corridor_radius_miles
    first_legs = [
        load
        for load in loads
        if distance_miles(origin, load.origin) <= radius
        and is_toward(load, home, config.backhaul_triangle_factor)
    ]
    return [
        [first, second]
        for first in first_legs
        for second in loads
        if second.load_id != first.load_id
        and distance_miles(first.destination, second.origin) <= radius
        and distance_miles(home, second.destination) <= config.backhaul_home_radius_miles
    ]


def search_round_trips(
    loads: Iterable[Load],
    origin: Location,
    destination: Location,
    driver_location: Location,
    radius_miles: float = 75,
    limit: int = 10,
) -> tuple[list[RoundTrip], int]:
    """Pair outbound loads with return loads back to the origin, best combined $/mile first."""
    loads = list(loads)
    outbound = loads_between(loads, origin, destination, radius_miles)
    pairs: list[RoundTrip] = []

    for out_load, back_load in product(outbound, loads):
        if back_load.load_id == out_load.load_id:
            continue
        if distance_miles(out_load.destination, back_load.origin) > radius_miles:
            continue
        if distance_miles(origin, back_load.destination) > radius_miles:
            continue
        pairs.append(_round_trip(out_load, back_load, driver_location))

    pairs.sort(key=lambda p: p.revenue_per_mile, reverse=True)
    return pairs[:limit], len(pairs)


def _round_trip(out_load: Load, back_load: Load, driver_location: Location) -> RoundTrip:
    outbound = score_load(out_load, driver_location)
    return_leg = score_load(back_load, out_load.destination)
    total_revenue = load_revenue(out_load) + load_revenue(back_load)
    total_deadhead = outbound.deadhead_miles + return_leg.deadhead_miles
    total_miles = out_load.distance_miles + back_load.distance_miles + total_deadhead
    return RoundTrip(
        outbound=outbound,
        return_leg=return_leg,
        total_revenue=round(total_revenue, 2),
        total_miles=round(total_miles, 1),
        total_deadhead=round(total_deadhead, 1),
        revenue_per_mile=round(total_revenue / total_miles, 3) if total_miles else 0.0,
    )
