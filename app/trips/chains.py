"""Corridor chain search.

Strings together up to ``max_legs`` available loads that walk a driver from
an origin to a final destination, each leg picking up near where the last
one dropped off. Legs that do not move the truck meaningfully closer to the
destination are pruned before the walk starts.
"""

import uuid
from typing import Iterable, Optional, Sequence

from app.geo import Location, distance_miles
from app.loads.models import Load
from app.trips.direct import score_load
from app.trips.models import LoadChain
from app.trips.scoring import chain_score, load_revenue


def is_toward(load: Load, final_destination: Location, factor: float = 0.8) -> bool:
    """True when the load's drop-off cuts the remaining distance by at least (1 - factor)."""
    return (
        distance_miles(load.destination, final_destination)
        < distance_miles(load.origin, final_destination) * factor
    )


def build_chain(legs: Sequence[Load], driver_location: Location) -> LoadChain:
    """Score and total an ordered list of legs.

    Leg 1 deadheads from the driver's location; every later leg deadheads
    from the previous leg's drop-off.
    """
    scored = []
    position = driver_location
    for load in legs:
        scored.append(score_load(load, position))
        position = load.destination

    total_revenue = sum(load_revenue(load) for load in legs)
    total_deadhead = sum(leg.deadhead_miles for leg in scored)
    total_miles = sum(load.distance_miles for load in legs) + total_deadhead

    stops = [legs[0].origin.label] + [load.destination.label for load in legs]
    return LoadChain(
        chain_id=f"CHAIN-{uuid.uuid4().hex[:8]}",
        legs=scored,
        chain_score=chain_score(legs, total_revenue, total_miles, total_deadhead),
        total_revenue=round(total_revenue, 2),
        total_miles=round(total_miles, 1),
        total_deadhead=round(total_deadhead, 1),
        revenue_per_mile=round(total_revenue / total_miles, 3) if total_miles else 0.0,
        summary=" → ".join(stops),
    )


def find_chains(
    loads: Iterable[Load],
    origin: Location,
    destination: Location,
    driver_location: Location,
    radius_miles: float = 75,
    toward_factor: float = 0.8,
    max_legs: int = 3,
    landing_radius_miles: Optional[float] = None,
) -> list[list[Load]]:
    """Every leg sequence from ``origin`` that lands near ``destination``.

    Leg 1 picks up within ``radius_miles`` of the origin, each later leg within
    ``radius_miles`` of the previous drop-off. A sequence is complete as soon
    as a leg lands within ``landing_radius_miles`` (defaults to the pickup
    radius) of the destination; sequences still open at ``max_legs`` are
    dropped. A load id never appears twice in one sequence.
    """
    landing_radius = landing_radius_miles if landing_radius_miles is not None else radius_miles
    candidates = [load for load in loads if is_toward(load, destination, toward_factor)]
    found: list[list[Load]] = []

    def extend(path: list[Load], position: Location) -> None:
        used = {load.load_id for load in path}
        for load in candidates:
            if load.load_id in used:
                continue
            if distance_miles(position, load.origin) > radius_miles:
                continue
            next_path = path + [load]
            if distance_miles(load.destination, destination) <= landing_radius:
                found.append(next_path)
            elif len(next_path) < max_legs:
                extend(next_path, load.destination)

    extend([], origin)
    return found


def search_chains(
    loads: Iterable[Load],
    origin: Location,
    destination: Location,
    driver_location: Location,
    radius_miles: float = 75,
    toward_factor: float = 0.8,
    max_legs: int = 3,
    max_chains: int = 10,
    landing_radius_miles: Optional[float] = None,
) -> tuple[list[LoadChain], int]:
    """Best chains by chain score, plus how many were evaluated before truncation."""
    sequences = find_chains(
        list(loads),
        origin,
        destination,
        driver_location,
        radius_miles=radius_miles,
        toward_factor=toward_factor,
        max_legs=max_legs,
        landing_radius_miles=landing_radius_miles,
    )
    chains = [build_chain(legs, driver_location) for legs in sequences]
    chains.sort(key=lambda c: c.chain_score, reverse=True)
    return chains[:max_chains], len(chains)
