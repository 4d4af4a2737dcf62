import logging
import time
from typing import Optional

from app.context import RequestContext
from app.errors import ClientInputError, NotFoundError
from app.geo import Location, resolve_city
from app.loads.models import Load, LoadFilters
from app.trips.chains import search_chains
from app.trips.direct import search_direct
from app.trips.insight import generate_insight
from app.trips.models import (
    DESTINATION_OPTIONAL_MODES,
    LoadChain,
    LoadWithScore,
    LocationInput,
    RegionSummary,
    RoundTrip,
    SearchMetadata,
    SearchMode,
    TripSearchRequest,
    TripSearchResponse,
)
from app.trips.modes import search_backhaul, search_open_ended, search_round_trips

logger = logging.getLogger(__name__)


def parse_mode(value: str) -> SearchMode:
    try:
        return SearchMode(value)
    except ValueError:
        raise ClientInputError(
            f"Unknown search mode '{value}'",
            code="INVALID_SEARCH_MODE",
            details={"allowed": [m.value for m in SearchMode]},
        )


def resolve_location(value: LocationInput, field: str) -> Location:
    """Coordinates win when both are given; otherwise the city must be one we know."""
    if value.lat is not None and value.lng is not None:
        return Location(city=value.city or "", state=value.state or "", lat=value.lat, lng=value.lng)
    if value.city:
        text = f"{value.city}, {value.state}" if value.state else value.city
        resolved = resolve_city(text)
        if resolved:
            return resolved
        raise ClientInputError(
            f"Could not resolve {field} '{text}' to a known city",
            code="UNKNOWN_LOCATION",
            details={"field": field},
        )
    raise ClientInputError(
        f"{field} needs either lat/lng or a city",
        code="INVALID_LOCATION",
        details={"field": field},
    )


def validate_request(request: TripSearchRequest) -> tuple[SearchMode, Optional[Location], Optional[Location]]:
    """Check mode-specific required fields. Runs before any repository call."""
    mode = parse_mode(request.mode)
    if mode not in DESTINATION_OPTIONAL_MODES:
        if request.destination is None:
            raise ClientInputError(
                f"destination is required for mode '{mode.value}'",
                code="DESTINATION_REQUIRED",
            )
        if request.origin is None:
            raise ClientInputError(
                f"origin is required for mode '{mode.value}'",
                code="ORIGIN_REQUIRED",
            )
    origin = resolve_location(request.origin, "origin") if request.origin else None
    destination = resolve_location(request.destination, "destination") if request.destination else None
    return mode, origin, destination


async def search_trips(ctx: RequestContext, request: TripSearchRequest) -> TripSearchResponse:
    started = time.perf_counter()
    mode, origin, destination = validate_request(request)

    driver = await ctx.drivers.get(request.driver_id)
    if driver is None:
        raise NotFoundError("Driver", request.driver_id)

    driver_location = driver.current_location
    origin = origin or driver_location
    if mode == SearchMode.BACKHAUL:
        destination = driver.home_base

    loads = await ctx.loads.list_available(
        LoadFilters(equipment=request.equipment, min_rate=request.min_rate)
    )
    config = ctx.search

    direct: list[LoadWithScore] = []
    chains: list[LoadChain] = []
    regions: list[RegionSummary] = []
    round_trips: list[RoundTrip] = []
    evaluated = 0

    if mode == SearchMode.ONE_WAY:
        direct = search_direct(loads, origin, destination, driver_location, config.direct_radius_miles)
        if not direct or direct[0].trip_score < config.direct_score_threshold:
            chains, evaluated = _corridor(loads, origin, destination, driver_location, ctx)
    elif mode == SearchMode.CORRIDOR_CHAIN:
        chains, evaluated = _corridor(loads, origin, destination, driver_location, ctx)
    elif mode == SearchMode.OPEN_ENDED:
        max_deadhead = request.max_deadhead or config.open_ended_max_deadhead
        direct, regions = search_open_ended(loads, origin, driver_location, max_deadhead)
    elif mode == SearchMode.BACKHAUL:
        direct, chains, evaluated = search_backhaul(loads, origin, destination, driver_location, config)
    elif mode == SearchMode.ROUND_TRIP:
        direct = search_direct(loads, origin, destination, driver_location, config.direct_radius_miles)
        round_trips, evaluated = search_round_trips(
            loads, origin, destination, driver_location, config.direct_radius_miles, config.max_chains
        )

    direct = direct[: config.max_direct_results]
    insight = generate_insight(
        direct[0] if direct else None,
        chains[0] if chains else None,
        _result_loads(direct, chains, regions, round_trips),
        len(loads),
        config.savings_threshold,
    )

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "Trip search [%s] mode=%s driver=%s: %d direct, %d chains, %d regions, %d round trips "
        "from %d loads in %dms",
        ctx.request_id,
        mode.value,
        driver.driver_id,
        len(direct),
        len(chains),
        len(regions),
        len(round_trips),
        len(loads),
        elapsed_ms,
    )

    return TripSearchResponse(
        search_mode=mode,
        origin=origin,
        destination=destination,
        direct_loads=direct,
        chains=chains,
        regions=regions,
        round_trips=round_trips,
        market_insight=insight,
        metadata=SearchMetadata(
            search_time_ms=elapsed_ms,
            loads_scanned=len(loads),
            chains_evaluated=evaluated,
            driver_location=driver_location,
            request_id=ctx.request_id,
        ),
    )


def _corridor(
    loads: list[Load],
    origin: Location,
    destination: Location,
    driver_location: Location,
    ctx: RequestContext,
) -> tuple[list[LoadChain], int]:
    config = ctx.search
    return search_chains(
        loads,
        origin,
        destination,
        driver_location,
        radius_miles=config.corridor_radius_miles,
        toward_factor=config.toward_factor,
        max_legs=config.max_chain_legs,
        max_chains=config.max_chains,
    )


def _result_loads(
    direct: list[LoadWithScore],
    chains: list[LoadChain],
    regions: list[RegionSummary],
    round_trips: list[RoundTrip],
) -> list[Load]:
    loads = [item.load for item in direct]
    loads += [leg.load for chain in chains for leg in chain.legs]
    loads += [region.best_load.load for region in regions]
    loads += [leg.load for trip in round_trips for leg in (trip.outbound, trip.return_leg)]
    return loads
