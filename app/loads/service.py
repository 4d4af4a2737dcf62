import logging
from typing import Optional

from app.context import RequestContext
from app.errors import ClientInputError, NotFoundError
from app.geo import distance_miles
from app.loads.models import Load, LoadFilters

logger = logging.getLogger(__name__)


async def search_loads(
    ctx: RequestContext,
    filters: LoadFilters,
    max_deadhead: Optional[float] = None,
    driver_id: Optional[str] = None,
) -> list[Load]:
    """Available loads matching the filters.

    Equipment, minimum rate, booking type and city substrings are pushed down
    to MongoDB. ``max_deadhead`` needs a distance calculation, so it is applied
    after the scan against the driver's current location; results are then
    ordered nearest pickup first.
    """
    if max_deadhead is not None and not driver_id:
        raise ClientInputError("driver_id is required when using max_deadhead", code="DRIVER_ID_REQUIRED")

    driver = None
    if max_deadhead is not None:
        driver = await ctx.drivers.get(driver_id)
        if driver is None:
            raise NotFoundError("Driver", driver_id)

    loads = await ctx.loads.list_available(filters)

    if driver is not None:
        here = driver.current_location
        nearby = [(distance_miles(here, load.origin), load) for load in loads]
        nearby = [pair for pair in nearby if pair[0] <= max_deadhead]
        nearby.sort(key=lambda pair: pair[0])
        loads = [load for _, load in nearby]

    logger.info("Load search [%s] returned %d loads", ctx.request_id, len(loads))
    return loads


async def get_load(ctx: RequestContext, load_id: str) -> Load:
    load = await ctx.loads.get(load_id)
    if load is None:
        raise NotFoundError("Load", load_id)
    return load
