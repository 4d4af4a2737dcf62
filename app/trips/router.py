from fastapi import APIRouter, Depends

from app.context import RequestContext
from app.dependencies import get_request_context, verify_api_key
from app.trips.models import TripSearchRequest, TripSearchResponse
from app.trips.service import search_trips

# All routes under /api/trips require a valid API key in the X-API-Key header.
router = APIRouter(prefix="/api/trips", tags=["trips"], dependencies=[Depends(verify_api_key)])


@router.post("/search", response_model=TripSearchResponse)
async def search(request: TripSearchRequest, ctx: RequestContext = Depends(get_request_context)):
    """Find loads for a driver in one of five modes.

    - one_way: direct loads origin -> destination; chains too when no direct
      load scores 7.0 or better
    - corridor_chain: multi-leg chains only
    - open_ended: no destination, loads near the origin grouped by where they go
    - backhaul: loads heading to the driver's home base, triangles as fallback
    - round_trip: outbound + return pairs back to the origin

    Mode-specific fields are validated before any load is read.
    """
    return await search_trips(ctx, request)
