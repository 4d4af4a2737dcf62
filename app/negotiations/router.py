from fastapi import APIRouter, Depends

from app.context import RequestContext
from app.dependencies import get_request_context, verify_api_key
from app.negotiations.models import (
    BrokerResponseRequest,
    BrokerResponseResult,
    BrokerSimulationRequest,
    BrokerSimulationResponse,
    Negotiation,
    StartNegotiationRequest,
    StartNegotiationResponse,
)
from app.negotiations.service import (
    get_negotiation,
    handle_broker_response,
    simulate,
    start_negotiation,
)

# All routes under /api/negotiations require a valid API key in the X-API-Key header.
router = APIRouter(
    prefix="/api/negotiations",
    tags=["negotiations"],
    dependencies=[Depends(verify_api_key)],
)


@router.post("", response_model=StartNegotiationResponse, status_code=201)
async def start(request: StartNegotiationRequest, ctx: RequestContext = Depends(get_request_context)):
    """Open a negotiation on an available load.

    Drafts and emails the opening offer (the driver's minimum rate), then
    reserves the load so nobody else can negotiate or book it meanwhile.
    """
    return await start_negotiation(ctx, request)


@router.post("/simulate-broker-response", response_model=BrokerSimulationResponse)
async def simulate_broker(request: BrokerSimulationRequest):
    """Simulated broker reply to a driver offer, for demos and end-to-end tests.

    Does not touch the stored negotiation.
    """
    return simulate(request)


@router.get("/{negotiation_id}", response_model=Negotiation)
async def get(negotiation_id: str, ctx: RequestContext = Depends(get_request_context)):
    return await get_negotiation(ctx, negotiation_id)


@router.post("/{negotiation_id}/broker-response", response_model=BrokerResponseResult)
async def broker_response(
    negotiation_id: str,
    request: BrokerResponseRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    """Process a broker's reply.

    Flow:
    1. Pull the $/mile offer out of the reply → 400 if there is none
    2. Look up the negotiation → 404 if missing, 409 if already closed
    3. Offer at or above the driver's minimum → accepted and booked
    4. Rounds left → driver counter drafted, emailed, recorded
    5. Otherwise → walked away and the load is released
    """
    return await handle_broker_response(ctx, negotiation_id, request)
