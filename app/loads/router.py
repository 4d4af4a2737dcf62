from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.bookings.models import BookingResponse, BookLoadRequest
from app.bookings.service import book_load
from app.context import RequestContext
from app.dependencies import get_request_context, verify_api_key
from app.errors import ClientInputError
from app.loads.models import BookingType, EquipmentType, Load, LoadFilters, LoadResponse
from app.loads.service import get_load, search_loads

# All routes under /api/loads require a valid API key in the X-API-Key header.
# The verify_api_key dependency runs before every endpoint in this router.
router = APIRouter(prefix="/api/loads", tags=["loads"], dependencies=[Depends(verify_api_key)])


def _positive_float(name: str, value: Optional[str]) -> Optional[float]:
    """Parse an optional numeric query param. "" counts as not given."""
    if not value:
        return None
    try:
        parsed = float(value)
    except ValueError:
        raise ClientInputError(f"{name} must be a number", details={"field": name})
    if parsed <= 0:
        raise ClientInputError(f"{name} must be a positive number", details={"field": name})
    return parsed


def _enum_param(name: str, enum_cls, value: Optional[str]):
    if not value:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ClientInputError(
            f"Invalid {name} '{value}'",
            details={"field": name, "allowed": [e.value for e in enum_cls]},
        )


@router.get("/search", response_model=LoadResponse)
async def search(
    # Numeric params are typed as str so "" can mean "not given"
    origin_city: Optional[str] = Query(None),  # e.g. "Dallas"; substring match on origin.city
    dest_city: Optional[str] = Query(None),  # e.g. "Atlanta"
    equipment: Optional[str] = Query(None),  # "Dry Van", "Reefer" or "Flatbed"
    min_rate: Optional[str] = Query(None),  # Minimum posted $/mile
    booking_type: Optional[str] = Query(None),  # "book_now", "negotiable" or "hot"
    max_deadhead: Optional[str] = Query(None),  # Miles from the driver to pickup; needs driver_id
    driver_id: Optional[str] = Query(None),
    ctx: RequestContext = Depends(get_request_context),
):
    """Search available loads.

    All filters are optional; omitting all returns every available load up to
    the scan limit.
    """
    filters = LoadFilters(
        equipment=_enum_param("equipment", EquipmentType, equipment),
        min_rate=_positive_float("min_rate", min_rate),
        booking_type=_enum_param("booking_type", BookingType, booking_type),
        origin_city=origin_city or None,
        dest_city=dest_city or None,
    )
    loads = await search_loads(
        ctx,
        filters,
        max_deadhead=_positive_float("max_deadhead", max_deadhead),
        driver_id=driver_id or None,
    )
    return LoadResponse(loads=loads, total=len(loads))


@router.get("/{load_id}", response_model=Load)
async def get(load_id: str, ctx: RequestContext = Depends(get_request_context)):
    """Retrieve a specific load by its ID."""
    return await get_load(ctx, load_id)


@router.post("/{load_id}/book", response_model=BookingResponse, status_code=201)
async def book(load_id: str, request: BookLoadRequest, ctx: RequestContext = Depends(get_request_context)):
    """Book a load outright at its book-now rate (or posted rate).

    Exactly one of several concurrent bookings on the same load succeeds;
    the others get 409.
    """
    booking = await book_load(ctx, load_id, request.driver_id)
    return BookingResponse(
        booking_id=booking.booking_id,
        load_id=booking.load_id,
        final_rate=booking.final_rate,
        rate_con_doc_id=booking.rate_con_doc_id,
        status=booking.status,
    )
