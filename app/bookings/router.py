from fastapi import APIRouter, Depends

from app.bookings.models import Booking
from app.bookings.service import get_booking
from app.context import RequestContext
from app.dependencies import get_request_context, verify_api_key

router = APIRouter(prefix="/api/bookings", tags=["bookings"], dependencies=[Depends(verify_api_key)])


@router.get("/{booking_id}", response_model=Booking)
async def get(booking_id: str, ctx: RequestContext = Depends(get_request_context)):
    return await get_booking(ctx, booking_id)
