import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from app.bookings.models import Booking, BookingStatus, Document, DocumentType
from app.context import RequestContext
from app.errors import ConflictError, NotFoundError
from app.ids import generate_id
from app.loads.models import Load, LoadStatus

logger = logging.getLogger(__name__)

# Runs inside the booking transaction with (session, booking) once the load is marked booked
InTransactionHook = Callable[[Any, Booking], Awaitable[None]]


def render_rate_confirmation(load: Load, booking: Booking) -> str:
    """Plain-text rate confirmation stored alongside the booking."""
    broker = load.broker
    origin_address = f"{load.origin.address}\n" if load.origin.address else ""
    destination_address = f"{load.destination.address}\n" if load.destination.address else ""
    source = "Negotiated Rate" if booking.negotiation_id else "Direct Booking"
    return f"""RATE CONFIRMATION

Confirmation Number: {booking.booking_id}
Date: {booking.booked_at.strftime("%A, %B %d, %Y %H:%M UTC")}

LOAD DETAILS
Load ID: {load.load_id}
Equipment: {load.equipment.value}
Weight: {load.weight_lbs:,.0f} lbs
Distance: {load.distance_miles:,.0f} miles

ORIGIN
{origin_address}{load.origin.label}

DESTINATION
{destination_address}{load.destination.label}

PICKUP WINDOW
{load.pickup_window}

DELIVERY DEADLINE
{load.delivery_deadline}

RATE INFORMATION
Rate per Mile: ${booking.final_rate:.2f}
Total Amount: ${booking.final_rate * load.distance_miles:,.2f}

BROKER INFORMATION
Company: {broker.name}
Contact: {broker.contact}
Email: {broker.email}
Phone: {broker.phone}
Payment Terms: {broker.payment_terms}

DRIVER INFORMATION
Driver ID: {booking.driver_id}

This rate confirmation is a binding agreement between the carrier and broker
for the transportation services described above.

{source}"""


async def commit_booking(
    ctx: RequestContext,
    load: Load,
    driver_id: str,
    final_rate: float,
    expected_statuses: set[LoadStatus],
    negotiation_id: Optional[str] = None,
    in_transaction: Optional[InTransactionHook] = None,
) -> Booking:
    """Book ``load`` for ``driver_id`` in one all-or-nothing transaction.

    Steps, all inside ctx.transaction():
    1. Conditional load status write (expected -> booked); losing a race raises ConflictError
    2. Insert the Booking
    3. Insert the rate confirmation Document
    4. ``in_transaction`` hook, e.g. the negotiation's compare-and-swap update

    If any step raises, none of the writes persist.
    """
    booked_at = datetime.now(timezone.utc)
    booking = Booking(
        booking_id=generate_id("booking"),
        load_id=load.load_id,
        driver_id=driver_id,
        final_rate=final_rate,
        status=BookingStatus.CONFIRMED,
        booked_at=booked_at,
        rate_con_doc_id=generate_id("doc"),
        negotiation_id=negotiation_id,
    )
    document = Document(
        doc_id=booking.rate_con_doc_id,
        load_id=load.load_id,
        driver_id=driver_id,
        doc_type=DocumentType.RATE_CONFIRMATION,
        storage_key=f"rate-confirmations/{booking.booking_id}.txt",
        content=render_rate_confirmation(load, booking),
        created_at=booked_at,
    )

    async with ctx.transaction() as session:
        await ctx.loads.conditional_update_status(
            load.load_id, expected_statuses, LoadStatus.BOOKED, session=session
        )
        await ctx.bookings.insert_booking(booking, session=session)
        await ctx.bookings.insert_document(document, session=session)
        if in_transaction is not None:
            await in_transaction(session, booking)

    logger.info(
        "Booked load %s for driver %s at $%.2f/mile as %s [%s]",
        load.load_id,
        driver_id,
        final_rate,
        booking.booking_id,
        ctx.request_id,
    )
    return booking


async def book_load(ctx: RequestContext, load_id: str, driver_id: str) -> Booking:
    """Direct booking at the load's instant-book rate, or its posted rate if it has none."""
    load = await ctx.loads.get(load_id)
    if load is None:
        raise NotFoundError("Load", load_id)
    if await ctx.drivers.get(driver_id) is None:
        raise NotFoundError("Driver", driver_id)
    if load.status != LoadStatus.AVAILABLE:
        raise ConflictError(
            f"Load {load_id} is {load.status.value} and cannot be booked",
            code="LOAD_NOT_AVAILABLE",
            details={"load_id": load_id, "status": load.status.value},
        )

    final_rate = load.book_now_rate or load.posted_rate
    return await commit_booking(ctx, load, driver_id, final_rate, {LoadStatus.AVAILABLE})


async def get_booking(ctx: RequestContext, booking_id: str) -> Booking:
    booking = await ctx.bookings.get_booking(booking_id)
    if booking is None:
        raise NotFoundError("Booking", booking_id)
    return booking
