import asyncio

import pytest

from app.bookings.models import Booking
from app.bookings.service import book_load, get_booking, render_rate_confirmation
from app.negotiations.models import NegotiationStrategy, StartNegotiationRequest
from app.negotiations.service import start_negotiation
from app.errors import ConflictError, NotFoundError
from app.loads.models import LoadStatus
from tests.fakes import make_driver


async def test_direct_booking_uses_posted_rate(ctx, store):
    booking = await book_load(ctx, "LOAD-001", "DRIVER-001")

    assert booking.final_rate == 2.85
    assert booking.negotiation_id is None
    assert store.loads["LOAD-001"].status == LoadStatus.BOOKED
    assert store.bookings[booking.booking_id] == booking
    document = store.documents[booking.rate_con_doc_id]
    assert document.doc_type == "rate_confirmation"
    assert document.storage_key == f"rate-confirmations/{booking.booking_id}.txt"
    assert booking.booking_id in document.content


async def test_direct_booking_prefers_book_now_rate(ctx):
    booking = await book_load(ctx, "LOAD-004", "DRIVER-001")
    assert booking.final_rate == 2.25


async def test_unknown_load(ctx):
    with pytest.raises(NotFoundError):
        await book_load(ctx, "NOPE", "DRIVER-001")


async def test_unknown_driver(ctx):
    with pytest.raises(NotFoundError):
        await book_load(ctx, "LOAD-001", "NOBODY")


async def test_booked_load_conflicts(ctx):
    await book_load(ctx, "LOAD-001", "DRIVER-001")
    with pytest.raises(ConflictError):
        await book_load(ctx, "LOAD-001", "DRIVER-001")


async def test_load_in_negotiation_cannot_be_booked_directly(ctx, store):
    store.loads["LOAD-001"].status = LoadStatus.IN_NEGOTIATION
    with pytest.raises(ConflictError):
        await book_load(ctx, "LOAD-001", "DRIVER-001")


async def test_racing_bookings_yield_one_success(ctx, store):
    for i in range(2, 6):
        store.drivers[f"DRIVER-00{i}"] = make_driver(driver_id=f"DRIVER-00{i}")
    drivers = ["DRIVER-001", "DRIVER-002", "DRIVER-003", "DRIVER-004", "DRIVER-005"]

    results = await asyncio.gather(
        *[book_load(ctx, "LOAD-002", driver_id) for driver_id in drivers],
        return_exceptions=True,
    )

    bookings = [r for r in results if isinstance(r, Booking)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(bookings) == 1
    assert len(conflicts) == len(drivers) - 1
    assert [b.load_id for b in store.bookings.values()] == ["LOAD-002"]
    assert len(store.documents) == 1


async def test_failed_insert_rolls_back_load_status(ctx, store):
    existing = await book_load(ctx, "LOAD-002", "DRIVER-001")
    # Simulate a stale status: the load looks available again but its booking exists
    store.loads["LOAD-002"].status = LoadStatus.AVAILABLE

    with pytest.raises(ConflictError):
        await book_load(ctx, "LOAD-002", "DRIVER-001")

    assert store.loads["LOAD-002"].status == LoadStatus.AVAILABLE
    assert list(store.bookings) == [existing.booking_id]
    assert len(store.documents) == 1


async def test_get_booking(ctx):
    booking = await book_load(ctx, "LOAD-001", "DRIVER-001")
    assert await get_booking(ctx, booking.booking_id) == booking
    with pytest.raises(NotFoundError):
        await get_booking(ctx, "booking-missing")


async def test_rate_confirmation_content(ctx, store):
    booking = await book_load(ctx, "LOAD-004", "DRIVER-001")
    text = render_rate_confirmation(store.loads["LOAD-004"], booking)
    assert "Load ID: LOAD-004" in text
    assert "Rate per Mile: $2.25" in text
    assert "Company: TQL Freight" in text
    assert "Fort Worth, TX" in text
    assert text.endswith("Direct Booking")


async def test_booking_and_negotiation_race_for_one_load(ctx, store):
    start = StartNegotiationRequest(
        load_id="LOAD-002", driver_id="DRIVER-001", strategy=NegotiationStrategy.MODERATE
    )
    results = await asyncio.gather(
        book_load(ctx, "LOAD-002", "DRIVER-001"),
        start_negotiation(ctx, start),
        return_exceptions=True,
    )

    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(conflicts) == 1
    if isinstance(results[0], Booking):
        assert store.loads["LOAD-002"].status == LoadStatus.BOOKED
        assert store.negotiations == {}
    else:
        assert store.loads["LOAD-002"].status == LoadStatus.IN_NEGOTIATION
        assert store.bookings == {}


async def test_aborted_booking_keeps_concurrent_commit(ctx, store):
    stale = await book_load(ctx, "LOAD-002", "DRIVER-001")
    store.loads["LOAD-002"].status = LoadStatus.AVAILABLE

    fresh, failed = await asyncio.gather(
        book_load(ctx, "LOAD-001", "DRIVER-001"),
        book_load(ctx, "LOAD-002", "DRIVER-001"),
        return_exceptions=True,
    )

    assert isinstance(fresh, Booking)
    assert isinstance(failed, ConflictError)
    assert store.loads["LOAD-001"].status == LoadStatus.BOOKED
    assert store.loads["LOAD-002"].status == LoadStatus.AVAILABLE
    assert set(store.bookings) == {stale.booking_id, fresh.booking_id}
    assert len(store.documents) == 2
