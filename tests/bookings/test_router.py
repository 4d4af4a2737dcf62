import pytest

pytestmark = pytest.mark.asyncio


async def test_get_booking(client):
    booked = await client.post("/api/loads/LOAD-001/book", json={"driver_id": "DRIVER-001"})
    booking_id = booked.json()["booking_id"]

    response = await client.get(f"/api/bookings/{booking_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["load_id"] == "LOAD-001"
    assert data["driver_id"] == "DRIVER-001"
    assert data["rate_con_doc_id"] == booked.json()["rate_con_doc_id"]


async def test_get_booking_not_found(client):
    response = await client.get("/api/bookings/booking-missing")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "BOOKING_NOT_FOUND"
