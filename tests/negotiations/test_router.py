import pytest

from app.loads.models import LoadStatus

pytestmark = pytest.mark.asyncio


START_BODY = {"load_id": "LOAD-001", "driver_id": "DRIVER-001", "strategy": "moderate"}


async def test_start_negotiation(client, store):
    response = await client.post("/api/negotiations", json=START_BODY)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "in_progress"
    assert data["initial_offer"]["round"] == 1
    assert data["initial_offer"]["amount"] == 2.40
    assert store.loads["LOAD-001"].status == LoadStatus.IN_NEGOTIATION


async def test_start_invalid_strategy_returns_400(client):
    response = await client.post("/api/negotiations", json={**START_BODY, "strategy": "reckless"})
    assert response.status_code == 400


async def test_start_twice_returns_409(client):
    await client.post("/api/negotiations", json=START_BODY)
    response = await client.post("/api/negotiations", json=START_BODY)
    assert response.status_code == 409


async def test_get_negotiation(client):
    started = await client.post("/api/negotiations", json=START_BODY)
    negotiation_id = started.json()["negotiation_id"]

    response = await client.get(f"/api/negotiations/{negotiation_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["load_id"] == "LOAD-001"
    assert data["current_round"] == 1
    assert len(data["offers"]) == 1


async def test_get_negotiation_not_found(client):
    response = await client.get("/api/negotiations/neg-missing")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NEGOTIATION_NOT_FOUND"


async def test_broker_response_flow(client):
    started = await client.post("/api/negotiations", json=START_BODY)
    negotiation_id = started.json()["negotiation_id"]
    url = f"/api/negotiations/{negotiation_id}/broker-response"

    countered = await client.post(
        url, json={"broker_email": "dispatch@tql.com", "email_body": "Best I can do is $2.25/mile."}
    )
    assert countered.status_code == 200
    assert countered.json()["status"] == "in_progress"
    assert countered.json()["current_round"] == 3

    accepted = await client.post(
        url, json={"broker_email": "dispatch@tql.com", "email_body": "Fine, $2.40 per mile it is."}
    )
    assert accepted.status_code == 200
    data = accepted.json()
    assert data["status"] == "accepted"
    assert data["booking_id"]

    booking = await client.get(f"/api/bookings/{data['booking_id']}")
    assert booking.json()["final_rate"] == 2.40


async def test_broker_response_without_rate_returns_400(client):
    started = await client.post("/api/negotiations", json=START_BODY)
    url = f"/api/negotiations/{started.json()['negotiation_id']}/broker-response"
    response = await client.post(url, json={"broker_email": "dispatch@tql.com", "email_body": "Call me."})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "OFFER_NOT_FOUND"


async def test_simulate_broker_response(client):
    body = {
        "negotiation_id": "neg-demo",
        "driver_offer": 2.97,
        "posted_rate": 2.70,
        "market_rate_avg": 2.84,
        "round": 1,
        "max_rounds": 4,
    }
    response = await client.post("/api/negotiations/simulate-broker-response", json=body)
    assert response.status_code == 200
    data = response.json()
    assert data["action"] == "counter"
    assert data["broker_offer"] == pytest.approx(2.835)
    assert 30 <= data["delay_seconds"] <= 120
    assert "2.83" in data["message"] or "2.84" in data["message"]
