"""Integration tests for the booking service HTTP API."""
import json
from unittest.mock import AsyncMock, patch

import pytest

from booking_ledger.listings import ListingSnapshot
from booking_ledger.publisher import publisher

from conftest import BOOKER, OWNER, STRANGER, auth


def room_payload(**overrides):
    payload = {
        "bookingType": "room",
        "startDate": "2026-11-01T12:00:00Z",
        "endDate": "2026-11-04T12:00:00Z",
        "totalAmount": 3000,
        "paymentMethod": "upi",
        "bookerName": "Asha Rao",
        "bookerEmail": "booker@example.com",
        "bookerPhone": "9800000001",
        "listing": "room-101",
        "listingModel": "Room",
        "listingTitle": "Sunny room near the lake",
        "listingPrice": 1000,
        "owner": OWNER.id,
        "ownerName": "Kiran Shah",
        "ownerEmail": "owner@example.com",
        "ownerPhone": "9800000002",
        "numberOfGuests": 2,
    }
    payload.update(overrides)
    return payload


def vehicle_payload(**overrides):
    payload = room_payload(
        bookingType="vehicle",
        listing="vehicle-7",
        listingModel="Vehicle",
        listingTitle="Royal Enfield Classic 350",
        totalAmount=1800,
        pickupLocation="Bus stand",
        dropoffLocation="Airport",
    )
    payload.pop("numberOfGuests")
    payload.update(overrides)
    return payload


async def _create(client, payload):
    resp = await client.post("/bookings", json=payload, headers=auth(BOOKER))
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.integration
async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["service"] == "booking-service"


@pytest.mark.integration
async def test_requests_need_a_bearer_token(client):
    assert (await client.post("/bookings", json=room_payload())).status_code == 401
    resp = await client.get("/bookings/user", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.integration
async def test_create_room_booking(client):
    with patch.object(publisher, "booking_event", new_callable=AsyncMock) as mock_publish:
        body = await _create(client, room_payload(status="completed"))

    assert body["status"] == "pending"
    assert body["paymentStatus"] == "pending"
    assert body["bookerId"] == BOOKER.id
    assert body["ownerId"] == OWNER.id
    assert body["numberOfGuests"] == 2
    assert body["pickupLocation"] is None
    mock_publish.assert_awaited_once()
    assert mock_publish.await_args.args[0] == "booking.created"


@pytest.mark.integration
async def test_broker_outage_does_not_fail_create(client):
    with patch.object(publisher, "enabled", True), patch.object(publisher, "url", "amqp://broker.invalid/"), patch(
        "booking_ledger.publisher.aio_pika.connect_robust",
        new_callable=AsyncMock,
        side_effect=ConnectionError("refused"),
    ) as mock_connect:
        body = await _create(client, room_payload())

    assert body["status"] == "pending"
    mock_connect.assert_awaited_once()


@pytest.mark.integration
async def test_create_reports_all_missing_fields(client):
    payload = room_payload()
    del payload["bookerPhone"]
    del payload["listingTitle"]

    resp = await client.post("/bookings", json=payload, headers=auth(BOOKER))

    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Missing required fields"
    assert body["missingFields"] == ["bookerPhone", "listingTitle"]


@pytest.mark.integration
async def test_create_rejects_inverted_dates(client):
    resp = await client.post(
        "/bookings",
        json=room_payload(startDate="2026-11-04T12:00:00Z", endDate="2026-11-01T12:00:00Z"),
        headers=auth(BOOKER),
    )

    assert resp.status_code == 400
    assert resp.json()["code"] == "date_order"


@pytest.mark.integration
@pytest.mark.parametrize("literal", ["Infinity", "-Infinity", "NaN"])
async def test_create_rejects_non_finite_amount(client, literal):
    body = json.dumps(room_payload()).replace('"totalAmount": 3000', f'"totalAmount": {literal}')

    resp = await client.post(
        "/bookings",
        content=body,
        headers={**auth(BOOKER), "Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json()["invalidFields"] == ["totalAmount"]


@pytest.mark.integration
async def test_malformed_field_is_reported_with_missing_fields(client):
    payload = room_payload(totalAmount="abc")
    del payload["bookerPhone"]

    resp = await client.post("/bookings", json=payload, headers=auth(BOOKER))

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "invalid_fields"
    assert body["invalidFields"] == ["totalAmount"]
    assert body["missingFields"] == ["bookerPhone"]


@pytest.mark.integration
async def test_status_update_without_status_is_a_validation_error(client):
    booking = await _create(client, room_payload())

    resp = await client.put(f"/bookings/{booking['bookingId']}/status", json={}, headers=auth(OWNER))

    assert resp.status_code == 400
    assert resp.json()["code"] == "missing_fields"
    assert resp.json()["missingFields"] == ["status"]


@pytest.mark.integration
async def test_cannot_book_for_someone_else(client):
    resp = await client.post("/bookings", json=room_payload(booker="someone-else"), headers=auth(BOOKER))

    assert resp.status_code == 403


@pytest.mark.integration
async def test_overlapping_create_is_a_conflict(client):
    await _create(client, room_payload())

    resp = await client.post(
        "/bookings",
        json=room_payload(startDate="2026-11-02T12:00:00Z", endDate="2026-11-03T12:00:00Z"),
        headers=auth(BOOKER),
    )

    assert resp.status_code == 409
    assert resp.json()["code"] == "unavailable"


@pytest.mark.integration
async def test_room_booking_completion_credits_owner(client):
    booking = await _create(client, room_payload(totalAmount=3000))
    url = f"/bookings/{booking['bookingId']}/status"

    resp = await client.put(url, json={"status": "confirmed"}, headers=auth(OWNER))
    assert resp.json()["status"] == "confirmed"
    resp = await client.put(url, json={"status": "completed"}, headers=auth(OWNER))
    assert resp.json()["status"] == "completed"

    again = await client.put(url, json={"status": "completed"}, headers=auth(OWNER))
    assert again.status_code == 409

    summary = (await client.get("/earnings", headers=auth(OWNER))).json()["earnings"]
    assert summary == {"totalEarnings": 3000, "completedBookings": 1, "pendingPayout": 3000, "totalPayout": 0}

    history = (await client.get("/earnings/history", headers=auth(OWNER))).json()
    assert len(history["earningsHistory"]) == 1
    assert history["earningsHistory"][0]["bookingId"] == booking["bookingId"]
    assert history["pagination"]["totalItems"] == 1


@pytest.mark.integration
async def test_booker_cannot_update_status(client):
    booking = await _create(client, room_payload())

    resp = await client.put(
        f"/bookings/{booking['bookingId']}/status", json={"status": "confirmed"}, headers=auth(BOOKER)
    )

    assert resp.status_code == 403


@pytest.mark.integration
async def test_invalid_status_value(client):
    booking = await _create(client, room_payload())

    resp = await client.put(
        f"/bookings/{booking['bookingId']}/status", json={"status": "archived"}, headers=auth(OWNER)
    )

    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_status"


@pytest.mark.integration
async def test_vehicle_booking_cancelled_by_booker(client):
    booking = await _create(client, vehicle_payload())
    url = f"/bookings/{booking['bookingId']}/cancel"

    assert (await client.post(url, headers=auth(OWNER))).status_code == 403

    resp = await client.post(url, headers=auth(BOOKER))
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    assert (await client.post(url, headers=auth(BOOKER))).status_code == 409

    summary = (await client.get("/earnings", headers=auth(OWNER))).json()["earnings"]
    assert summary["completedBookings"] == 0
    history = (await client.get("/earnings/history", headers=auth(OWNER))).json()
    assert history["earningsHistory"] == []


@pytest.mark.integration
async def test_party_scoped_lists(client):
    room = await _create(client, room_payload())
    vehicle = await _create(client, vehicle_payload())

    mine = (await client.get("/bookings/user", headers=auth(BOOKER))).json()
    assert [b["bookingId"] for b in mine] == [vehicle["bookingId"], room["bookingId"]]
    assert mine[0]["ownerName"] == "Kiran Shah"
    assert mine[0]["ownerPhone"] == "9800000002"
    assert "bookerPhone" not in mine[0]

    owned = (await client.get("/bookings/owner", headers=auth(OWNER))).json()
    assert len(owned) == 2
    assert owned[0]["bookerEmail"] == "booker@example.com"
    assert "ownerPhone" not in owned[0]

    assert (await client.get("/bookings/owner", headers=auth(BOOKER))).json() == []


@pytest.mark.integration
async def test_get_booking_visibility(client):
    booking = await _create(client, room_payload())
    url = f"/bookings/{booking['bookingId']}"

    assert (await client.get(url, headers=auth(BOOKER))).status_code == 200
    assert (await client.get(url, headers=auth(OWNER))).status_code == 200
    assert (await client.get(url, headers=auth(STRANGER))).status_code == 403
    assert (await client.get("/bookings/nope", headers=auth(BOOKER))).status_code == 404


@pytest.mark.integration
async def test_payment_status_update(client):
    booking = await _create(client, room_payload())
    url = f"/bookings/{booking['bookingId']}/payment-status"

    resp = await client.put(url, json={"paymentStatus": "paid"}, headers=auth(OWNER))
    assert resp.status_code == 200
    assert resp.json()["paymentStatus"] == "paid"

    resp = await client.put(url, json={"paymentStatus": "pending"}, headers=auth(OWNER))
    assert resp.status_code == 409


@pytest.mark.integration
async def test_listing_availability(client):
    await _create(client, room_payload())
    params = {"startDate": "2026-11-03T00:00:00Z", "endDate": "2026-11-06T00:00:00Z"}

    busy = (await client.get("/listings/room-101/availability", params=params, headers=auth(STRANGER))).json()
    free = (await client.get("/listings/room-202/availability", params=params, headers=auth(STRANGER))).json()

    assert busy["available"] is False
    assert free["available"] is True


@pytest.mark.integration
async def test_create_uses_listing_directory(client, listing_client):
    listing_client.enabled = True
    listing_client.listings["room-101"] = ListingSnapshot(
        listing_id="room-101",
        listing_model="Room",
        owner_id=OWNER.id,
        title="Lake view room",
        price=1200,
        images=["https://img.example.com/a.jpg"],
    )

    body = await _create(client, room_payload())
    assert body["listingImage"] == "https://img.example.com/a.jpg"
    assert body["listingTitle"] == "Lake view room"

    resp = await client.post("/bookings", json=room_payload(listing="room-404"), headers=auth(BOOKER))
    assert resp.status_code == 404
