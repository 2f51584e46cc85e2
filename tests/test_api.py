"""
Integration tests for the REST API endpoints.

Runs the real app against the in-memory SQLite schema from ``conftest``;
only the DB session dependency is overridden.
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from src.domain.destinations import DESTINATIONS
from src.domain.distance import haversine_km
from src.domain.pricing import round_half_up


def _future(days: int = 5) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


async def _create_transport(client: AsyncClient, headers, **overrides) -> dict:
    body = {
        "booking_type": "transport",
        "from_location": "GUA",
        "to_location": "ANTIGUA",
        "scheduled_date": _future(),
        "scheduled_time": "10:00",
        "passenger_count": 1,
    }
    body.update(overrides)
    resp = await client.post("/api/v1/bookings", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ── Health / pricing ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_calculate_price(client: AsyncClient):
    resp = await client.post(
        "/api/v1/pricing/calculate",
        json={"from": "GUA", "to": "ANTIGUA", "passengers": 1, "roundTrip": False},
    )
    assert resp.status_code == 200
    data = resp.json()

    gua, antigua = DESTINATIONS["GUA"], DESTINATIONS["ANTIGUA"]
    distance = haversine_km(gua.latitude, gua.longitude, antigua.latitude, antigua.longitude)
    assert data["total_price"] == round_half_up(300 + distance * 5)
    assert data["distance_km"] == round_half_up(distance)
    assert data["distance_unit"] == "km"
    assert data["from_name"] == "Guatemala City"
    assert data["breakdown"]["round_trip_discount"] == "N/A"


@pytest.mark.asyncio
async def test_calculate_price_unknown_code(client: AsyncClient):
    resp = await client.post(
        "/api/v1/pricing/calculate", json={"from": "GUA", "to": "XYZ"}
    )
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Invalid destination code: XYZ"}


@pytest.mark.asyncio
async def test_calculate_price_rejects_zero_passengers(client: AsyncClient):
    resp = await client.post(
        "/api/v1/pricing/calculate",
        json={"from": "GUA", "to": "ANTIGUA", "passengers": 0},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_destinations(client: AsyncClient):
    resp = await client.get("/api/v1/pricing/destinations")
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["destinations"]) == 7
    assert data["pricing_tiers"][0] == {"max_km": 50, "base_price": 300, "per_km": 5}
    assert data["pricing_tiers"][-1]["max_km"] == "Unlimited"


# ── Auth ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_bookings_require_token(client: AsyncClient):
    resp = await client.get("/api/v1/bookings")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Authentication required"


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient):
    resp = await client.get(
        "/api/v1/user/balance", headers={"Authorization": "Bearer nope"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_forbidden_for_clients(client: AsyncClient, auth):
    resp = await client.get("/api/v1/admin/transactions", headers=auth["client"])
    assert resp.status_code == 403


# ── Bookings ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_transport_booking_is_priced(client: AsyncClient, auth):
    booking = await _create_transport(
        client, auth["client"], passenger_count=2, is_round_trip=True,
        return_date=_future(7),
    )
    quote = (
        await client.post(
            "/api/v1/pricing/calculate",
            json={"from": "GUA", "to": "ANTIGUA", "passengers": 2, "roundTrip": True},
        )
    ).json()
    assert booking["total_price"] == quote["total_price"]
    assert booking["status"] == "pending"
    assert booking["payment_status"] == "pending"


@pytest.mark.asyncio
async def test_create_booking_in_the_past(client: AsyncClient, auth):
    resp = await client.post(
        "/api/v1/bookings",
        json={
            "booking_type": "transport",
            "from_location": "GUA",
            "to_location": "ANTIGUA",
            "scheduled_date": (date.today() - timedelta(days=1)).isoformat(),
            "scheduled_time": "10:00",
        },
        headers=auth["client"],
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_list_bookings_is_scoped(client: AsyncClient, auth):
    await _create_transport(client, auth["client"])
    await _create_transport(client, auth["other"], to_location="TIKAL")

    mine = (await client.get("/api/v1/bookings", headers=auth["client"])).json()
    everything = (await client.get("/api/v1/bookings", headers=auth["admin"])).json()
    assert mine["total"] == 1
    assert everything["total"] == 2


@pytest.mark.asyncio
async def test_get_booking_of_another_client(client: AsyncClient, auth):
    booking = await _create_transport(client, auth["client"])
    resp = await client.get(f"/api/v1/bookings/{booking['id']}", headers=auth["other"])
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_get_booking_not_found(client: AsyncClient, auth):
    resp = await client.get("/api/v1/bookings/9999", headers=auth["admin"])
    assert resp.status_code == 404


# ── Payments ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_pay_from_balance(client: AsyncClient, auth):
    booking = await _create_transport(client, auth["client"])

    resp = await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"payment_method": "account_balance"},
        headers=auth["client"],
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "Payment successful"
    assert data["payment_status"] == "paid"
    assert data["new_balance"] == pytest.approx(1000 - booking["total_price"])
    assert data["transaction"]["amount"] == -booking["total_price"]

    again = await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"payment_method": "account_balance"},
        headers=auth["client"],
    )
    assert again.status_code == 400
    assert again.json()["detail"] == "Booking already paid"


@pytest.mark.asyncio
async def test_pay_with_insufficient_balance(client: AsyncClient, auth):
    booking = await _create_transport(client, auth["other"])  # balance 50

    resp = await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"payment_method": "account_balance"},
        headers=auth["other"],
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Insufficient balance"

    balance = (await client.get("/api/v1/user/balance", headers=auth["other"])).json()
    assert balance["balance"] == 50.0
    assert balance["transactions"] == []


# ── Deposits / review ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_deposit_review_flow(client: AsyncClient, auth):
    resp = await client.post(
        "/api/v1/transactions",
        json={"amount": 300, "payment_method": "bank_transfer", "reference": "W-1"},
        headers=auth["client"],
    )
    assert resp.status_code == 201
    tx = resp.json()
    assert tx["status"] == "pending"

    queue = (
        await client.get(
            "/api/v1/admin/transactions", params={"status": "pending"}, headers=auth["admin"]
        )
    ).json()
    assert [t["id"] for t in queue] == [tx["id"]]

    approve = await client.patch(
        f"/api/v1/transactions/{tx['id']}",
        json={"status": "approved", "admin_notes": "Received"},
        headers=auth["admin"],
    )
    assert approve.status_code == 200
    assert approve.json()["message"] == "Transaction approved and balance updated"
    assert approve.json()["new_balance"] == 1300.0
    reviewed = approve.json()["transaction"]
    assert reviewed["status"] == "approved"
    assert reviewed["admin_notes"] == "Received"
    assert reviewed["processed_at"] is not None

    retry = await client.patch(
        f"/api/v1/transactions/{tx['id']}",
        json={"status": "approved"},
        headers=auth["admin"],
    )
    assert retry.status_code == 409

    balance = (await client.get("/api/v1/user/balance", headers=auth["client"])).json()
    assert balance["balance"] == 1300.0


@pytest.mark.asyncio
async def test_clients_cannot_review(client: AsyncClient, auth):
    tx = (
        await client.post(
            "/api/v1/transactions",
            json={"amount": 10, "payment_method": "card"},
            headers=auth["client"],
        )
    ).json()
    resp = await client.patch(
        f"/api/v1/transactions/{tx['id']}",
        json={"status": "approved"},
        headers=auth["client"],
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_instant_top_up(client: AsyncClient, auth):
    resp = await client.post(
        "/api/v1/user/balance",
        json={"amount": 25, "payment_method": "card"},
        headers=auth["other"],
    )
    assert resp.status_code == 200
    assert resp.json()["new_balance"] == 75.0


# ── Refunds ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_wallet_refund(client: AsyncClient, auth):
    booking = await _create_transport(client, auth["client"])
    await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"payment_method": "account_balance"},
        headers=auth["client"],
    )

    resp = await client.post(
        f"/api/v1/bookings/{booking['id']}/refund",
        json={"refund_method": "wallet", "reason": "Weather"},
        headers=auth["admin"],
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["payment_status"] == "refunded"
    assert data["new_balance"] == pytest.approx(1000.0)

    detail = (
        await client.get(f"/api/v1/bookings/{booking['id']}", headers=auth["client"])
    ).json()
    assert detail["status"] == "cancelled"

    again = await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"payment_method": "account_balance"},
        headers=auth["client"],
    )
    assert again.status_code == 400
    assert again.json()["detail"] == "Booking can no longer be paid"
    balance = (await client.get("/api/v1/user/balance", headers=auth["client"])).json()
    assert balance["balance"] == pytest.approx(1000.0)


@pytest.mark.asyncio
async def test_second_bank_transfer_conflicts(client: AsyncClient, auth):
    booking = await _create_transport(client, auth["client"])
    url = f"/api/v1/bookings/{booking['id']}/pay"

    first = await client.post(
        url, json={"payment_method": "bank_transfer"}, headers=auth["client"]
    )
    assert first.status_code == 200
    assert first.json()["payment_status"] == "processing"

    for method in ("bank_transfer", "account_balance"):
        resp = await client.post(url, json={"payment_method": method}, headers=auth["client"])
        assert resp.status_code == 409

    queue = (
        await client.get(
            "/api/v1/admin/transactions", params={"status": "pending"}, headers=auth["admin"]
        )
    ).json()
    assert len(queue) == 1


@pytest.mark.asyncio
async def test_refund_status(client: AsyncClient, auth):
    booking = await _create_transport(client, auth["client"])
    price = booking["total_price"]
    await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"payment_method": "account_balance"},
        headers=auth["client"],
    )
    await client.post(
        f"/api/v1/bookings/{booking['id']}/refund",
        json={"amount": 100, "reason": "Delay"},
        headers=auth["admin"],
    )

    resp = await client.get(
        f"/api/v1/bookings/{booking['id']}/refund", headers=auth["client"]
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "partial"
    assert data["refunded_amount"] == 100.0
    assert data["remaining_amount"] == pytest.approx(price - 100)
    assert data["payment_status"] == "paid"
    assert data["last_refund"]["reference"] == f"Refund: {booking['id']} - Delay"

    denied = await client.get(
        f"/api/v1/bookings/{booking['id']}/refund", headers=auth["other"]
    )
    assert denied.status_code == 403
