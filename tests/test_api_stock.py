"""Tests for stock movement, count and reservation endpoints."""
import uuid

import pytest


@pytest.fixture
async def item(client, auth_headers, item_payload):
    response = await client.post("/api/v1/inventory", json=item_payload, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


class TestMovements:
    """Tests for POST /api/v1/stock/movements."""

    async def test_purchase(self, client, auth_headers, item):
        response = await client.post("/api/v1/stock/movements", json={
            "item_id": item["id"],
            "quantity": 15,
            "sub_type": "PURCHASE",
            "reason": "Supplier delivery",
            "reference": "PO-2001",
            "batch_number": "LOT-9"
        }, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["item"]["qty_on_hand"] == 25
        txn = data["transaction"]
        assert (txn["type"], txn["sub_type"], txn["quantity"]) == ("IN", "PURCHASE", 15)
        assert txn["reference"] == "PO-2001"
        assert txn["batch_number"] == "LOT-9"
        assert txn["direction"] == "INBOUND"

    async def test_sale_below_zero_rejected(self, client, auth_headers, item):
        response = await client.post("/api/v1/stock/movements", json={
            "item_id": item["id"], "quantity": -11, "sub_type": "SALE"
        }, headers=auth_headers)

        assert response.status_code == 400
        current = await client.get(f"/api/v1/inventory/{item['id']}", headers=auth_headers)
        assert current.json()["qty_on_hand"] == 10

    async def test_mismatched_sub_type(self, client, auth_headers, item):
        response = await client.post("/api/v1/stock/movements", json={
            "item_id": item["id"], "quantity": 2, "type": "IN", "sub_type": "DAMAGED"
        }, headers=auth_headers)

        assert response.status_code == 422
        assert "RETURN" in response.json()["details"]["allowed"]

    async def test_zero_quantity(self, client, auth_headers, item):
        response = await client.post("/api/v1/stock/movements", json={
            "item_id": item["id"], "quantity": 0
        }, headers=auth_headers)
        assert response.status_code == 422

    async def test_unknown_item(self, client, auth_headers):
        response = await client.post("/api/v1/stock/movements", json={
            "item_id": str(uuid.uuid4()), "quantity": 1
        }, headers=auth_headers)
        assert response.status_code == 404


class TestCount:
    """Tests for POST /api/v1/stock/adjust."""

    async def test_count_down(self, client, auth_headers, item):
        response = await client.post("/api/v1/stock/adjust", json={
            "item_id": item["id"], "new_quantity": 4, "reason": "Cycle count"
        }, headers=auth_headers)

        data = response.json()
        assert data["item"]["qty_on_hand"] == 4
        assert data["transaction"]["type"] == "OUT"
        assert data["transaction"]["quantity"] == 6
        assert data["transaction"]["reason"] == "Cycle count"

    async def test_unchanged_count_records_nothing(self, client, auth_headers, item):
        response = await client.post("/api/v1/stock/adjust", json={
            "item_id": item["id"], "new_quantity": 10
        }, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["transaction"] is None


class TestReservations:
    """Tests for reserve and release."""

    async def test_reserve_then_release(self, client, auth_headers, item):
        reserved = await client.post("/api/v1/stock/reserve", json={
            "item_id": item["id"], "quantity": 7, "reference": "SO-77"
        }, headers=auth_headers)
        assert reserved.status_code == 200
        assert reserved.json()["item"]["qty_available"] == 3
        assert reserved.json()["transaction"]["sub_type"] == "ORDER_RESERVE"

        released = await client.post("/api/v1/stock/release", json={
            "item_id": item["id"], "quantity": 7
        }, headers=auth_headers)
        assert released.json()["item"]["qty_reserved"] == 0
        assert released.json()["item"]["qty_available"] == 10

    async def test_over_reservation(self, client, auth_headers, item):
        response = await client.post("/api/v1/stock/reserve", json={
            "item_id": item["id"], "quantity": 11
        }, headers=auth_headers)
        assert response.status_code == 400

    async def test_counting_below_reserved(self, client, auth_headers, item):
        await client.post("/api/v1/stock/reserve", json={
            "item_id": item["id"], "quantity": 8
        }, headers=auth_headers)

        response = await client.post("/api/v1/stock/adjust", json={
            "item_id": item["id"], "new_quantity": 5
        }, headers=auth_headers)
        assert response.status_code == 400

    async def test_non_positive_quantity(self, client, auth_headers, item):
        response = await client.post("/api/v1/stock/reserve", json={
            "item_id": item["id"], "quantity": 0
        }, headers=auth_headers)
        assert response.status_code == 422
