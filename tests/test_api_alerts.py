"""Tests for alert, ledger and dashboard endpoints."""
import uuid
from decimal import Decimal


async def _create(client, auth_headers, payload, **overrides):
    body = dict(payload, **overrides)
    response = await client.post("/api/v1/inventory", json=body, headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestAlerts:
    """Tests for /api/v1/alerts."""

    async def test_list_orders_by_priority(self, client, auth_headers, item_payload):
        await _create(client, auth_headers, item_payload, sku="OVER-1", qty_on_hand=400)
        await _create(client, auth_headers, item_payload, sku="EMPTY-1", qty_on_hand=0)

        response = await client.get("/api/v1/alerts", headers=auth_headers)
        data = response.json()
        assert [alert["priority"] for alert in data["items"]] == ["critical", "low"]
        assert data["open_count"] == 2

    async def test_filter_by_priority(self, client, auth_headers, item_payload):
        await _create(client, auth_headers, item_payload, sku="OVER-1", qty_on_hand=400)
        await _create(client, auth_headers, item_payload, sku="EMPTY-1", qty_on_hand=0)

        response = await client.get(
            "/api/v1/alerts", params={"priority": "critical"}, headers=auth_headers
        )
        assert [alert["alert_type"] for alert in response.json()["items"]] == ["out_of_stock"]

    async def test_resolve_with_notes(self, client, auth_headers, item_payload, actor):
        await _create(client, auth_headers, item_payload, qty_on_hand=1)
        alert = (await client.get("/api/v1/alerts", headers=auth_headers)).json()["items"][0]

        response = await client.put(
            f"/api/v1/alerts/{alert['id']}/resolve",
            json={"notes": "Reorder placed", "action_taken": "ORDERED"},
            headers=auth_headers
        )

        data = response.json()
        assert data["is_resolved"] is True
        assert data["resolved_by"] == str(actor)
        assert data["resolution_notes"] == "Reorder placed"
        assert data["action_taken"] == "ORDERED"

        remaining = (await client.get("/api/v1/alerts", headers=auth_headers)).json()
        assert remaining["open_count"] == 0

    async def test_resolve_uses_shared_evaluator(self, app, client, auth_headers, item_payload, monkeypatch):
        """Test the route resolves through the evaluator the ledger also uses."""
        assert app.state.ledger.evaluator is app.state.evaluator
        await _create(client, auth_headers, item_payload, qty_on_hand=0)
        alert = (await client.get("/api/v1/alerts", headers=auth_headers)).json()["items"][0]

        calls = []
        real_resolve = app.state.evaluator.resolve

        async def tracked(*args, **kwargs):
            calls.append(args[1])
            return await real_resolve(*args, **kwargs)

        monkeypatch.setattr(app.state.evaluator, "resolve", tracked)
        response = await client.put(f"/api/v1/alerts/{alert['id']}/resolve", headers=auth_headers)

        assert response.status_code == 200
        assert [str(alert_id) for alert_id in calls] == [alert["id"]]
        again = await client.put(f"/api/v1/alerts/{alert['id']}/resolve", headers=auth_headers)
        assert again.status_code == 409

    async def test_resolve_unknown_alert(self, client, auth_headers):
        response = await client.put(f"/api/v1/alerts/{uuid.uuid4()}/resolve", headers=auth_headers)
        assert response.status_code == 404


class TestTransactions:
    """Tests for /api/v1/transactions."""

    async def test_get_by_transaction_id(self, client, auth_headers, item_payload):
        item = await _create(client, auth_headers, item_payload)
        listing = (await client.get(
            "/api/v1/transactions", params={"item_id": item["id"]}, headers=auth_headers
        )).json()
        txn_id = listing["items"][0]["transaction_id"]

        response = await client.get(f"/api/v1/transactions/{txn_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["item_sku"] == "SKU001"

    async def test_unknown_transaction(self, client, auth_headers):
        response = await client.get("/api/v1/transactions/TXN0", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Transaction not found"

    async def test_filter_by_type(self, client, auth_headers, item_payload):
        item = await _create(client, auth_headers, item_payload)
        await client.post("/api/v1/stock/reserve", json={
            "item_id": item["id"], "quantity": 2
        }, headers=auth_headers)

        response = await client.get(
            "/api/v1/transactions", params={"type": "RESERVE"}, headers=auth_headers
        )
        assert response.json()["total"] == 1


class TestDashboard:
    """Tests for /api/v1/dashboard/stats."""

    async def test_stats(self, client, auth_headers, item_payload):
        await _create(client, auth_headers, item_payload)
        await _create(client, auth_headers, item_payload, sku="LOW-1", qty_on_hand=2)
        await _create(client, auth_headers, item_payload, sku="EMPTY-1", qty_on_hand=0)

        response = await client.get("/api/v1/dashboard/stats", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_items"] == 3
        assert data["low_stock_count"] == 1
        assert data["out_of_stock_count"] == 1
        assert Decimal(data["total_value"]) == Decimal("48.00")
        assert len(data["recent_transactions"]) == 3
        assert data["open_alert_count"] == 2


class TestHealth:
    """Tests for public endpoints."""

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] is True
        assert data["subscribers"] == 0

    async def test_root(self, client):
        response = await client.get("/")
        assert response.json()["api_v1"] == "/api/v1"
