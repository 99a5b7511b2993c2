"""Tests for the WebSocket broadcast channel."""
from warehouse.services.ledger import LedgerEngine
from warehouse.services.notifier import INVENTORY_EVENT, ConnectionManager


class FakeWebSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.accepted = False
        self.closed = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(message)

    async def close(self):
        self.closed = True


class TestConnectionManager:
    """Tests for ConnectionManager."""

    async def test_broadcast_reaches_every_client(self):
        manager = ConnectionManager()
        first, second = FakeWebSocket(), FakeWebSocket()
        await manager.connect(first)
        await manager.connect(second)

        delivered = await manager.broadcast({"event": "ping"})

        assert delivered == 2
        assert first.accepted and second.accepted
        assert first.sent == second.sent == [{"event": "ping"}]

    async def test_failed_client_is_dropped(self):
        manager = ConnectionManager()
        healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)
        await manager.connect(healthy)
        await manager.connect(broken)

        assert await manager.broadcast({"event": "ping"}) == 1
        assert manager.subscriber_count == 1

    async def test_publish_wraps_item(self):
        manager = ConnectionManager()
        client = FakeWebSocket()
        await manager.connect(client)

        manager.publish("deleted", {"sku": "SKU001"})
        await manager.drain()

        message = client.sent[0]
        assert message["event"] == INVENTORY_EVENT
        assert message["type"] == "deleted"
        assert message["item"] == {"sku": "SKU001"}
        assert "timestamp" in message

    async def test_close_disconnects_everyone(self):
        manager = ConnectionManager()
        client = FakeWebSocket()
        await manager.connect(client)

        await manager.close()

        assert client.closed
        assert manager.subscriber_count == 0

    async def test_ledger_events_reach_subscribers(self, database, make_item, actor):
        manager = ConnectionManager()
        client = FakeWebSocket()
        await manager.connect(client)
        ledger = LedgerEngine(database, notifier=manager)

        created = await ledger.create_item(make_item(sku="LIVE-1"), actor)
        await ledger.adjust_quantity(created.item.id, -2, actor)
        await manager.drain()

        assert [m["type"] for m in client.sent] == ["created", "updated"]
        assert client.sent[-1]["item"]["qty_on_hand"] == 8

