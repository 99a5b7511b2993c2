"""
Push-notification channel for real-time inventory updates over WebSockets.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import WebSocket

from warehouse.logging_config import get_logger

logger = get_logger("notifier")

INVENTORY_EVENT = "inventory-updated"


class ConnectionManager:
    """Tracks connected WebSocket clients and broadcasts events to them."""

    def __init__(self):
        self._connections: set[WebSocket] = set()
        self._pending: set[asyncio.Task] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        """Accept and register a WebSocket client."""
        await websocket.accept()
        self._connections.add(websocket)
        logger.info(f"[WS] Client connected ({self.subscriber_count} total)")

    def disconnect(self, websocket: WebSocket) -> None:
        """Forget a WebSocket client."""
        if websocket in self._connections:
            self._connections.discard(websocket)
            logger.info(f"[WS] Client disconnected ({self.subscriber_count} total)")

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """
        Send a message to every connected client.

        Clients whose send fails are dropped.

        Returns:
            Number of clients the message reached
        """
        delivered = 0
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as exc:
                logger.warning(f"[WS] Dropping client after failed send: {exc}")
                self.disconnect(websocket)
        return delivered

    def publish(self, event_kind: str, item: Dict[str, Any]) -> None:
        """
        Schedule an inventory event broadcast without waiting for it.

        Args:
            event_kind: 'created', 'updated' or 'deleted'
            item: JSON-ready snapshot of the item
        """
        message = {
            "event": INVENTORY_EVENT,
            "type": event_kind,
            "item": item,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        task = asyncio.get_running_loop().create_task(self.broadcast(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for scheduled broadcasts to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """Flush pending broadcasts and close every client."""
        await self.drain()
        for websocket in list(self._connections):
            try:
                await websocket.close()
            except RuntimeError as exc:
                # Already closed by the client
                logger.debug(f"[WS] Close skipped: {exc}")
            self.disconnect(websocket)
