"""
WebSocket channel pushing inventory changes to connected clients.
"""
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from warehouse.core.security import user_id_from_token
from warehouse.logging_config import get_logger

logger = get_logger("api.realtime")

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws/inventory")
async def inventory_updates(
    websocket: WebSocket,
    token: Optional[str] = Query(None)
):
    """
    Subscribe to ``inventory-updated`` events.

    Clients authenticate with ``?token=<access token>``. Sending ``ping``
    returns ``pong``; anything else is ignored.
    """
    try:
        user_id = user_id_from_token(token or "")
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager = websocket.app.state.notifier
    await manager.connect(websocket)
    await websocket.send_json({
        "event": "welcome",
        "user_id": str(user_id),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })

    try:
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        logger.debug(f"[WS] User {user_id} disconnected")
    finally:
        manager.disconnect(websocket)
