from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from storeledger.services.notifications.websocket_manager import websocket_manager

router = APIRouter()


@router.websocket("/ledger")
async def websocket_ledger_events(websocket: WebSocket, user_id: str = "anonymous"):
    """
    WebSocket endpoint for real-time ledger events.

    Connect with: ws://host/api/v1/ws/ledger?user_id=<user_id>

    Messages sent to client:
    {
        "type": "ledger_event",
        "topic": "receivable.payment_settled",
        "data": {...},
        "timestamp": "..."
    }
    """
    await websocket_manager.connect(websocket, user_id)

    try:
        while True:
            data = await websocket.receive_text()

            # Keepalive
            if data == "ping":
                await websocket.send_text("pong")

    except WebSocketDisconnect:
        await websocket_manager.disconnect(websocket)


@router.get("/stats", response_model=dict)
async def websocket_stats():
    """Get WebSocket connection statistics."""
    return {
        "active_connections": websocket_manager.connection_count,
        "unique_users": websocket_manager.user_count,
    }
