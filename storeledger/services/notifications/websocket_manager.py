import asyncio
from concurrent.futures import Future
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from fastapi import WebSocket

logger = structlog.get_logger()


class WebSocketManager:
    """
    Manages WebSocket connections for real-time ledger events.

    Implements the EventPublisher protocol: ``publish`` may be called from
    synchronous request handlers running in a worker thread; delivery is
    scheduled on the event loop the connections live on.
    """

    def __init__(self):
        # Map of user_id -> list of WebSocket connections
        self._connections: Dict[str, List[WebSocket]] = {}
        # Map of WebSocket -> user_id (for cleanup)
        self._websocket_to_user: Dict[WebSocket, str] = {}
        self._lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, websocket: WebSocket, user_id: str = "anonymous"):
        """
        Accept a new WebSocket connection.

        Args:
            websocket: The WebSocket connection
            user_id: User identifier (for targeted messages)
        """
        await websocket.accept()
        self._loop = asyncio.get_running_loop()

        async with self._lock:
            self._connections.setdefault(user_id, []).append(websocket)
            self._websocket_to_user[websocket] = user_id

        logger.info("WebSocket connected", user_id=user_id)

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            user_id = self._websocket_to_user.pop(websocket, None)
            connections = self._connections.get(user_id, [])
            if websocket in connections:
                connections.remove(websocket)
            if user_id in self._connections and not connections:
                del self._connections[user_id]

        logger.info("WebSocket disconnected", user_id=user_id)

    async def broadcast(self, message: dict):
        """
        Broadcast a message to all connected clients.

        Args:
            message: Message to send (will be JSON encoded)
        """
        async with self._lock:
            all_connections = [
                (user_id, ws)
                for user_id, connections in self._connections.items()
                for ws in connections
            ]

        disconnected = []
        for user_id, websocket in all_connections:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning("Failed to deliver ledger event", user_id=user_id, error=str(e))
                disconnected.append(websocket)

        # Clean up
        for ws in disconnected:
            await self.disconnect(ws)

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        """Queue a ledger event for every connected client."""
        if not self._loop or self._loop.is_closed() or not self._connections:
            logger.debug("No WebSocket subscribers for event", topic=topic)
            return

        message = {
            "type": "ledger_event",
            "topic": topic,
            "data": payload,
            "timestamp": datetime.utcnow().isoformat(),
        }
        future = asyncio.run_coroutine_threadsafe(self.broadcast(message), self._loop)
        future.add_done_callback(lambda done: self.report_delivery(topic, done))
        logger.info("Published ledger event", topic=topic)

    @staticmethod
    def report_delivery(topic: str, future: Future) -> None:
        """Log a broadcast that was cancelled or raised on the event loop."""
        if future.cancelled():
            logger.warning("Ledger event delivery cancelled", topic=topic)
            return
        error = future.exception()
        if error is not None:
            logger.error("Ledger event delivery failed", topic=topic, error=str(error))

    @property
    def connection_count(self) -> int:
        """Get total number of active connections."""
        return sum(len(connections) for connections in self._connections.values())

    @property
    def user_count(self) -> int:
        """Get number of unique connected users."""
        return len(self._connections)


# Global instance
websocket_manager = WebSocketManager()
