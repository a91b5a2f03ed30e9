"""
Change notifier for the replica service.

Tracks open websocket connections per user and tells them when that user's
stored document changes.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

logger = logging.getLogger(__name__)


class ChangeNotifier:
    """Registry of websocket connections keyed by user."""

    def __init__(self):
        self.user_connections: Dict[str, Set[WebSocket]] = {}

    @property
    def connection_count(self) -> int:
        return sum(len(connections) for connections in self.user_connections.values())

    async def connect(self, websocket: WebSocket, user_id: str):
        """Register an accepted connection and hold it until the client leaves."""
        await websocket.send_json({
            "type": "connection_established",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "user_id": user_id,
        })

        self.user_connections.setdefault(user_id, set()).add(websocket)
        logger.info(f"User {user_id} connected. Total connections: {self.connection_count}")

        try:
            # Clients do not send anything meaningful; read until they go away
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info(f"Connection with user {user_id} closed")
        finally:
            self.disconnect(websocket, user_id)

    def disconnect(self, websocket: WebSocket, user_id: str):
        connections = self.user_connections.get(user_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            del self.user_connections[user_id]
        logger.info(f"User {user_id} disconnected. Remaining connections: {self.connection_count}")

    async def broadcast_to_user(self, user_id: str, message: Dict[str, Any]) -> int:
        """Send ``message`` to every connection of ``user_id``; returns deliveries."""
        connections = self.user_connections.get(user_id)
        if not connections:
            return 0

        message = {**message, "timestamp": datetime.now(timezone.utc).isoformat()}
        delivered = 0
        disconnected = set()

        for connection in list(connections):
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as e:
                logger.error(f"Error sending message to user {user_id}: {e}")
                disconnected.add(connection)

        for connection in disconnected:
            self.disconnect(connection, user_id)

        return delivered

    async def notify_user_data_updated(self, user_id: str, updated_at: datetime) -> int:
        delivered = await self.broadcast_to_user(user_id, {
            "type": "user_data_updated",
            "identity": user_id,
            "updatedAt": updated_at.isoformat(),
        })
        logger.info(f"user_data_updated sent to {delivered} connection(s) of user {user_id}")
        return delivered


# Global notifier instance
change_notifier = ChangeNotifier()
