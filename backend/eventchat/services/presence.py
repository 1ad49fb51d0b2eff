"""
Process-wide registry of connected real-time clients.

Maps a user id to the websocket it is currently connected with. A user has at
most one connection of interest; a newer connect replaces the older one.
"""
import logging
import threading
from typing import Any, Dict, List, Optional
from starlette.websockets import WebSocketDisconnect

logger = logging.getLogger(__name__)

ONLINE_USERS_EVENT = "getOnlineUsers"
NEW_NOTIFICATION_EVENT = "newNotification"


class PresenceRegistry:
    """Concurrency-safe user id -> connection map with broadcast."""

    def __init__(self):
        self._connections: Dict[int, Any] = {}
        self._lock = threading.Lock()

    def get_connection(self, user_id: int) -> Optional[Any]:
        with self._lock:
            return self._connections.get(user_id)

    def online_user_ids(self) -> List[int]:
        with self._lock:
            return list(self._connections.keys())

    def is_online(self, user_id: int) -> bool:
        return self.get_connection(user_id) is not None

    async def connect(self, user_id: int, connection: Any) -> None:
        """Register a connection (last write wins) and broadcast presence."""
        with self._lock:
            self._connections[user_id] = connection
        logger.info(f"User {user_id} connected")
        await self.broadcast_online_users()

    async def disconnect(self, user_id: int, connection: Any = None) -> None:
        """
        Drop a user's connection and broadcast presence.

        When ``connection`` is given and the user has since reconnected with a
        different one, the newer connection is kept.
        """
        with self._lock:
            current = self._connections.get(user_id)
            if current is not None and (connection is None or current is connection):
                del self._connections[user_id]
        logger.info(f"User {user_id} disconnected")
        await self.broadcast_online_users()

    async def send_to(self, user_id: int, message: dict) -> bool:
        """Push a message to one user. Returns False if it was not delivered."""
        connection = self.get_connection(user_id)
        if connection is None:
            return False
        return await self._send(user_id, connection, message)

    async def broadcast(self, message: dict) -> None:
        """Push a message to every connected client."""
        with self._lock:
            targets = list(self._connections.items())
        for user_id, connection in targets:
            await self._send(user_id, connection, message)

    async def broadcast_online_users(self) -> None:
        await self.broadcast({"event": ONLINE_USERS_EVENT, "data": self.online_user_ids()})

    async def _send(self, user_id: int, connection: Any, message: dict) -> bool:
        try:
            await connection.send_json(message)
            return True
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.warning(f"Dropped push to user {user_id}: {e}")
            return False

    def clear(self) -> None:
        with self._lock:
            self._connections.clear()


presence = PresenceRegistry()
