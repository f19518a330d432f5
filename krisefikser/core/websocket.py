"""
WebSocket connection manager for real-time notifications.

Tracks active connections per user (private channel) and per topic
(e.g. ``position/{household_id}``), so server-side events reach connected
clients instantly.
"""

from typing import Dict, Set
from uuid import UUID
import asyncio
import json

from fastapi import WebSocket

from krisefikser.core.errors import DeliveryError

BROADCAST_TOPIC = "notifications"


class ConnectionManager:
    """Manages WebSocket connections per user and topic subscriptions."""

    def __init__(self):
        # user_id -> set of active WebSocket connections
        self._connections: Dict[UUID, Set[WebSocket]] = {}
        # topic -> set of subscribed WebSocket connections
        self._topics: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: UUID):
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self._connections.setdefault(user_id, set()).add(websocket)
            self._topics.setdefault(BROADCAST_TOPIC, set()).add(websocket)

    async def disconnect(self, websocket: WebSocket, user_id: UUID):
        """Remove a WebSocket connection and all of its subscriptions."""
        async with self._lock:
            self._discard(user_id, websocket)

    async def subscribe(self, websocket: WebSocket, topic: str):
        """Subscribe an already connected socket to a topic."""
        async with self._lock:
            self._topics.setdefault(topic, set()).add(websocket)

    async def unsubscribe(self, websocket: WebSocket, topic: str):
        async with self._lock:
            subscribers = self._topics.get(topic)
            if subscribers is not None:
                subscribers.discard(websocket)
                if not subscribers:
                    del self._topics[topic]

    async def send_to_user(self, user_id: UUID, message: dict) -> int:
        """
        Send a message to all connections for a specific user.

        Returns the number of connections reached. A user with no open
        connection is not an error (the notification is persisted anyway).

        Raises:
            DeliveryError: the user had connections and every send failed
        """
        async with self._lock:
            connections = self._connections.get(user_id, set()).copy()

        if not connections:
            return 0

        delivered, closed = await self._send_all(connections, json.dumps(message))

        if closed:
            async with self._lock:
                for ws in closed:
                    self._discard(user_id, ws)

        if not delivered:
            raise DeliveryError(f"All {len(closed)} connection(s) for user {user_id} failed")
        return delivered

    async def send_to_topic(self, topic: str, message: dict) -> int:
        """Send a message to every socket subscribed to topic. Returns sockets reached."""
        async with self._lock:
            subscribers = self._topics.get(topic, set()).copy()

        if not subscribers:
            return 0

        delivered, closed = await self._send_all(subscribers, json.dumps(message))

        if closed:
            async with self._lock:
                for ws in closed:
                    for user_id, conns in list(self._connections.items()):
                        if ws in conns:
                            self._discard(user_id, ws)
                    self._drop_from_topics(ws)
        return delivered

    def get_connected_count(self, user_id: UUID) -> int:
        """Get the number of active connections for a user."""
        return len(self._connections.get(user_id, set()))

    def get_topic_subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, set()))

    def get_total_connections(self) -> int:
        """Get total number of active connections across all users."""
        return sum(len(conns) for conns in self._connections.values())

    # -------------------------------------------------------------------------
    # Internals (caller holds the lock where noted)
    # -------------------------------------------------------------------------

    @staticmethod
    async def _send_all(sockets: Set[WebSocket], data: str) -> tuple[int, list[WebSocket]]:
        delivered = 0
        closed: list[WebSocket] = []
        for ws in sockets:
            try:
                await ws.send_text(data)
                delivered += 1
            except Exception:
                # Connection closed or errored
                closed.append(ws)
        return delivered, closed

    def _discard(self, user_id: UUID, websocket: WebSocket) -> None:
        """Lock must be held."""
        conns = self._connections.get(user_id)
        if conns is not None:
            conns.discard(websocket)
            if not conns:
                del self._connections[user_id]
        self._drop_from_topics(websocket)

    def _drop_from_topics(self, websocket: WebSocket) -> None:
        """Lock must be held."""
        for topic in list(self._topics):
            self._topics[topic].discard(websocket)
            if not self._topics[topic]:
                del self._topics[topic]


# Singleton instance
manager = ConnectionManager()
