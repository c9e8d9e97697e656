"""
WebSocket broadcaster.

Subscribes to the engine event bus and pushes every event to all
connected dashboard clients as ``{"type": ..., "data": ...}`` JSON.
Clients whose socket fails are dropped.
"""

import logging
from typing import Any

import orjson
from fastapi import WebSocket

from arbsim.core.event_bus import Event, EventBus
from arbsim.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


def encode_message(message_type: str, data: Any) -> str:
    """Serialize a wire message."""
    return orjson.dumps(
        {"type": message_type, "data": data, "timestamp": get_timestamp_ms()}
    ).decode()


class Broadcaster:
    """Fan-out of engine events to WebSocket subscribers."""

    def __init__(self) -> None:
        self._clients: list[WebSocket] = []
        self._messages_sent = 0

    async def connect(self, websocket: WebSocket) -> None:
        """Accept and register a client."""
        await websocket.accept()
        self._clients.append(websocket)
        logger.info(f"Dashboard client connected ({len(self._clients)} total)")

    def disconnect(self, websocket: WebSocket) -> None:
        """Forget a client."""
        if websocket in self._clients:
            self._clients.remove(websocket)
            logger.info(f"Dashboard client disconnected ({len(self._clients)} total)")

    async def send(self, websocket: WebSocket, message_type: str, data: Any) -> None:
        """Send one message to one client."""
        await websocket.send_text(encode_message(message_type, data))

    async def broadcast(self, message_type: str, data: Any) -> int:
        """
        Send a message to every client.

        Returns:
            Number of clients that received it.
        """
        if not self._clients:
            return 0

        message = encode_message(message_type, data)
        delivered = 0
        disconnected = []
        for client in list(self._clients):
            try:
                await client.send_text(message)
                delivered += 1
            except Exception as e:
                logger.debug(f"Dropping client after send error: {e}")
                disconnected.append(client)

        for client in disconnected:
            self.disconnect(client)

        self._messages_sent += delivered
        return delivered

    async def on_event(self, event: Event[Any]) -> None:
        """Event bus handler."""
        await self.broadcast(event.type.value, event.payload)

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe to every engine event type."""
        event_bus.subscribe_all(self.on_event)

    @property
    def client_count(self) -> int:
        """Number of connected clients."""
        return len(self._clients)

    @property
    def messages_sent(self) -> int:
        """Messages delivered since start."""
        return self._messages_sent
