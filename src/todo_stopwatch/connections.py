from __future__ import annotations

import logging
from typing import List

from fastapi import WebSocket

from .schemas import ServerEvent, ServerMessage

logger = logging.getLogger(__name__)

# Events that describe a mutation and may be fanned out to every connection.
BROADCAST_EVENTS = frozenset(
    {
        ServerEvent.TODO_ADDED,
        ServerEvent.TODO_UPDATED,
        ServerEvent.TODO_DELETED,
        ServerEvent.TIMER_STARTED,
        ServerEvent.TIMER_STOPPED,
    }
)


# PUBLIC_INTERFACE
class ConnectionManager:
    """
    Tracks open channel connections and routes outbound messages.

    With broadcast disabled every reply goes back to the sender only. With it
    enabled, mutation events reach all open connections.
    """

    def __init__(self, broadcast: bool = False) -> None:
        self.broadcast = broadcast
        self._connections: List[WebSocket] = []

    @property
    def active(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.append(websocket)
        logger.info("Client connected (%d open)", self.active)

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._connections:
            self._connections.remove(websocket)
        logger.info("Client disconnected (%d open)", self.active)

    async def send(self, websocket: WebSocket, message: ServerMessage) -> None:
        await websocket.send_json(message.to_wire())

    async def dispatch(self, sender: WebSocket, messages: List[ServerMessage]) -> None:
        """Deliver a handler reply according to the broadcast setting."""
        for message in messages:
            if self.broadcast and message.event in BROADCAST_EVENTS:
                await self._broadcast(sender, message)
            else:
                await self.send(sender, message)

    async def _broadcast(self, sender: WebSocket, message: ServerMessage) -> None:
        wire = message.to_wire()
        # Non-senders of a start get the full record, saved_time included.
        others = wire
        if message.event == ServerEvent.TIMER_STARTED and message.record is not None:
            others = ServerMessage(event=ServerEvent.TODO_UPDATED, data=message.record).to_wire()
        for websocket in list(self._connections):
            try:
                await websocket.send_json(wire if websocket is sender else others)
            except Exception:
                logger.exception("Dropping connection after failed send")
                self.disconnect(websocket)
