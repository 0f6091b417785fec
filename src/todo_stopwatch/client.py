from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import websockets
from websockets.asyncio.client import ClientConnection

from .presentation import TodoStore
from .schemas import ClientEvent, ServerMessage

logger = logging.getLogger(__name__)

DEFAULT_URL = "ws://localhost:3001/ws"


# PUBLIC_INTERFACE
class TodoClient:
    """
    WebSocket client for the todo channel.

    Outbound helpers emit the named events; every inbound message is applied
    to `store` before it is returned.
    """

    def __init__(self, url: str = DEFAULT_URL, store: Optional[TodoStore] = None) -> None:
        self.url = url
        self.store = store or TodoStore()
        self._ws: Optional[ClientConnection] = None

    async def __aenter__(self) -> "TodoClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def connect(self) -> None:
        logger.debug("Connecting to %s", self.url)
        self._ws = await websockets.connect(self.url)
        logger.info("Connected to %s", self.url)

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def emit(self, event: ClientEvent, data: Any = None) -> None:
        if self._ws is None:
            raise RuntimeError("client is not connected")
        await self._ws.send(json.dumps({"event": event.value, "data": data}))

    async def receive(self, timeout: Optional[float] = None) -> Optional[ServerMessage]:
        """
        Wait for the next server message and apply it to the store.

        Returns None if nothing arrives within `timeout` seconds.
        """
        if self._ws is None:
            raise RuntimeError("client is not connected")
        try:
            raw = await asyncio.wait_for(self._ws.recv(), timeout)
        except asyncio.TimeoutError:
            return None
        message = ServerMessage.model_validate(json.loads(raw))
        self.store.apply(message)
        return message

    async def listen(self) -> None:
        """Apply server messages until the connection closes."""
        try:
            while True:
                await self.receive()
        except websockets.ConnectionClosed:
            logger.info("Connection closed")

    async def load_todos(self) -> None:
        await self.emit(ClientEvent.LOAD_TODOS)

    async def add_todo(self, text: str) -> None:
        await self.emit(ClientEvent.ADD_TODO, text)

    async def toggle_todo(self, todo_id: str) -> None:
        await self.emit(ClientEvent.TOGGLE_TODO, todo_id)

    async def delete_todo(self, todo_id: str) -> None:
        await self.emit(ClientEvent.DELETE_TODO, todo_id)

    async def start_timer(self, todo_id: str) -> None:
        self.store.optimistic_start(todo_id)
        await self.emit(ClientEvent.START_TIMER, todo_id)

    async def resume_timer(self, todo_id: str) -> None:
        await self.emit(ClientEvent.RESUME_TIMER, todo_id)

    async def stop_timer(self, todo_id: str) -> None:
        await self.emit(ClientEvent.STOP_TIMER, todo_id)
