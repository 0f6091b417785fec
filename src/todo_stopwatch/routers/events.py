from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, WebSocket

from ..connections import ConnectionManager
from ..dependencies import get_connection_manager, get_event_handler
from ..handlers import TodoEventHandler

logger = logging.getLogger(__name__)

router = APIRouter()


# PUBLIC_INTERFACE
@router.websocket("/ws")
async def todo_channel(
    websocket: WebSocket,
    handler: TodoEventHandler = Depends(get_event_handler),
    manager: ConnectionManager = Depends(get_connection_manager),
) -> None:
    """
    Bidirectional named-event channel.

    Client sends frames like:
        {"event": "add-todo", "data": "Write the weekly report"}
        {"event": "stop-timer", "data": "665f1c2e9b1e8a3d4c5b6a79"}

    Server answers with:
        {"event": "todo-added", "data": {...todo...}}
        {"event": "timer-stopped", "data": {"id": "...", "savedTime": 125}}

    Text and binary frames are both decoded as UTF-8 JSON. Frames that cannot be
    decoded or handled are logged and dropped; the connection stays open.
    """
    await manager.connect(websocket)
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            try:
                text = frame.get("text")
                if text is None:
                    text = (frame.get("bytes") or b"").decode("utf-8")
                raw = json.loads(text)
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning("Ignoring undecodable frame: %s", e)
                continue
            reply = await handler.handle(raw)
            await manager.dispatch(websocket, reply)
    finally:
        manager.disconnect(websocket)
