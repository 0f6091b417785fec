from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Wire names are camelCase (and `_id` for the identifier); Python code uses snake_case.
_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class ClientEvent(str, Enum):
    """Named events a client may send over the channel."""

    LOAD_TODOS = "load-todos"
    ADD_TODO = "add-todo"
    TOGGLE_TODO = "toggle-todo"
    DELETE_TODO = "delete-todo"
    START_TIMER = "start-timer"
    RESUME_TIMER = "resume-timer"
    STOP_TIMER = "stop-timer"


# PUBLIC_INTERFACE
class ServerEvent(str, Enum):
    """Named events the server emits over the channel."""

    TODOS_LIST = "todos-list"
    TODO_ADDED = "todo-added"
    TODO_UPDATED = "todo-updated"
    TODO_DELETED = "todo-deleted"
    TIMER_STARTED = "timer-started"
    TIMER_STOPPED = "timer-stopped"


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item over HTTP.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"text": "Write the weekly report"}})

    text: str = Field(..., description="Todo text; any string is accepted")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Todo item as it travels over the channel and the REST API.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "_id": "665f1c2e9b1e8a3d4c5b6a79",
                "text": "Write the weekly report",
                "completed": False,
                "timerStarted": True,
                "timerStartTime": 1717500000000,
                "savedTime": 125,
                "createdAt": "2024-06-04T10:15:30.123456",
            }
        },
    )

    id: str = Field(..., alias="_id", description="Opaque identifier of the todo item")
    text: str = Field(..., description="Todo text")
    completed: bool = Field(default=False, description="Completion status flag")
    timer_started: bool = Field(default=False, description="True while the stopwatch runs")
    timer_start_time: Optional[int] = Field(
        default=None, description="Epoch milliseconds at which the current run started"
    )
    saved_time: int = Field(default=0, description="Accumulated whole seconds")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")


class TimerStarted(BaseModel):
    """Payload of `timer-started`."""

    model_config = _WIRE_CONFIG

    id: str
    start_time: int


class TimerStopped(BaseModel):
    """Payload of `timer-stopped`."""

    model_config = _WIRE_CONFIG

    id: str
    saved_time: int


# PUBLIC_INTERFACE
class ClientMessage(BaseModel):
    """
    One inbound channel frame: `{"event": "<name>", "data": <payload>}`.

    The payload is the todo text for `add-todo`, the todo id for the id-based
    events, and absent for `load-todos`.
    """

    event: ClientEvent
    data: Any = None


# PUBLIC_INTERFACE
class ServerMessage(BaseModel):
    """One outbound channel frame."""

    event: ServerEvent
    data: Any = None
    # Full record behind a compact payload; never sent on the wire.
    record: Optional[TodoOut] = None

    def to_wire(self) -> Dict[str, Any]:
        """Return the JSON-ready frame, payload models serialized by alias."""
        return {"event": self.event.value, "data": jsonable_encoder(self.data)}
