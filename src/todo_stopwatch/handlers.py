"""
Channel event handler.

Turns one inbound `ClientMessage` into the outbound `ServerMessage`s that
answer it. Failures of any kind are logged and produce no messages: the
channel carries no error events.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List

from pydantic import ValidationError

from .models import TodoEntity
from .schemas import ClientEvent, ClientMessage, ServerEvent, ServerMessage, TimerStarted, TimerStopped, TodoOut
from .service import TodoNotFoundError, TodoService

logger = logging.getLogger(__name__)

Reply = List[ServerMessage]


class MalformedMessageError(ValueError):
    """Raised when an event's payload has the wrong shape."""


def _require_str(event: ClientEvent, data: Any) -> str:
    if not isinstance(data, str):
        raise MalformedMessageError(f"{event.value} expects a string payload, got {type(data).__name__}")
    return data


# PUBLIC_INTERFACE
class TodoEventHandler:
    """Dispatches named channel events to the TodoService."""

    def __init__(self, service: TodoService) -> None:
        self.service = service
        self._handlers: Dict[ClientEvent, Callable[[Any], Awaitable[Reply]]] = {
            ClientEvent.LOAD_TODOS: self.load_todos,
            ClientEvent.ADD_TODO: self.add_todo,
            ClientEvent.TOGGLE_TODO: self.toggle_todo,
            ClientEvent.DELETE_TODO: self.delete_todo,
            ClientEvent.START_TIMER: self.start_timer,
            ClientEvent.RESUME_TIMER: self.resume_timer,
            ClientEvent.STOP_TIMER: self.stop_timer,
        }

    async def handle(self, raw: Any) -> Reply:
        """
        Validate and dispatch one inbound frame.

        Returns the messages to emit, possibly none. Never raises.
        """
        try:
            message = ClientMessage.model_validate(raw)
        except ValidationError as e:
            logger.warning("Ignoring malformed channel message: %s", e.errors(include_url=False))
            return []

        logger.debug("Dispatching %s", message.event.value)
        handler = self._handlers[message.event]
        try:
            return await handler(message.data)
        except TodoNotFoundError as e:
            logger.debug("%s: todo %s not found", message.event.value, e.todo_id)
        except MalformedMessageError as e:
            logger.warning("Ignoring %s: %s", message.event.value, e)
        except Exception:
            logger.exception("Error handling %s", message.event.value)
        return []

    async def load_todos(self, data: Any = None) -> Reply:
        todos = await self.service.load()
        return [ServerMessage(event=ServerEvent.TODOS_LIST, data=[TodoOut(**t) for t in todos])]

    async def add_todo(self, data: Any) -> Reply:
        text = _require_str(ClientEvent.ADD_TODO, data)
        todo = await self.service.add(text)
        return [ServerMessage(event=ServerEvent.TODO_ADDED, data=TodoOut(**todo))]

    async def toggle_todo(self, data: Any) -> Reply:
        todo = await self.service.toggle(_require_str(ClientEvent.TOGGLE_TODO, data))
        return [ServerMessage(event=ServerEvent.TODO_UPDATED, data=TodoOut(**todo))]

    async def delete_todo(self, data: Any) -> Reply:
        todo_id = _require_str(ClientEvent.DELETE_TODO, data)
        await self.service.delete(todo_id)
        # Emitted whether or not a record was removed; clients drop the id either way.
        return [ServerMessage(event=ServerEvent.TODO_DELETED, data=todo_id)]

    async def start_timer(self, data: Any) -> Reply:
        todo = await self.service.start(_require_str(ClientEvent.START_TIMER, data))
        return [self._timer_started(todo)]

    async def resume_timer(self, data: Any) -> Reply:
        todo = await self.service.resume(_require_str(ClientEvent.RESUME_TIMER, data))
        return [self._timer_started(todo)]

    async def stop_timer(self, data: Any) -> Reply:
        todo = await self.service.stop(_require_str(ClientEvent.STOP_TIMER, data))
        if todo is None:
            return []
        payload = TimerStopped(id=todo["id"], saved_time=todo["saved_time"])
        return [ServerMessage(event=ServerEvent.TIMER_STOPPED, data=payload)]

    @staticmethod
    def _timer_started(todo: TodoEntity) -> ServerMessage:
        payload = TimerStarted(id=todo["id"], start_time=todo["timer_start_time"])
        return ServerMessage(event=ServerEvent.TIMER_STARTED, data=payload, record=TodoOut(**todo))
