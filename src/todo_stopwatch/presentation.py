"""
Client-side mirror of the todo list.

`TodoStore` holds the records received from the server, keyed by id, and an
elapsed-seconds cache for running stopwatches that a `Ticker` refreshes once a
second. Values shown between server updates are interpolated locally; the
server's records stay authoritative.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .schemas import ServerEvent, ServerMessage, TimerStarted, TimerStopped, TodoOut
from .timers import elapsed_seconds
from .utils import Clock, now_ms

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def format_time(seconds: int) -> str:
    """Format whole seconds as H:MM:SS, or M:SS below one hour."""
    hrs, rem = divmod(max(0, int(seconds)), 3600)
    mins, secs = divmod(rem, 60)
    if hrs > 0:
        return f"{hrs}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


def _running(todo: TodoOut) -> bool:
    return todo.timer_started and todo.timer_start_time is not None


# PUBLIC_INTERFACE
class TodoStore:
    """
    State container for one client, updated only through `apply`.
    """

    def __init__(self, clock: Clock = now_ms) -> None:
        self._clock = clock
        self.todos: Dict[str, TodoOut] = {}
        self.elapsed: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self.todos)

    def __iter__(self):
        return iter(self.todos.values())

    def get(self, todo_id: str) -> Optional[TodoOut]:
        return self.todos.get(todo_id)

    def apply(self, message: Union[ServerMessage, Mapping[str, Any]]) -> None:
        """Fold one server event into the local state."""
        if not isinstance(message, ServerMessage):
            message = ServerMessage.model_validate(message)
        data = message.data
        event = message.event

        if event == ServerEvent.TODOS_LIST:
            todos = [TodoOut.model_validate(t) for t in data or []]
            self.todos = {t.id: t for t in todos}
            now = self._clock()
            self.elapsed = {
                t.id: elapsed_seconds(t.timer_start_time, now)  # type: ignore[arg-type]
                for t in todos
                if _running(t)
            }
        elif event == ServerEvent.TODO_ADDED:
            todo = TodoOut.model_validate(data)
            self.todos[todo.id] = todo
        elif event == ServerEvent.TODO_UPDATED:
            todo = TodoOut.model_validate(data)
            if todo.id in self.todos:
                self.todos[todo.id] = todo
            if _running(todo):
                self.elapsed[todo.id] = elapsed_seconds(todo.timer_start_time, self._clock())  # type: ignore[arg-type]
            else:
                self.elapsed.pop(todo.id, None)
        elif event == ServerEvent.TODO_DELETED:
            self.todos.pop(data, None)
            self.elapsed.pop(data, None)
        elif event == ServerEvent.TIMER_STARTED:
            started = TimerStarted.model_validate(data)
            todo = self.todos.get(started.id)
            if todo is not None:
                self.todos[started.id] = todo.model_copy(
                    update={"timer_started": True, "timer_start_time": started.start_time}
                )
            self.elapsed[started.id] = 0
        elif event == ServerEvent.TIMER_STOPPED:
            stopped = TimerStopped.model_validate(data)
            todo = self.todos.get(stopped.id)
            if todo is not None:
                self.todos[stopped.id] = todo.model_copy(
                    update={"timer_started": False, "timer_start_time": None, "saved_time": stopped.saved_time}
                )
            self.elapsed.pop(stopped.id, None)

    def optimistic_start(self, todo_id: str) -> None:
        """Show a fresh run immediately, before the server confirms it."""
        todo = self.todos.get(todo_id)
        if todo is None:
            return
        self.todos[todo_id] = todo.model_copy(
            update={"timer_started": True, "timer_start_time": self._clock(), "saved_time": 0}
        )
        self.elapsed[todo_id] = 0

    def tick(self) -> None:
        """Refresh the elapsed cache of every running stopwatch."""
        now = self._clock()
        for todo in self.todos.values():
            if _running(todo):
                self.elapsed[todo.id] = elapsed_seconds(todo.timer_start_time, now)  # type: ignore[arg-type]

    def total_time(self, todo_id: str) -> int:
        todo = self.todos[todo_id]
        if _running(todo):
            return todo.saved_time + self.elapsed.get(todo_id, 0)
        return todo.saved_time

    def render_lines(self) -> List[str]:
        """One text row per todo: id, checkbox, text, time and available actions."""
        lines = []
        for todo in self.todos.values():
            box = "[x]" if todo.completed else "[ ]"
            if todo.completed:
                timer = format_time(todo.saved_time) if todo.saved_time > 0 else ""
                actions: List[str] = []
            elif _running(todo):
                timer = format_time(self.total_time(todo.id))
                actions = ["Stop"]
            elif todo.saved_time > 0:
                timer = format_time(todo.saved_time)
                actions = ["Resume", "Start New"]
            else:
                timer = ""
                actions = ["Start"]
            actions.append("Delete")
            parts = [todo.id, box, todo.text]
            if timer:
                parts.append(timer)
            parts.append(" ".join(f"[{a}]" for a in actions))
            lines.append("  ".join(parts))
        return lines


# PUBLIC_INTERFACE
class Ticker:
    """
    Calls `callback` every `interval` seconds on the running event loop until cancelled.
    """

    def __init__(self, callback: Callable[[], None], interval: float = 1.0) -> None:
        self._callback = callback
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._callback()
            except Exception:
                logger.exception("Ticker callback failed")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
