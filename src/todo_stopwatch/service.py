from __future__ import annotations

import logging
from typing import List, Optional

from . import timers
from .models import TodoEntity
from .repositories import Repository
from .utils import Clock, now_ms

logger = logging.getLogger(__name__)


class TodoNotFoundError(KeyError):
    """Raised when an operation targets an id that is not in the store."""

    def __init__(self, todo_id: str) -> None:
        super().__init__(todo_id)
        self.todo_id = todo_id


# PUBLIC_INTERFACE
class TodoService:
    """
    Todo operations over a repository: CRUD plus the stopwatch transitions.

    Each operation performs at most one read and one write. Transports decide
    how to report TodoNotFoundError; the service itself never swallows errors.
    """

    def __init__(self, repository: Repository, clock: Clock = now_ms) -> None:
        self.repository = repository
        self._clock = clock

    async def load(self) -> List[TodoEntity]:
        return await self.repository.list_all()

    async def get(self, todo_id: str) -> TodoEntity:
        return await self._require(todo_id)

    async def add(self, text: str) -> TodoEntity:
        todo = await self.repository.create(text)
        logger.debug("Added todo %s", todo["id"])
        return todo

    async def _require(self, todo_id: str) -> TodoEntity:
        todo = await self.repository.get(todo_id)
        if todo is None:
            raise TodoNotFoundError(todo_id)
        return todo

    async def _apply(self, todo_id: str, changes: timers.Changes) -> TodoEntity:
        updated = await self.repository.update(todo_id, changes)
        if updated is None:
            # Deleted between the read and the write.
            raise TodoNotFoundError(todo_id)
        return updated

    async def toggle(self, todo_id: str) -> TodoEntity:
        """Flip completion, freezing a running stopwatch when completing."""
        todo = await self._require(todo_id)
        return await self._apply(todo_id, timers.toggle_changes(todo, self._clock()))

    async def delete(self, todo_id: str) -> bool:
        return await self.repository.delete(todo_id)

    async def start(self, todo_id: str) -> TodoEntity:
        """Start a fresh run; saved_time is reset to zero."""
        await self._require(todo_id)
        return await self._apply(todo_id, timers.start_changes(self._clock()))

    async def resume(self, todo_id: str) -> TodoEntity:
        """Start a run that continues from the saved_time."""
        await self._require(todo_id)
        return await self._apply(todo_id, timers.resume_changes(self._clock()))

    async def stop(self, todo_id: str) -> Optional[TodoEntity]:
        """
        Stop the running stopwatch and return the updated record.

        Returns None when the stopwatch was not running; nothing is written.
        """
        todo = await self._require(todo_id)
        changes = timers.stop_changes(todo, self._clock())
        if changes is None:
            return None
        return await self._apply(todo_id, changes)
