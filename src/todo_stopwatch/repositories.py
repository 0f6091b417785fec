from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId

from .models import TodoEntity
from .settings import Settings, get_settings

# Fields a repository update may touch; id and created_at are immutable.
MUTABLE_FIELDS = frozenset({"text", "completed", "timer_started", "timer_start_time", "saved_time"})


class StoreError(Exception):
    """Raised when the backing document store cannot serve a request."""


def new_todo(text: str) -> TodoEntity:
    """Build a freshly added record: not completed, no timer, no saved time."""
    return {
        "id": str(ObjectId()),
        "text": text,
        "completed": False,
        "timer_started": False,
        "timer_start_time": None,
        "saved_time": 0,
        "created_at": datetime.now(timezone.utc),
    }


def check_changes(changes: Mapping[str, Any]) -> None:
    unknown = set(changes) - MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    async def list_all(self) -> List[TodoEntity]:
        """Return every TodoEntity in store order."""

    @abstractmethod
    async def create(self, text: str) -> TodoEntity:
        """Create and return a new TodoEntity with default flags."""

    @abstractmethod
    async def get(self, todo_id: str) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    async def update(self, todo_id: str, changes: Mapping[str, Any]) -> Optional[TodoEntity]:
        """Apply field changes to an existing TodoEntity. Return updated entity or None if not found."""

    @abstractmethod
    async def delete(self, todo_id: str) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryRepository(Repository):
    """
    In-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TodoEntity] = {}

    async def list_all(self) -> List[TodoEntity]:
        with self._lock:
            # Return copies to avoid external mutation
            return [t.copy() for t in self._items.values()]

    async def create(self, text: str) -> TodoEntity:
        entity = new_todo(text)
        with self._lock:
            self._items[entity["id"]] = entity
        return entity.copy()

    async def get(self, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()

    async def update(self, todo_id: str, changes: Mapping[str, Any]) -> Optional[TodoEntity]:
        check_changes(changes)
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated.update(changes)  # type: ignore[typeddict-item]
            self._items[todo_id] = updated
            return updated.copy()

    async def delete(self, todo_id: str) -> bool:
        with self._lock:
            return self._items.pop(todo_id, None) is not None


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - mongo: MongoRepository backed by motor
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "mongo":
        from .db import MongoRepository

        return MongoRepository(settings.mongo_uri, settings.mongo_database)
    return InMemoryRepository()
