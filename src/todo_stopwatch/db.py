from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from .models import TodoEntity
from .repositories import Repository, StoreError, check_changes, new_todo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Fields:
    collection: str = "todos"
    id: str = "_id"
    text: str = "text"
    completed: str = "completed"
    timer_started: str = "timerStarted"
    timer_start_time: str = "timerStartTime"
    saved_time: str = "savedTime"
    created_at: str = "createdAt"


_F = _Fields()


def _object_id(todo_id: str) -> Optional[ObjectId]:
    # Ids that cannot be ObjectIds cannot match any document.
    if not ObjectId.is_valid(todo_id):
        return None
    return ObjectId(todo_id)


class MongoRepository(Repository):
    """
    Document-store repository on one MongoDB collection, using the motor async driver.
    """

    def __init__(self, uri: str, database: str, client: Optional[AsyncIOMotorClient] = None) -> None:
        self._client = client or AsyncIOMotorClient(uri, tz_aware=True)
        self._collection = self._client[database][_F.collection]

    def _doc_to_entity(self, doc: Mapping[str, Any]) -> TodoEntity:
        start = doc.get(_F.timer_start_time)
        return {
            "id": str(doc[_F.id]),
            "text": str(doc.get(_F.text) or ""),
            "completed": bool(doc.get(_F.completed)),
            "timer_started": bool(doc.get(_F.timer_started)),
            "timer_start_time": int(start) if start is not None else None,
            "saved_time": int(doc.get(_F.saved_time) or 0),
            "created_at": doc.get(_F.created_at),  # type: ignore[typeddict-item]
        }

    def _changes_to_doc(self, changes: Mapping[str, Any]) -> Dict[str, Any]:
        return {getattr(_F, name): value for name, value in changes.items()}

    async def list_all(self) -> List[TodoEntity]:
        try:
            docs = await self._collection.find().to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"listing todos failed: {e}") from e
        return [self._doc_to_entity(d) for d in docs]

    async def create(self, text: str) -> TodoEntity:
        entity = new_todo(text)
        doc = {
            _F.id: ObjectId(entity["id"]),
            _F.text: entity["text"],
            _F.completed: entity["completed"],
            _F.timer_started: entity["timer_started"],
            _F.timer_start_time: entity["timer_start_time"],
            _F.saved_time: entity["saved_time"],
            _F.created_at: entity["created_at"],
        }
        try:
            await self._collection.insert_one(doc)
        except PyMongoError as e:
            raise StoreError(f"creating todo failed: {e}") from e
        return entity

    async def get(self, todo_id: str) -> Optional[TodoEntity]:
        oid = _object_id(todo_id)
        if oid is None:
            return None
        try:
            doc = await self._collection.find_one({_F.id: oid})
        except PyMongoError as e:
            raise StoreError(f"loading todo {todo_id} failed: {e}") from e
        return self._doc_to_entity(doc) if doc else None

    async def update(self, todo_id: str, changes: Mapping[str, Any]) -> Optional[TodoEntity]:
        check_changes(changes)
        oid = _object_id(todo_id)
        if oid is None:
            return None
        try:
            doc = await self._collection.find_one_and_update(
                {_F.id: oid},
                {"$set": self._changes_to_doc(changes)},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise StoreError(f"updating todo {todo_id} failed: {e}") from e
        return self._doc_to_entity(doc) if doc else None

    async def delete(self, todo_id: str) -> bool:
        oid = _object_id(todo_id)
        if oid is None:
            return False
        try:
            result = await self._collection.delete_one({_F.id: oid})
        except PyMongoError as e:
            raise StoreError(f"deleting todo {todo_id} failed: {e}") from e
        return result.deleted_count > 0

    async def close(self) -> None:
        logger.debug("Closing MongoDB client")
        self._client.close()
