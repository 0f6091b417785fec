from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    Storage-level representation of a Todo item, shared by every backend.

    Fields:
    - id: Opaque server-assigned identifier (ObjectId hex string)
    - text: Free-form todo text
    - completed: Boolean completion flag
    - timer_started: True while the stopwatch is running
    - timer_start_time: Epoch milliseconds of the current run; None when stopped
    - saved_time: Accumulated whole seconds from finished runs
    - created_at: Creation timestamp
    """

    id: str
    text: str
    completed: bool
    timer_started: bool
    timer_start_time: Optional[int]
    saved_time: int
    created_at: datetime
