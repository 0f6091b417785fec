"""
Stopwatch transitions for a single todo record.

Every function here is pure: it takes the current record (and a clock reading
in epoch milliseconds) and returns the field changes to persist. Callers write
the changes with a single repository update, so concurrent transitions on the
same record resolve as last write wins.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from .models import TodoEntity

Changes = Dict[str, Any]


# PUBLIC_INTERFACE
def elapsed_seconds(start_ms: int, now_ms: int) -> int:
    """Whole seconds between two epoch-millisecond readings, never negative."""
    return max(0, (now_ms - start_ms) // 1000)


# PUBLIC_INTERFACE
def is_running(todo: TodoEntity) -> bool:
    """True when the record has a live stopwatch run."""
    return bool(todo["timer_started"]) and todo["timer_start_time"] is not None


def _fold_elapsed(todo: TodoEntity, now_ms: int) -> Changes:
    start = todo["timer_start_time"]
    assert start is not None
    return {
        "saved_time": (todo["saved_time"] or 0) + elapsed_seconds(start, now_ms),
        "timer_started": False,
        "timer_start_time": None,
    }


# PUBLIC_INTERFACE
def toggle_changes(todo: TodoEntity, now_ms: int) -> Changes:
    """
    Flip the completion flag.

    Completing a todo whose stopwatch is running first folds the elapsed time
    into saved_time and clears the running state. Un-completing never touches
    the timer fields.
    """
    changes: Changes = {}
    if not todo["completed"] and is_running(todo):
        changes.update(_fold_elapsed(todo, now_ms))
    changes["completed"] = not todo["completed"]
    return changes


# PUBLIC_INTERFACE
def start_changes(now_ms: int) -> Changes:
    """Begin a fresh run. Any previously accumulated time is discarded."""
    return {"timer_started": True, "timer_start_time": now_ms, "saved_time": 0}


# PUBLIC_INTERFACE
def resume_changes(now_ms: int) -> Changes:
    """Begin a new run on top of the accumulated saved_time."""
    return {"timer_started": True, "timer_start_time": now_ms}


# PUBLIC_INTERFACE
def stop_changes(todo: TodoEntity, now_ms: int) -> Optional[Changes]:
    """
    Finish the current run, adding its whole seconds to saved_time.

    Returns None when the stopwatch is not running.
    """
    if not is_running(todo):
        return None
    return _fold_elapsed(todo, now_ms)
