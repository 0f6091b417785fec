from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_service
from ..repositories import StoreError
from ..schemas import TodoCreate, TodoOut
from ..service import TodoNotFoundError, TodoService

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)

_NOT_FOUND = {404: {"description": "Todo not found"}}


async def _run(op, *args):
    """
    Await a service operation, mapping domain failures onto HTTP errors.
    """
    try:
        return await op(*args)
    except TodoNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    except StoreError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Todo store unavailable")


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TodoOut],
    summary="List Todos",
    description="Return every Todo item in store order.",
)
async def list_todos(service: TodoService = Depends(get_service)) -> List[TodoOut]:
    todos = await _run(service.load)
    return [TodoOut(**t) for t in todos]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item with a stopped, empty stopwatch.",
)
async def create_todo(payload: TodoCreate, service: TodoService = Depends(get_service)) -> TodoOut:
    created = await _run(service.add, payload.text)
    return TodoOut(**created)


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/toggle",
    response_model=TodoOut,
    summary="Toggle Todo",
    description="Flip completion. Completing a todo with a running stopwatch stops it first.",
    responses=_NOT_FOUND,
)
async def toggle_todo(todo_id: str, service: TodoService = Depends(get_service)) -> TodoOut:
    return TodoOut(**await _run(service.toggle, todo_id))


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/start",
    response_model=TodoOut,
    summary="Start Timer",
    description="Start a fresh stopwatch run. Previously saved time is discarded.",
    responses=_NOT_FOUND,
)
async def start_timer(todo_id: str, service: TodoService = Depends(get_service)) -> TodoOut:
    return TodoOut(**await _run(service.start, todo_id))


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/resume",
    response_model=TodoOut,
    summary="Resume Timer",
    description="Start a stopwatch run that continues from the saved time.",
    responses=_NOT_FOUND,
)
async def resume_timer(todo_id: str, service: TodoService = Depends(get_service)) -> TodoOut:
    return TodoOut(**await _run(service.resume, todo_id))


# PUBLIC_INTERFACE
@router.post(
    "/{todo_id}/stop",
    response_model=TodoOut,
    summary="Stop Timer",
    description="Stop a running stopwatch, adding the elapsed whole seconds to the saved time.",
    responses=_NOT_FOUND,
)
async def stop_timer(todo_id: str, service: TodoService = Depends(get_service)) -> TodoOut:
    stopped = await _run(service.stop, todo_id)
    if stopped is None:
        # Not running: report the record unchanged.
        return TodoOut(**await _run(service.get, todo_id))
    return TodoOut(**stopped)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={204: {"description": "Todo deleted"}, **_NOT_FOUND},
)
async def delete_todo(todo_id: str, service: TodoService = Depends(get_service)) -> None:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    ok = await _run(service.delete, todo_id)
    if not ok:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return None
