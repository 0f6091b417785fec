from __future__ import annotations

from starlette.requests import HTTPConnection

from .connections import ConnectionManager
from .handlers import TodoEventHandler
from .service import TodoService


# PUBLIC_INTERFACE
def get_service(conn: HTTPConnection) -> TodoService:
    """Return the TodoService bound to the running application."""
    return conn.app.state.service


# PUBLIC_INTERFACE
def get_event_handler(conn: HTTPConnection) -> TodoEventHandler:
    """Return the channel event handler bound to the running application."""
    return conn.app.state.event_handler


# PUBLIC_INTERFACE
def get_connection_manager(conn: HTTPConnection) -> ConnectionManager:
    """Return the channel connection registry of the running application."""
    return conn.app.state.connections
