from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .connections import ConnectionManager
from .handlers import TodoEventHandler
from .log_config import configure_logging
from .repositories import Repository, get_repository
from .routers import events as events_router
from .routers import todos as todos_router
from .service import TodoService
from .settings import Settings, get_settings
from .utils import Clock, now_ms

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Todo CRUD and stopwatch operations, mirroring the /ws event channel.",
    },
]


class SPAStaticFiles(StaticFiles):
    """Static files that fall back to index.html so client-side routes resolve."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[Repository] = None,
    clock: Clock = now_ms,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; read from the environment when omitted.
        repository: Storage backend; chosen from settings when omitted.
        clock: Epoch-millisecond clock used for stopwatch transitions.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    repo = repository or get_repository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Todo stopwatch ready (backend=%s)", settings.persistence_backend)
        yield
        await repo.close()

    app = FastAPI(
        title="Todo Stopwatch",
        description="Real-time todo list with per-item stopwatches over a WebSocket event channel.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    service = TodoService(repo, clock=clock)
    app.state.settings = settings
    app.state.service = service
    app.state.event_handler = TodoEventHandler(service)
    app.state.connections = ConnectionManager(broadcast=settings.broadcast_updates)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": exc.errors(),
            },
        )

    @app.get("/health", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(todos_router.router)
    app.include_router(events_router.router)

    # Mounted last so API and channel routes take precedence.
    if settings.static_dir:
        if os.path.isdir(settings.static_dir):
            app.mount("/", SPAStaticFiles(directory=settings.static_dir, html=True), name="frontend")
        else:
            logger.warning("STATIC_DIR %s is not a directory; frontend not served", settings.static_dir)

    return app


app = create_app()
