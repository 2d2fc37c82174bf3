"""
FastAPI application for the live dashboard.

Routes:
    GET /health               - liveness check
    GET /api/state/{issue_id} - current snapshot for a root bead
    GET /api/events           - server-sent events stream of envelopes
"""

import logging
import traceback
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager
from enum import Enum
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from beads_bridge import __version__
from beads_bridge.core.dashboard.broadcaster import Broadcaster, QueueSubscriber, format_sse
from beads_bridge.core.dashboard.state import LiveStateBackend

logger = logging.getLogger(__name__)

Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]


class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error_code: ErrorCode
    message: str
    detail: str | None = None


async def event_stream(
    broadcaster: Broadcaster, subscriber: QueueSubscriber
) -> AsyncIterator[str]:
    """Yield SSE frames for ``subscriber`` until it is closed or the client leaves."""
    broadcaster.subscribe(subscriber)
    try:
        async for envelope in subscriber.events():
            yield format_sse(envelope)
    finally:
        broadcaster.unsubscribe(subscriber)


def create_app(
    backend: LiveStateBackend,
    broadcaster: Broadcaster | None = None,
    allowed_origins: list[str] | None = None,
    lifespan: Lifespan | None = None,
) -> FastAPI:
    """
    Build the dashboard app around a live-state backend.

    Args:
        backend: Source of snapshots
        broadcaster: Fan-out used for ``/api/events``. Defaults to the
            backend's broadcaster, creating and attaching one if needed.
        allowed_origins: CORS origins for a separately served frontend
        lifespan: Startup/shutdown context, used by ``serve`` to run polling
    """
    if broadcaster is None:
        broadcaster = backend.broadcaster or Broadcaster()
    if backend.broadcaster is None:
        backend.set_broadcaster(broadcaster)

    app = FastAPI(
        title="beads-bridge Dashboard API",
        description="Live progress state for beads epics",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.backend = backend
    app.state.broadcaster = broadcaster

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/api/state/{issue_id}")
    async def get_state(issue_id: str) -> dict[str, Any]:
        state = backend.get_state(issue_id)
        if state is None:
            raise HTTPException(status_code=404, detail=f"No state for issue {issue_id}")
        return state.model_dump(mode="json", by_alias=True)

    @app.get("/api/events")
    async def events() -> StreamingResponse:
        return StreamingResponse(
            event_stream(broadcaster, QueueSubscriber()),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        error_code = ErrorCode.INTERNAL_ERROR
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            error_code = ErrorCode.NOT_FOUND
        elif 400 <= exc.status_code < 500:
            error_code = ErrorCode.INVALID_REQUEST

        logger.info(
            "HTTP %d on %s %s: %s", exc.status_code, request.method, request.url.path, exc.detail
        )
        detail_msg = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code, message=detail_msg, detail=detail_msg
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception on %s %s: %s\n%s",
            request.method,
            request.url.path,
            exc,
            traceback.format_exc(),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error_code=ErrorCode.INTERNAL_ERROR, message="An unexpected error occurred"
            ).model_dump(mode="json"),
        )

    return app
