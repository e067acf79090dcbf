"""FastAPI backend: session lifecycle, metrics history and SSE event stream."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from sessionlab.core.models import InfoCategory, Message, SessionType, TestSessionMetrics
from sessionlab.errors import (
    AnalysisUnavailableError,
    ChatServiceError,
    InvalidSessionError,
    InvalidStateError,
    PreconditionError,
    SessionLabError,
    StorageWriteError,
)

if TYPE_CHECKING:
    from sessionlab.core.engine import SessionLab

ERROR_STATUS: dict[type[SessionLabError], int] = {
    PreconditionError: 409,
    InvalidStateError: 409,
    InvalidSessionError: 404,
    AnalysisUnavailableError: 502,
    ChatServiceError: 502,
    StorageWriteError: 503,
}


class CreateSessionRequest(BaseModel):
    type: SessionType
    title: str | None = None
    description: str | None = None


class CompleteSessionRequest(BaseModel):
    """Either a transcript to score, or precomputed metrics."""
    messages: list[Message] = Field(default_factory=list)
    metrics: TestSessionMetrics | None = None


class FailSessionRequest(BaseModel):
    reason: str = ""


def create_app(lab: "SessionLab") -> FastAPI:
    app = FastAPI(title="SessionLab Dashboard")

    @app.exception_handler(SessionLabError)
    async def sessionlab_error_handler(request: Request, exc: SessionLabError):
        status = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
        )
        return JSONResponse(
            {"error": type(exc).__name__, "detail": str(exc)}, status_code=status
        )

    # --- SSE Stream ---

    @app.get("/api/stream")
    async def sse_stream(request: Request):
        queue = lab.event_bus.subscribe()

        async def event_generator():
            for event in lab.event_bus.recent():
                yield {"event": event.kind, "data": event.model_dump_json()}

            try:
                while True:
                    if await request.is_disconnected():
                        break
                    try:
                        event = await asyncio.wait_for(queue.get(), timeout=30.0)
                        yield {"event": event.kind, "data": event.model_dump_json()}
                    except asyncio.TimeoutError:
                        yield {"comment": "keepalive"}
            finally:
                lab.event_bus.unsubscribe(queue)

        return EventSourceResponse(event_generator())

    @app.get("/api/events")
    async def get_events(limit: int = 50, session_id: str | None = None):
        if session_id is not None:
            events = lab.event_bus.for_session(session_id)[-limit:]
        else:
            events = lab.event_bus.recent(limit)
        return [e.model_dump(mode="json") for e in events]

    # --- Sessions ---

    @app.get("/api/sessions")
    async def list_sessions(type: SessionType | None = None):
        return [s.to_json_dict() for s in await lab.sessions(type)]

    @app.post("/api/sessions", status_code=201)
    async def create_session(body: CreateSessionRequest):
        session = await lab.create(body.type, body.title, body.description)
        return session.to_json_dict()

    @app.get("/api/sessions/{session_id}")
    async def get_session(session_id: str):
        session = await lab.get(session_id)
        if session is None:
            raise InvalidSessionError(session_id)
        return session.to_json_dict()

    @app.post("/api/sessions/{session_id}/start")
    async def start_session(session_id: str):
        return (await lab.start(session_id)).to_json_dict()

    @app.post("/api/sessions/{session_id}/complete")
    async def complete_session(session_id: str, body: CompleteSessionRequest):
        if body.metrics is not None:
            session = await lab.complete(session_id, body.metrics)
        else:
            session = await lab.finish(session_id, body.messages)
        return session.to_json_dict()

    @app.post("/api/sessions/{session_id}/fail")
    async def fail_session(session_id: str, body: FailSessionRequest):
        return (await lab.fail(session_id, body.reason)).to_json_dict()

    # --- Metrics ---

    @app.get("/api/metrics/history")
    async def get_history():
        history = await lab.history()
        return {
            metric: [e.to_json_dict() for e in entries]
            for metric, entries in history.items()
        }

    @app.get("/api/metrics/summary")
    async def get_summary():
        return {metric: s.to_json_dict() for metric, s in (await lab.summary()).items()}

    # --- Shared info ---

    @app.get("/api/shared-info")
    async def get_shared_info():
        return await lab.shared_info()

    @app.put("/api/shared-info/{category}")
    async def put_shared_info(category: InfoCategory, payload: dict[str, Any]):
        return await lab.share(category, payload)

    return app
