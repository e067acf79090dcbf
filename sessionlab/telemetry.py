"""Telemetry sink: session breadcrumbs and captured errors, fanned out to SSE."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SUBSCRIBER_QUEUE_SIZE = 256


class SessionEvent(BaseModel):
    """One telemetry record. ``session_id`` is set when the event concerns a session."""

    kind: Literal["breadcrumb", "exception"]
    message: str
    session_id: str | None = None
    error: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventBus:
    """Keeps the most recent SessionEvents and pushes each new one to subscribers.

    The core writes to the bus but never reads from it to make decisions.
    """

    def __init__(self, max_events: int = 500) -> None:
        self._events: deque[SessionEvent] = deque(maxlen=max_events)
        self._subscribers: set[asyncio.Queue[SessionEvent]] = set()

    def subscribe(self) -> asyncio.Queue[SessionEvent]:
        queue: asyncio.Queue[SessionEvent] = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SessionEvent]) -> None:
        self._subscribers.discard(queue)

    def recent(self, limit: int | None = None) -> list[SessionEvent]:
        """Stored events, oldest first; the last ``limit`` when given."""
        events = list(self._events)
        return events[-limit:] if limit else events

    def for_session(self, session_id: str) -> list[SessionEvent]:
        return [e for e in self._events if e.session_id == session_id]

    async def publish(self, event: SessionEvent) -> None:
        self._events.append(event)
        # A subscriber that stops draining its queue is dropped
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self.unsubscribe(queue)

    async def breadcrumb(
        self, message: str, session_id: str | None = None, **context: Any
    ) -> SessionEvent:
        logger.info("%s session=%s %s", message, session_id, context or "")
        event = SessionEvent(
            kind="breadcrumb", message=message, session_id=session_id, context=context
        )
        await self.publish(event)
        return event

    async def capture_exception(
        self, exc: BaseException, session_id: str | None = None, **context: Any
    ) -> SessionEvent:
        logger.warning("%s: %s (session=%s)", type(exc).__name__, exc, session_id)
        event = SessionEvent(
            kind="exception",
            message=str(exc),
            session_id=session_id,
            error=type(exc).__name__,
            context=context,
        )
        await self.publish(event)
        return event
