"""Session lifecycle: scheduled -> in-progress -> completed | failed."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sessionlab.clients.chat import ConversationCreator
from sessionlab.core.models import (
    MetricsHistoryEntry,
    SessionStatus,
    SessionType,
    TestSession,
    TestSessionMetrics,
    utcnow,
)
from sessionlab.core.presets import session_preset
from sessionlab.core.store import SessionStore
from sessionlab.errors import (
    InvalidSessionError,
    InvalidStateError,
    PreconditionError,
    StorageWriteError,
)
from sessionlab.telemetry import EventBus

logger = logging.getLogger(__name__)


class SessionLifecycle:
    """State machine over TestSession.status.

    Assumes at most one in-flight operation per session id; there is no
    locking around the store's read-then-write.
    """

    def __init__(
        self,
        store: SessionStore,
        chat: ConversationCreator,
        event_bus: EventBus | None = None,
    ):
        self.store = store
        self.chat = chat
        self.event_bus = event_bus or EventBus()

    async def create(
        self, title: str, description: str, session_type: SessionType | str
    ) -> TestSession:
        """Create a scheduled session.

        Raises:
            PreconditionError: non-baseline type and no completed baseline exists
        """
        session_type = SessionType(session_type)
        if session_type != SessionType.BASELINE and not await self.store.has_completed_baseline():
            error = PreconditionError(
                "Baseline required: complete a baseline test before running other test types"
            )
            await self.event_bus.capture_exception(error, session_type=session_type.value)
            raise error

        session = TestSession(title=title, description=description, type=session_type)
        async with self._reporting_writes(session_id=session.id):
            await self.store.save(session)
        await self.event_bus.breadcrumb(
            "session.created", session_id=session.id, session_type=session_type.value
        )
        return session

    async def preset_for(self, session_type: SessionType | str) -> tuple[str, str]:
        """Preset (title, description), numbered against the stored sessions."""
        return session_preset(SessionType(session_type), await self.store.get_all())

    async def create_from_preset(self, session_type: SessionType | str) -> TestSession:
        title, description = await self.preset_for(session_type)
        return await self.create(title, description, session_type)

    async def start(self, session_id: str) -> TestSession:
        """Open a remote conversation for a scheduled session."""
        session = await self._require(session_id, SessionStatus.SCHEDULED, "start")

        conversation_id = await self.chat.create_conversation(session.title)
        updated = session.model_copy(
            update={"status": SessionStatus.IN_PROGRESS, "conversation_id": conversation_id}
        )
        async with self._reporting_writes(session_id=session_id):
            await self.store.save(updated)
        await self.event_bus.breadcrumb(
            "session.started", session_id=session_id, conversation_id=conversation_id
        )
        return updated

    async def complete(self, session_id: str, metrics: TestSessionMetrics) -> TestSession:
        """Merge final metrics, mark completed and append metric history."""
        session = await self._require(session_id, SessionStatus.IN_PROGRESS, "complete")

        updated = session.model_copy(
            update={
                "status": SessionStatus.COMPLETED,
                "completed_at": utcnow(),
                "metrics": session.metrics.merged(metrics),
            }
        )
        async with self._reporting_writes(session_id=session_id):
            await self.store.save(updated)
            for metric_name, value in updated.metrics.history_values().items():
                await self.store.append_history(
                    metric_name,
                    MetricsHistoryEntry(date=updated.completed_at, value=value, session_id=updated.id),
                )

        await self.event_bus.breadcrumb(
            "session.completed",
            session_id=session_id,
            metrics=updated.metrics.to_json_dict(),
        )
        return updated

    async def fail(self, session_id: str, reason: str = "") -> TestSession:
        """Mark an in-progress session as failed."""
        session = await self._require(session_id, SessionStatus.IN_PROGRESS, "fail")

        updated = session.model_copy(update={"status": SessionStatus.FAILED})
        async with self._reporting_writes(session_id=session_id):
            await self.store.save(updated)
        await self.event_bus.breadcrumb("session.failed", session_id=session_id, reason=reason)
        return updated

    async def list_sessions(self, session_type: SessionType | str | None = None) -> list[TestSession]:
        sessions = await self.store.get_all()
        if session_type is None:
            return sessions
        session_type = SessionType(session_type)
        return [s for s in sessions if s.type == session_type]

    async def _require(
        self, session_id: str, status: SessionStatus, operation: str
    ) -> TestSession:
        session = await self.store.get_by_id(session_id)
        if session is None:
            error: Exception = InvalidSessionError(session_id)
        elif session.status != status:
            error = InvalidStateError(session_id, session.status.value, operation)
        else:
            return session

        await self.event_bus.capture_exception(error, session_id=session_id, operation=operation)
        raise error

    @asynccontextmanager
    async def _reporting_writes(self, **context):
        try:
            yield
        except StorageWriteError as e:
            await self.event_bus.capture_exception(e, **context)
            raise
