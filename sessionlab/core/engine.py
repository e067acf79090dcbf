"""Main SessionLab engine: wires store, lifecycle, pipeline and clients together."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sessionlab.clients.analysis import AnalysisClient, ConversationAnalyzer
from sessionlab.clients.chat import ChatClient, ConversationCreator
from sessionlab.config import Settings
from sessionlab.core.lifecycle import SessionLifecycle
from sessionlab.core.models import (
    InfoCategory,
    Message,
    MetricsHistoryEntry,
    MetricSummary,
    SessionType,
    SharedInfo,
    TestSession,
    TestSessionMetrics,
)
from sessionlab.core.pipeline import MetricsPipeline
from sessionlab.core.store import SessionStore
from sessionlab.core.summary import summarize_history
from sessionlab.storage import KeyValueStore, SQLiteKeyValueStore
from sessionlab.telemetry import EventBus


class SessionLab:
    """Entry point for all test-session operations.

    Every collaborator can be injected; anything omitted is built from
    ``settings``.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        kv: KeyValueStore | None = None,
        chat: ConversationCreator | None = None,
        analyzer: ConversationAnalyzer | None = None,
        event_bus: EventBus | None = None,
    ):
        self.settings = settings or Settings()
        self.event_bus = event_bus or EventBus()
        self.store = SessionStore(kv if kv is not None else SQLiteKeyValueStore(self.settings.db_path))
        self.chat = chat if chat is not None else ChatClient(self.settings)
        self.analyzer = analyzer if analyzer is not None else AnalysisClient(self.settings)
        self.lifecycle = SessionLifecycle(self.store, self.chat, self.event_bus)
        self.pipeline = MetricsPipeline(self.store, self.analyzer, self.event_bus)

    # --- Lifecycle ---

    async def create(
        self,
        session_type: SessionType | str,
        title: str | None = None,
        description: str | None = None,
    ) -> TestSession:
        """Create a session; a missing title or description comes from the type's preset."""
        if title is None or description is None:
            preset_title, preset_description = await self.lifecycle.preset_for(session_type)
            title = preset_title if title is None else title
            description = preset_description if description is None else description
        return await self.lifecycle.create(title, description, session_type)

    async def start(self, session_id: str) -> TestSession:
        return await self.lifecycle.start(session_id)

    async def complete(self, session_id: str, metrics: TestSessionMetrics) -> TestSession:
        return await self.lifecycle.complete(session_id, metrics)

    async def fail(self, session_id: str, reason: str = "") -> TestSession:
        return await self.lifecycle.fail(session_id, reason)

    async def finish(self, session_id: str, transcript: Sequence[Message]) -> TestSession:
        """Score the transcript, then complete the session with the result."""
        metrics = await self.pipeline.calculate_session_metrics(session_id, transcript)
        return await self.lifecycle.complete(session_id, metrics)

    # --- Queries ---

    async def get(self, session_id: str) -> TestSession | None:
        return await self.store.get_by_id(session_id)

    async def sessions(self, session_type: SessionType | str | None = None) -> list[TestSession]:
        return await self.lifecycle.list_sessions(session_type)

    async def history(self) -> dict[str, list[MetricsHistoryEntry]]:
        return await self.store.get_history()

    async def summary(self) -> dict[str, MetricSummary]:
        return summarize_history(await self.store.get_history())

    # --- Shared info ---

    async def shared_info(self) -> SharedInfo:
        return await self.store.get_shared_info()

    async def share(self, category: InfoCategory | str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.store.save_shared_info(category, payload)

    # --- Resources ---

    async def aclose(self) -> None:
        for client in (self.chat, self.analyzer):
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
