"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from sessionlab.core.engine import SessionLab
from sessionlab.core.models import (
    ConversationAnalysis,
    Message,
    MessageMetadata,
    SentimentResult,
    TestSessionMetrics,
)
from sessionlab.core.store import SessionStore
from sessionlab.errors import AnalysisUnavailableError
from sessionlab.storage import InMemoryKeyValueStore
from sessionlab.telemetry import EventBus


class FakeChat:
    """Chat collaborator that hands out sequential conversation ids."""

    def __init__(self) -> None:
        self.titles: list[str] = []

    async def create_conversation(self, title: str) -> str:
        self.titles.append(title)
        return f"conv-{len(self.titles)}"


class FakeAnalyzer:
    """Analysis collaborator returning fixed per-message scores."""

    def __init__(self, scores: list[float] | None = None, error: Exception | None = None):
        self.scores = scores if scores is not None else [0.8, 0.9]
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def analyze_conversation(self, conversation_id, messages) -> ConversationAnalysis:
        self.calls.append((conversation_id, len(messages)))
        if self.error is not None:
            raise self.error
        return ConversationAnalysis(
            overall_sentiment="positive",
            message_count=len(messages),
            details=[SentimentResult(score=s) for s in self.scores],
        )


class FailingKeyValueStore(InMemoryKeyValueStore):
    """Store whose writes (and optionally reads) fail for chosen keys."""

    def __init__(self, fail_writes: set[str] = frozenset(), fail_reads: bool = False):
        super().__init__()
        self.fail_writes = set(fail_writes)
        self.fail_reads = fail_reads

    async def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise OSError("disk unavailable")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        if key in self.fail_writes:
            raise OSError("disk full")
        await super().set(key, value)


def make_transcript(
    ai_texts: list[str],
    user_count: int | None = None,
    response_times: list[float | None] | None = None,
) -> list[Message]:
    """Alternate user and AI messages; extra user messages go at the end."""
    user_count = len(ai_texts) if user_count is None else user_count
    response_times = response_times or [None] * len(ai_texts)
    messages: list[Message] = []
    for i in range(max(user_count, len(ai_texts))):
        if i < user_count:
            messages.append(Message(text=f"question {i}", is_user=True))
        if i < len(ai_texts):
            rt = response_times[i]
            messages.append(
                Message(
                    text=ai_texts[i],
                    is_user=False,
                    metadata=MessageMetadata(response_time=rt) if rt is not None else None,
                )
            )
    return messages


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv):
    return SessionStore(kv)


@pytest.fixture
def chat():
    return FakeChat()


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def lab(kv, chat, analyzer, event_bus):
    """SessionLab wired to in-memory storage and fake collaborators."""
    return SessionLab(kv=kv, chat=chat, analyzer=analyzer, event_bus=event_bus)


@pytest.fixture
def complete_baseline():
    """Async helper that runs a baseline session to completion."""

    async def _complete(lab: SessionLab, question_count: int = 5):
        session = await lab.create("baseline")
        await lab.start(session.id)
        return await lab.complete(session.id, TestSessionMetrics(question_count=question_count))

    return _complete


@pytest.fixture
def failing_analyzer():
    return FakeAnalyzer(error=AnalysisUnavailableError("analysis timed out"))
