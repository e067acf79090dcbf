"""Pydantic models for test sessions, transcripts and metrics."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SessionType(str, Enum):
    """Kinds of test session."""
    BASELINE = "baseline"
    PROGRESSIVE_INFO = "progressive-info"
    RECALL = "recall"
    PERSISTENCE = "persistence"
    CONTEXTUAL = "contextual"


class SessionStatus(str, Enum):
    """Lifecycle status of a test session."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class InfoCategory(str, Enum):
    """Categories of information the user shares progressively."""
    BASIC = "basic"
    SPIRITUAL = "spiritual"
    CHALLENGES = "challenges"
    INTERESTS = "interests"


# Metric fields that get a history series, keyed by their persisted name.
HISTORY_METRICS: dict[str, str] = {
    "personalizationScore": "personalization_score",
    "recallRate": "recall_rate",
    "contextualRelevance": "contextual_relevance",
    "conversationNaturalness": "conversation_naturalness",
}

SharedInfo = dict[str, dict[str, Any]]


class TestSessionMetrics(CamelModel):
    """Sparse metrics record. Unset fields are None and omitted from JSON."""

    __test__ = False

    personalization_score: float | None = Field(None, ge=0, le=5)
    recall_rate: float | None = Field(None, ge=0, le=100)
    contextual_relevance: float | None = Field(None, ge=0, le=100)
    conversation_naturalness: float | None = Field(None, ge=1, le=10)
    response_time: float | None = Field(None, ge=0, description="Average AI response time in ms")
    accuracy: float | None = None
    question_count: int | None = Field(None, ge=0)
    completion_rate: float | None = None

    def merged(self, update: TestSessionMetrics) -> TestSessionMetrics:
        """Return a copy with every set field of ``update`` overwriting ours."""
        return self.model_copy(update=update.model_dump(exclude_none=True))

    def history_values(self) -> dict[str, float]:
        """Populated history-tracked metrics, keyed by persisted name."""
        values: dict[str, float] = {}
        for name, attr in HISTORY_METRICS.items():
            value = getattr(self, attr)
            if value is not None:
                values[name] = value
        return values


class TestSession(CamelModel):
    """One structured evaluation run against the remote AI."""

    __test__ = False

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    description: str = ""
    type: SessionType
    status: SessionStatus = SessionStatus.SCHEDULED
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None
    conversation_id: str | None = None
    metrics: TestSessionMetrics = Field(
        default_factory=lambda: TestSessionMetrics(question_count=0, completion_rate=0)
    )


class MetricsHistoryEntry(CamelModel):
    """A single point in a metric's history series."""
    date: datetime
    value: float
    session_id: str


class MessageMetadata(CamelModel):
    test_category: str | None = None
    response_time: float | None = None
    accuracy: float | None = None


class Message(CamelModel):
    """A transcript entry produced by the chat service."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    text: str = ""
    is_user: bool
    timestamp: str = ""
    metadata: MessageMetadata | None = None


class Conversation(CamelModel):
    id: str
    title: str = ""
    last_message: str = ""
    last_message_timestamp: str = ""
    message_count: int = 0


class SentimentResult(CamelModel):
    text: str = ""
    sentiment: str = ""
    score: float = 0.0
    timestamp: str = ""


class ConversationAnalysis(CamelModel):
    """Response of the conversation analysis service."""
    overall_sentiment: str = ""
    message_count: int = 0
    details: list[SentimentResult] = Field(default_factory=list)


class ClassificationResult(CamelModel):
    text: str = ""
    category: str = ""
    confidence: float = 0.0


class MetricSummary(CamelModel):
    """Latest value and trend for one metric series."""
    metric: str
    latest: float | None = None
    trend: Literal["up", "down", "neutral"] = "neutral"
    change: float = 0.0
    count: int = 0
