"""Test-session core: models, heuristics, storage, lifecycle and pipeline."""

from .models import (
    InfoCategory,
    Message,
    MetricsHistoryEntry,
    MetricSummary,
    SessionStatus,
    SessionType,
    TestSession,
    TestSessionMetrics,
)
from .store import SessionStore
from .lifecycle import SessionLifecycle
from .pipeline import MetricsPipeline
from .engine import SessionLab

__all__ = [
    "InfoCategory",
    "Message",
    "MetricsHistoryEntry",
    "MetricSummary",
    "SessionStatus",
    "SessionType",
    "TestSession",
    "TestSessionMetrics",
    "SessionStore",
    "SessionLifecycle",
    "MetricsPipeline",
    "SessionLab",
]
