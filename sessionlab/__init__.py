"""SessionLab: test-session metrics for conversational AI evaluation."""

from sessionlab.config import Settings, configure_logging
from sessionlab.core.engine import SessionLab
from sessionlab.core.models import (
    Message,
    SessionStatus,
    SessionType,
    TestSession,
    TestSessionMetrics,
)
from sessionlab.errors import (
    AnalysisUnavailableError,
    ChatServiceError,
    InvalidSessionError,
    InvalidStateError,
    PreconditionError,
    SessionLabError,
    StorageWriteError,
)

__all__ = [
    "SessionLab",
    "Settings",
    "configure_logging",
    "Message",
    "SessionStatus",
    "SessionType",
    "TestSession",
    "TestSessionMetrics",
    "SessionLabError",
    "PreconditionError",
    "InvalidStateError",
    "InvalidSessionError",
    "StorageWriteError",
    "AnalysisUnavailableError",
    "ChatServiceError",
]
