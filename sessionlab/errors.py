"""Error taxonomy for the test-session core."""

from __future__ import annotations


class SessionLabError(Exception):
    """Base class for all errors raised by sessionlab."""


class PreconditionError(SessionLabError):
    """A required prior state is missing (e.g. no completed baseline session)."""


class InvalidStateError(SessionLabError):
    """A lifecycle operation was attempted on a session in the wrong status."""

    def __init__(self, session_id: str, status: str, operation: str):
        self.session_id = session_id
        self.status = status
        self.operation = operation
        super().__init__(f"Cannot {operation} a session with status: {status}")


class InvalidSessionError(SessionLabError):
    """The referenced session does not exist or lacks required fields."""

    def __init__(self, session_id: str, reason: str = "Test session not found"):
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"{reason}: {session_id}")


class StorageWriteError(SessionLabError):
    """The key-value store failed an explicit write."""

    def __init__(self, key: str, message: str = ""):
        self.key = key
        super().__init__(f"Failed to write '{key}'" + (f": {message}" if message else ""))


class AnalysisUnavailableError(SessionLabError):
    """The conversation analysis service failed or timed out."""


class ChatServiceError(SessionLabError):
    """The chat service failed a request."""
