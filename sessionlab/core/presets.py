"""Default titles and descriptions for each session type."""

from __future__ import annotations

from collections.abc import Sequence

from .models import SessionType, TestSession

SESSION_PRESETS: dict[SessionType, tuple[str, str]] = {
    SessionType.BASELINE: (
        "Baseline Testing",
        "Initial testing to establish baseline AI performance",
    ),
    SessionType.PROGRESSIVE_INFO: (
        "Progressive Information",
        "Sharing personal information with the AI",
    ),
    SessionType.RECALL: (
        "Recall Testing",
        "Testing AI recall of previously shared information",
    ),
    SessionType.PERSISTENCE: (
        "Cross-Session Persistence",
        "Testing information retention across sessions",
    ),
    SessionType.CONTEXTUAL: (
        "Contextual Understanding",
        "Testing AI understanding of context and inference",
    ),
}


def session_preset(
    session_type: SessionType, existing: Sequence[TestSession] = ()
) -> tuple[str, str]:
    """Return (title, description) for a new session of ``session_type``.

    Progressive-info sessions are numbered after the ones already stored.
    """
    title, description = SESSION_PRESETS[session_type]
    if session_type == SessionType.PROGRESSIVE_INFO:
        number = sum(1 for s in existing if s.type == SessionType.PROGRESSIVE_INFO) + 1
        title = f"{title} - Session {number}"
    return title, description
