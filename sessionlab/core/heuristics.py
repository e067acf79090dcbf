"""Deterministic scoring heuristics over a session transcript.

These are proxies, not linguistic or learned models. Every function is total
and side-effect free; callers supply any stored state (shared info, analysis
results) explicitly.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from .models import ConversationAnalysis, Message

# (upper bound on mean AI message length, score)
NATURALNESS_BREAKPOINTS: tuple[tuple[float, int], ...] = (
    (50, 3),
    (100, 5),
    (300, 8),
    (500, 7),
)
NATURALNESS_DEFAULT = 5
NATURALNESS_MIN_MESSAGES = 3

RECALL_BASE_RATE = 70
RECALL_CATEGORY_BONUS = 5

PERSONALIZATION_DEFAULT = 3
PERSONALIZATION_MAX = 5
PERSONALIZATION_MIN_MESSAGES = 3


def ai_messages(transcript: Sequence[Message]) -> list[Message]:
    """Messages authored by the AI, in transcript order."""
    return [m for m in transcript if not m.is_user]


def question_count(transcript: Sequence[Message]) -> int:
    """Number of user-authored messages."""
    return sum(1 for m in transcript if m.is_user)


def average_response_time(transcript: Sequence[Message]) -> float:
    """Mean ``metadata.responseTime`` over AI messages, 0 if there are none.

    AI messages without a recorded response time count as 0.
    """
    replies = ai_messages(transcript)
    if not replies:
        return 0

    total = 0.0
    for msg in replies:
        if msg.metadata and msg.metadata.response_time:
            total += max(msg.metadata.response_time, 0)
    return total / len(replies)


def contextual_relevance(analysis: ConversationAnalysis) -> int:
    """Mean per-message analysis score scaled to 0-100.

    Args:
        analysis: Result of the conversation analysis service

    Returns:
        Integer in [0, 100]; 0 when the analysis has no details or a
        non-finite score
    """
    scores = [d.score for d in analysis.details]
    if not scores:
        return 0

    avg = sum(scores) / len(scores)
    if not math.isfinite(avg):
        return 0
    # Round half up
    return max(0, min(math.floor(avg * 100 + 0.5), 100))


def conversation_naturalness(transcript: Sequence[Message]) -> int:
    """Score 1-10 from the mean length of AI messages.

    Short conversations (fewer than three AI messages) get a neutral 5.
    """
    replies = ai_messages(transcript)
    if len(replies) < NATURALNESS_MIN_MESSAGES:
        return NATURALNESS_DEFAULT

    avg_length = sum(len(m.text) for m in replies) / len(replies)
    for upper, score in NATURALNESS_BREAKPOINTS:
        if avg_length < upper:
            return score
    return NATURALNESS_DEFAULT


def recall_rate(shared_info: Mapping[str, Any]) -> int:
    """Recall percentage from the number of shared-info categories."""
    categories = len(shared_info)
    if categories == 0:
        return 0
    return min(RECALL_BASE_RATE + categories * RECALL_CATEGORY_BONUS, 100)


def personalization_score(transcript: Sequence[Message]) -> float:
    """Score 3-5 that grows with the number of AI replies."""
    count = len(ai_messages(transcript))
    if count < PERSONALIZATION_MIN_MESSAGES:
        return PERSONALIZATION_DEFAULT
    return min(PERSONALIZATION_DEFAULT + count / 10, PERSONALIZATION_MAX)
