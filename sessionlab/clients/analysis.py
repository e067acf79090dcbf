"""Client for the remote ML analysis API."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from sessionlab.core.models import (
    ClassificationResult,
    ConversationAnalysis,
    Message,
    SentimentResult,
)
from sessionlab.errors import AnalysisUnavailableError

from .base import ApiClient


class ConversationAnalyzer(Protocol):
    """What the metrics pipeline needs from the analysis service."""

    async def analyze_conversation(
        self, conversation_id: str, messages: Sequence[Message]
    ) -> ConversationAnalysis: ...


class AnalysisClient(ApiClient):
    """ML API: sentiment, classification and whole-conversation analysis."""

    error_class = AnalysisUnavailableError
    service_name = "Analysis service"

    async def analyze_conversation(
        self, conversation_id: str, messages: Sequence[Message]
    ) -> ConversationAnalysis:
        body = {
            "conversationId": conversation_id,
            "messages": [
                {
                    "text": m.text,
                    "senderId": "user" if m.is_user else "ai",
                    "timestamp": m.timestamp,
                }
                for m in messages
            ],
        }
        data = await self._request("POST", "/api/ML/analyze-conversation", json=body)
        return ConversationAnalysis.model_validate(data)

    async def analyze_sentiment(
        self, text: str, conversation_id: str | None = None
    ) -> SentimentResult:
        body = {"text": text}
        if conversation_id:
            body["conversationId"] = conversation_id
        data = await self._request("POST", "/api/ML/sentiment", json=body)
        return SentimentResult.model_validate(data)

    async def classify_text(
        self, text: str, categories: list[str] | None = None
    ) -> ClassificationResult:
        body: dict = {"text": text}
        if categories:
            body["categories"] = categories
        data = await self._request("POST", "/api/ML/classify", json=body)
        return ClassificationResult.model_validate(data)
