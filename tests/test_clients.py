"""Tests for the chat and analysis HTTP clients."""

import json

import httpx
import pytest

from sessionlab.clients import AnalysisClient, ChatClient
from sessionlab.config import Settings
from sessionlab.core.models import Message
from sessionlab.errors import AnalysisUnavailableError, ChatServiceError


def recording_transport(handler):
    """MockTransport that keeps every request it sees."""
    seen: list[httpx.Request] = []

    def _handle(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return httpx.MockTransport(_handle), seen


@pytest.fixture
def settings():
    return Settings(api_url="https://api.test/", api_token="tok", user_id="user-1", timeout=5)


class TestChatClient:
    @pytest.mark.asyncio
    async def test_create_conversation(self, settings):
        transport, seen = recording_transport(
            lambda r: httpx.Response(200, json={"conversationId": 42})
        )
        async with ChatClient(settings, transport=transport) as client:
            conversation_id = await client.create_conversation("Recall Testing")

        assert conversation_id == "42"
        [request] = seen
        assert request.method == "POST"
        assert request.url == "https://api.test/api/Chat/conversation"
        assert json.loads(request.content) == {"userId": "user-1", "title": "Recall Testing"}
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["Platform"] == "python"

    @pytest.mark.asyncio
    async def test_no_auth_header_without_token(self):
        transport, seen = recording_transport(
            lambda r: httpx.Response(200, json={"conversationId": "c"})
        )
        async with ChatClient(Settings(api_url="https://api.test"), transport=transport) as client:
            await client.create_conversation("t")
        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_missing_conversation_id(self, settings):
        transport, _ = recording_transport(lambda r: httpx.Response(200, json={"ok": True}))
        async with ChatClient(settings, transport=transport) as client:
            with pytest.raises(ChatServiceError, match="conversationId"):
                await client.create_conversation("t")

    @pytest.mark.asyncio
    async def test_http_error_translated(self, settings):
        transport, _ = recording_transport(lambda r: httpx.Response(503))
        async with ChatClient(settings, transport=transport) as client:
            with pytest.raises(ChatServiceError, match="503") as exc_info:
                await client.create_conversation("t")
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_timeout_translated(self, settings):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        transport, _ = recording_transport(handler)
        async with ChatClient(settings, transport=transport) as client:
            with pytest.raises(ChatServiceError, match="timed out after 5.0s"):
                await client.create_conversation("t")

    @pytest.mark.asyncio
    async def test_invalid_json_translated(self, settings):
        transport, _ = recording_transport(lambda r: httpx.Response(200, content=b"<html>"))
        async with ChatClient(settings, transport=transport) as client:
            with pytest.raises(ChatServiceError, match="Failed to communicate"):
                await client.create_conversation("t")

    @pytest.mark.asyncio
    async def test_history(self, settings):
        payload = [
            {"id": "m1", "text": "hi", "isUser": True, "timestamp": "2026-01-01T00:00:00Z"},
            {
                "id": "m2",
                "text": "hello",
                "isUser": False,
                "timestamp": "2026-01-01T00:00:01Z",
                "metadata": {"responseTime": 120},
            },
        ]
        transport, seen = recording_transport(lambda r: httpx.Response(200, json=payload))
        async with ChatClient(settings, transport=transport) as client:
            messages = await client.get_conversation_history("c1", limit=20)

        assert seen[0].url.path == "/api/Chat/history/c1"
        assert seen[0].url.params["limit"] == "20"
        assert [m.is_user for m in messages] == [True, False]
        assert messages[1].metadata.response_time == 120

    @pytest.mark.asyncio
    async def test_send_message(self, settings):
        transport, seen = recording_transport(
            lambda r: httpx.Response(200, json={"id": "m3", "text": "reply", "isUser": False})
        )
        async with ChatClient(settings, transport=transport) as client:
            reply = await client.send_message("hello", conversation_id="c1")

        assert json.loads(seen[0].content) == {
            "userId": "user-1",
            "message": "hello",
            "conversationId": "c1",
        }
        assert reply.text == "reply"

    @pytest.mark.asyncio
    async def test_user_conversations(self, settings):
        transport, _ = recording_transport(
            lambda r: httpx.Response(200, json=[{"id": "c1", "title": "Baseline", "messageCount": 4}])
        )
        async with ChatClient(settings, transport=transport) as client:
            [conversation] = await client.get_user_conversations()
        assert conversation.message_count == 4


class TestAnalysisClient:
    @pytest.mark.asyncio
    async def test_analyze_conversation(self, settings):
        response = {
            "overallSentiment": "positive",
            "messageCount": 2,
            "details": [{"text": "hello", "sentiment": "positive", "score": 0.9}],
        }
        transport, seen = recording_transport(lambda r: httpx.Response(200, json=response))
        messages = [
            Message(text="hi", is_user=True, timestamp="t1"),
            Message(text="hello", is_user=False, timestamp="t2"),
        ]
        async with AnalysisClient(settings, transport=transport) as client:
            analysis = await client.analyze_conversation("c1", messages)

        body = json.loads(seen[0].content)
        assert seen[0].url.path == "/api/ML/analyze-conversation"
        assert body["conversationId"] == "c1"
        assert [m["senderId"] for m in body["messages"]] == ["user", "ai"]
        assert analysis.details[0].score == 0.9

    @pytest.mark.asyncio
    async def test_failure_is_analysis_unavailable(self, settings):
        transport, _ = recording_transport(lambda r: httpx.Response(500))
        async with AnalysisClient(settings, transport=transport) as client:
            with pytest.raises(AnalysisUnavailableError, match="500"):
                await client.analyze_conversation("c1", [])

    @pytest.mark.asyncio
    async def test_sentiment_and_classify(self, settings):
        def handler(request):
            if request.url.path == "/api/ML/sentiment":
                return httpx.Response(200, json={"sentiment": "neutral", "score": 0.5})
            return httpx.Response(200, json={"category": "faith", "confidence": 0.7})

        transport, seen = recording_transport(handler)
        async with AnalysisClient(settings, transport=transport) as client:
            sentiment = await client.analyze_sentiment("ok")
            classification = await client.classify_text("pray", categories=["faith"])

        assert sentiment.score == 0.5
        assert classification.category == "faith"
        assert json.loads(seen[1].content) == {"text": "pray", "categories": ["faith"]}
