"""Metrics pipeline: picks and runs the heuristics for a session's type."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sessionlab.clients.analysis import ConversationAnalyzer
from sessionlab.core import heuristics
from sessionlab.core.models import Message, SessionType, TestSessionMetrics
from sessionlab.core.store import SessionStore
from sessionlab.errors import AnalysisUnavailableError, InvalidSessionError
from sessionlab.telemetry import EventBus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricPlan:
    """Which derived metrics a session type computes."""
    relevance_and_naturalness: bool = False
    recall: bool = False
    personalization: bool = False
    # Derived metrics are skipped for an empty transcript
    requires_messages: bool = False


METRIC_PLANS: dict[SessionType, MetricPlan] = {
    SessionType.BASELINE: MetricPlan(),
    SessionType.PROGRESSIVE_INFO: MetricPlan(
        relevance_and_naturalness=True, requires_messages=True
    ),
    SessionType.RECALL: MetricPlan(recall=True, personalization=True),
    SessionType.PERSISTENCE: MetricPlan(recall=True, personalization=True),
    SessionType.CONTEXTUAL: MetricPlan(
        relevance_and_naturalness=True, personalization=True, requires_messages=True
    ),
}


class MetricsPipeline:
    """Computes the TestSessionMetrics to pass to SessionLifecycle.complete."""

    def __init__(
        self,
        store: SessionStore,
        analyzer: ConversationAnalyzer,
        event_bus: EventBus | None = None,
    ):
        self.store = store
        self.analyzer = analyzer
        self.event_bus = event_bus or EventBus()

    async def calculate_session_metrics(
        self, session_id: str, transcript: Sequence[Message]
    ) -> TestSessionMetrics:
        """Score a session's transcript according to its type.

        Raises:
            InvalidSessionError: unknown session or no conversation id
            AnalysisUnavailableError: the analysis service failed
        """
        session = await self.store.get_by_id(session_id)
        if session is None or not session.conversation_id:
            error = InvalidSessionError(session_id, "Invalid test session")
            await self.event_bus.capture_exception(error, session_id=session_id)
            raise error

        metrics = TestSessionMetrics(
            question_count=heuristics.question_count(transcript),
            response_time=heuristics.average_response_time(transcript),
            accuracy=0,
        )

        plan = METRIC_PLANS[session.type]
        if plan.requires_messages and not transcript:
            logger.info("Empty transcript for %s session %s", session.type.value, session_id)
        else:
            if plan.relevance_and_naturalness:
                analysis = await self._analyze(session.conversation_id, transcript)
                metrics.contextual_relevance = heuristics.contextual_relevance(analysis)
                metrics.conversation_naturalness = heuristics.conversation_naturalness(transcript)
            if plan.recall:
                metrics.recall_rate = heuristics.recall_rate(await self.store.get_shared_info())
            if plan.personalization:
                metrics.personalization_score = heuristics.personalization_score(transcript)

        # Always reported as fully completed
        metrics.completion_rate = 100
        return metrics

    async def _analyze(self, conversation_id: str, transcript: Sequence[Message]):
        try:
            return await self.analyzer.analyze_conversation(conversation_id, transcript)
        except AnalysisUnavailableError as e:
            await self.event_bus.capture_exception(e, conversation_id=conversation_id)
            raise
        except Exception as e:
            error = AnalysisUnavailableError(f"Conversation analysis failed: {str(e)}")
            await self.event_bus.capture_exception(error, conversation_id=conversation_id)
            raise error from e
