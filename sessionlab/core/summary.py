"""Latest-value and trend summaries over the metrics history."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from .models import HISTORY_METRICS, MetricsHistoryEntry, MetricSummary


def summarize_metric(metric: str, entries: Sequence[MetricsHistoryEntry]) -> MetricSummary:
    """Summarize one series by comparing its last two values."""
    if not entries:
        return MetricSummary(metric=metric)

    latest = entries[-1].value
    if len(entries) < 2:
        return MetricSummary(metric=metric, latest=latest, count=1)

    difference = latest - entries[-2].value
    if difference > 0:
        trend = "up"
    elif difference < 0:
        trend = "down"
    else:
        trend = "neutral"

    return MetricSummary(
        metric=metric,
        latest=latest,
        trend=trend,
        change=round(abs(difference), 1),
        count=len(entries),
    )


def summarize_history(
    history: Mapping[str, Sequence[MetricsHistoryEntry]],
) -> dict[str, MetricSummary]:
    """Summaries for every tracked metric, including ones with no history yet."""
    return {
        metric: summarize_metric(metric, history.get(metric, []))
        for metric in HISTORY_METRICS
    }
