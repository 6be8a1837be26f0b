"""Comfortable-meal streaks and rolling success percentages."""
from datetime import datetime
from typing import Iterable, Sequence

from app.services.insight_math import (
    clamp,
    entries_between,
    entries_since,
    safe_mean,
    safe_percentage,
)
from app.services.insight_schemas import (
    AnalyzedEntry,
    SuccessMetrics,
    TriggerConfidenceLevel,
)
from app.services.insights_config import InsightsConfig
from app.services.trigger_categories import TriggerCategory


def current_streak(ratings: Sequence[int], config: InsightsConfig) -> int:
    """Trailing run of comfortable meals, ratings given oldest first."""
    streak = 0
    for rating in reversed(ratings):
        if not config.is_low(rating):
            break
        streak += 1
    return streak


def longest_streak(ratings: Sequence[int], config: InsightsConfig) -> int:
    best = run = 0
    for rating in ratings:
        run = run + 1 if config.is_low(rating) else 0
        best = max(best, run)
    return best


def identified_triggers(
    trigger_confidence: Iterable[TriggerConfidenceLevel], config: InsightsConfig
) -> set[TriggerCategory]:
    """Categories with enough evidence and impact to count as something to avoid."""
    return {
        t.category
        for t in trigger_confidence
        if t.confidence != "needsData" and t.impact_score >= config.avoidance_min_impact
    }


def calculate_success_metrics(
    completed: Sequence[AnalyzedEntry],
    trigger_confidence: Sequence[TriggerConfidenceLevel],
    now: datetime,
    config: InsightsConfig,
) -> SuccessMetrics:
    """
    Rolling success figures over the recent window plus all-time streaks.

    Args:
        completed: Chronologically sorted completed entries
        trigger_confidence: Classifier output, used to pick triggers to avoid
        now: Reference time
        config: Engine thresholds

    Returns:
        SuccessMetrics; improvement_percentage is positive when the recent
        average is below the all-time average
    """
    recent = entries_since(completed, now, config.recent_days)
    previous = entries_between(completed, now, config.recent_days, 2 * config.recent_days)

    comfortable = sum(1 for e in recent if config.is_low(e.rating))

    triggers = identified_triggers(trigger_confidence, config)
    if triggers:
        avoided = sum(1 for e in recent if not (e.categories & triggers))
        avoidance_rate = safe_percentage(avoided, len(recent))
    else:
        avoidance_rate = 100 if recent else 0

    all_time_avg = safe_mean(e.rating for e in completed)
    recent_avg = safe_mean(e.rating for e in recent)
    improvement = 0.0
    if recent and all_time_avg > 0:
        improvement = clamp(
            (all_time_avg - recent_avg) / all_time_avg * 100, -100.0, 100.0
        )

    all_ratings = [e.rating for e in completed]
    return SuccessMetrics(
        comfortable_meal_rate=safe_percentage(comfortable, len(recent)),
        trigger_avoidance_rate=avoidance_rate,
        current_streak=current_streak(all_ratings, config),
        longest_streak=longest_streak(all_ratings, config),
        improvement_percentage=round(improvement, 1),
        current_avg_bloating=round(recent_avg, 2),
        previous_period_avg_bloating=round(safe_mean(e.rating for e in previous), 2),
    )
