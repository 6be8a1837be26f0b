"""Turn trigger and combination findings into ranked "test next" actions."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from app.services.insight_math import days_since
from app.services.insight_schemas import (
    FoodCombination,
    SmartSwap,
    TestingRecommendation,
    TriggerConfidenceLevel,
)
from app.services.insights_config import InsightsConfig
from app.services.temporal_analysis import WeeklyTrigger
from app.services.trigger_categories import display_name, safe_alternatives

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def _eliminate(trigger: TriggerConfidenceLevel) -> TestingRecommendation:
    name = trigger.display_name
    reason = (
        f"{name} appeared in {trigger.occurrences} meals averaging "
        f"{trigger.avg_bloating_with:.1f} bloating vs {trigger.avg_bloating_without:.1f} "
        f"without it. Try removing it for two weeks."
    )
    swaps = safe_alternatives(trigger.category)[:3]
    if swaps:
        reason += f" Swap in: {', '.join(swaps)}."
    return TestingRecommendation(
        food=name,
        type="eliminate",
        priority="high" if trigger.impact_band == "high" else "medium",
        reason=reason,
        categories=[trigger.category],
        impact_score=trigger.impact_score,
    )


def _reintroduce(trigger: TriggerConfidenceLevel, days: int) -> TestingRecommendation:
    return TestingRecommendation(
        food=trigger.display_name,
        type="reintroduce",
        priority="medium",
        reason=(
            f"You have avoided {trigger.display_name} for {days} days. "
            f"Reintroduce a small portion to test whether it still affects you."
        ),
        days_avoided=days,
        categories=[trigger.category],
        impact_score=trigger.impact_score,
    )


def _monitor(trigger: TriggerConfidenceLevel, config: InsightsConfig) -> TestingRecommendation:
    return TestingRecommendation(
        food=trigger.display_name,
        type="monitor",
        priority="medium" if trigger.impact_score >= config.eliminate_min_impact else "low",
        reason=(
            f"{trigger.display_name} shows a possible link "
            f"({trigger.occurrences} meals, +{trigger.impact_score:.1f} impact). "
            f"Keep logging to confirm."
        ),
        categories=[trigger.category],
        impact_score=trigger.impact_score,
    )


def _monitor_combination(
    combination: FoodCombination, config: InsightsConfig
) -> TestingRecommendation:
    first, second = (display_name(c) for c in combination.triggers)
    return TestingRecommendation(
        food=f"{first} + {second}",
        type="monitor",
        priority="medium" if combination.impact >= config.eliminate_min_impact else "low",
        reason=(
            f"{first} and {second} together averaged "
            f"{combination.avg_bloating_together:.1f} bloating vs "
            f"{combination.avg_bloating_separate:.1f} when eaten separately."
        ),
        categories=list(combination.triggers),
        impact_score=combination.impact,
    )


def _for_trigger(
    trigger: TriggerConfidenceLevel, now: datetime, config: InsightsConfig
) -> Optional[TestingRecommendation]:
    if trigger.confidence == "needsData" or trigger.impact_score <= 0:
        return None

    if trigger.last_seen is not None:
        days = days_since(trigger.last_seen, now)
        if days >= config.reintroduce_min_days:
            return _reintroduce(trigger, days)

    if trigger.confidence == "high" and trigger.impact_score >= config.eliminate_min_impact:
        return _eliminate(trigger)
    if trigger.confidence == "investigating":
        return _monitor(trigger, config)
    return None


def generate_recommendations(
    trigger_confidence: Sequence[TriggerConfidenceLevel],
    combinations: Sequence[FoodCombination],
    now: datetime,
    config: InsightsConfig,
) -> List[TestingRecommendation]:
    """
    Build at most `max_recommendations` actions.

    Each category yields at most one recommendation: reintroduce when it has
    been avoided long enough, otherwise eliminate (high tier, strong impact)
    or monitor (investigating tier). Combinations add monitor actions.
    Categories still at needsData never produce a recommendation.

    Returns:
        Recommendations ordered by priority desc, impact desc, then name
    """
    recommendations = []
    for trigger in trigger_confidence:
        rec = _for_trigger(trigger, now, config)
        if rec is not None:
            recommendations.append(rec)

    recommendations.extend(_monitor_combination(c, config) for c in combinations)

    recommendations.sort(
        key=lambda r: (PRIORITY_ORDER[r.priority], -r.impact_score, r.food.casefold())
    )
    logger.debug(
        "Generated %d recommendations (cap %d)",
        len(recommendations),
        config.max_recommendations,
    )
    return recommendations[: config.max_recommendations]


def build_smart_swaps(top_triggers: Sequence[WeeklyTrigger]) -> List[SmartSwap]:
    """Up to three lower-risk alternatives for each trigger eaten this week."""
    return [
        SmartSwap(
            trigger=t.category,
            display_name=display_name(t.category),
            alternatives=safe_alternatives(t.category)[:3],
            occurrences=t.count,
            avg_bloating=round(t.avg_bloating, 1),
        )
        for t in top_triggers
    ]
