"""
Per-category trigger statistics: frequency, confidence tier, impact and risk.

Confidence reflects sample size only. It is not a statistical significance
measure; `confidence_percentage` is a display mapping of the tier.
"""
import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence

from app.services.insight_math import clamp, safe_mean, safe_percentage
from app.services.insight_schemas import (
    AnalyzedEntry,
    ConfidenceTier,
    TriggerConfidenceLevel,
)
from app.services.insights_config import InsightsConfig
from app.services.trigger_categories import (
    CATEGORY_ORDER,
    KNOWN_CATEGORIES,
    TriggerCategory,
    display_name,
)

logger = logging.getLogger(__name__)


def classify_confidence(occurrences: int, config: InsightsConfig) -> ConfidenceTier:
    """Tier from occurrence count; each threshold belongs to the higher tier."""
    if occurrences >= config.high_confidence_min_occurrences:
        return "high"
    if occurrences >= config.investigating_min_occurrences:
        return "investigating"
    return "needsData"


def confidence_percentage(occurrences: int, config: InsightsConfig) -> int:
    """Display-only 0-100 mapping, non-decreasing in occurrences."""
    tier = classify_confidence(occurrences, config)
    if tier == "high":
        extra = occurrences - config.high_confidence_min_occurrences
        return min(95, 75 + 4 * extra)
    if tier == "investigating":
        extra = occurrences - config.investigating_min_occurrences
        return min(70, 50 + 5 * extra)
    return min(25, 15 + 10 * max(0, occurrences))


def impact_score(avg_with: float, avg_without: float) -> float:
    """Mean rating with the category present minus mean rating without it."""
    return avg_with - avg_without


def risk_percentage(avg_with: float, config: InsightsConfig) -> int:
    return int(clamp(safe_percentage(avg_with, config.max_rating), 0, 100))


def impact_band(score: float, config: InsightsConfig) -> str:
    """
    Step function over impact score.

    Defaults: >= 2.0 high, >= 1.0 moderate, >= 0.5 mild, >= 0 low, < 0 helpful.
    """
    for lower_bound, name in config.impact_bands:
        if score >= lower_bound:
            return name
    return "helpful"


def _top_foods(
    containing: Sequence[AnalyzedEntry], category: TriggerCategory, limit: int
) -> List[str]:
    """Most frequent foods under a category, ties by first appearance."""
    counts: Counter = Counter()
    first_seen: Dict[str, int] = {}
    spelling: Dict[str, str] = {}
    for entry in containing:
        for trigger in entry.triggers:
            if trigger.category is not category or not trigger.food:
                continue
            key = trigger.food.casefold()
            if key not in first_seen:
                first_seen[key] = len(first_seen)
                spelling[key] = trigger.food
            counts[key] += 1

    ranked = sorted(counts, key=lambda k: (-counts[k], first_seen[k]))
    return [spelling[k] for k in ranked[:limit]]


def analyze_trigger_confidence(
    completed: Sequence[AnalyzedEntry],
    config: InsightsConfig,
    top_foods_limit: Optional[int] = None,
) -> List[TriggerConfidenceLevel]:
    """
    Compute frequency, averages and confidence for every observed category.

    Args:
        completed: Chronologically sorted completed entries
        config: Engine thresholds
        top_foods_limit: Override for the number of foods listed per category

    Returns:
        One TriggerConfidenceLevel per category with at least one occurrence,
        ordered by occurrences desc, impact desc, then enumeration order
    """
    limit = config.top_foods_limit if top_foods_limit is None else top_foods_limit
    total = len(completed)
    results = []

    for category in KNOWN_CATEGORIES:
        containing = [e for e in completed if category in e.categories]
        if not containing:
            continue
        without = [e for e in completed if category not in e.categories]

        avg_with = safe_mean(e.rating for e in containing)
        avg_without = safe_mean(e.rating for e in without)
        # No baseline to compare against when every entry has the category
        impact = impact_score(avg_with, avg_without) if without else 0.0
        occurrences = len(containing)

        results.append(
            TriggerConfidenceLevel(
                category=category,
                display_name=display_name(category),
                occurrences=occurrences,
                avg_bloating_with=round(avg_with, 2),
                avg_bloating_without=round(avg_without, 2),
                impact_score=round(impact, 2),
                percentage=safe_percentage(occurrences, total),
                confidence=classify_confidence(occurrences, config),
                confidence_percentage=confidence_percentage(occurrences, config),
                top_foods=_top_foods(containing, category, limit),
                risk_percentage=risk_percentage(avg_with, config),
                impact_band=impact_band(impact, config),
                high_bloating_count=sum(1 for e in containing if config.is_high(e.rating)),
                last_seen=containing[-1].created_at,
            )
        )

    results.sort(
        key=lambda t: (-t.occurrences, -t.impact_score, CATEGORY_ORDER[t.category])
    )
    logger.debug("Analyzed %d trigger categories over %d entries", len(results), total)
    return results
