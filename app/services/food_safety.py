"""Per-food safe / caution / danger labels, independent of category stats."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from app.services.insight_math import entries_since, safe_mean
from app.services.insight_schemas import (
    AnalyzedEntry,
    FoodInsight,
    SafetyLevel,
    TrendingFood,
)
from app.services.insights_config import InsightsConfig
from app.services.trigger_categories import CATEGORY_ORDER, TriggerCategory

SAFETY_ORDER = {"danger": 0, "caution": 1, "safe": 2}


@dataclass
class _FoodStats:
    name: str
    ratings: List[int] = field(default_factory=list)
    categories: set = field(default_factory=set)
    last_eaten: Optional[datetime] = None


def classify_food_safety(ratings: Sequence[int], config: InsightsConfig) -> SafetyLevel:
    """
    Label a food from the ratings of the meals it appeared in.

    Safe requires a low average AND a low-majority; danger needs either a
    high average OR a high-majority. Everything else is caution.
    """
    count = len(ratings)
    if count == 0:
        return "caution"
    avg = safe_mean(ratings)
    low_share = sum(1 for r in ratings if config.is_low(r)) / count
    high_share = sum(1 for r in ratings if config.is_high(r)) / count

    if avg <= config.safe_avg_threshold and low_share >= config.safe_low_share:
        return "safe"
    if avg >= config.danger_avg_threshold or high_share >= config.danger_high_share:
        return "danger"
    return "caution"


def _group_by_food(entries: Sequence[AnalyzedEntry]) -> Dict[str, _FoodStats]:
    """Case-insensitive grouping; each food counts once per meal."""
    stats: Dict[str, _FoodStats] = {}
    for entry in entries:
        seen_here = set()
        for trigger in entry.triggers:
            if not trigger.food:
                continue
            key = trigger.food.casefold()
            food = stats.setdefault(key, _FoodStats(name=trigger.food))
            if trigger.category is not TriggerCategory.UNKNOWN:
                food.categories.add(trigger.category)
            if key in seen_here:
                continue
            seen_here.add(key)
            food.ratings.append(entry.rating)
            food.last_eaten = entry.created_at
    return stats


def analyze_food_safety(
    completed: Sequence[AnalyzedEntry], config: InsightsConfig
) -> List[FoodInsight]:
    """
    Classify every food seen in at least `min_food_observations` meals.

    Returns:
        FoodInsight list ordered danger, caution, safe, then count desc, name
    """
    insights = []
    for food in _group_by_food(completed).values():
        count = len(food.ratings)
        if count < config.min_food_observations:
            continue
        insights.append(
            FoodInsight(
                food=food.name,
                count=count,
                avg_bloating=round(safe_mean(food.ratings), 2),
                safety_level=classify_food_safety(food.ratings, config),
                high_count=sum(1 for r in food.ratings if config.is_high(r)),
                low_count=sum(1 for r in food.ratings if config.is_low(r)),
                categories=sorted(food.categories, key=CATEGORY_ORDER.get),
                last_eaten=food.last_eaten,
            )
        )

    insights.sort(
        key=lambda f: (SAFETY_ORDER[f.safety_level], -f.count, f.food.casefold())
    )
    return insights


def trending_safe_foods(
    completed: Sequence[AnalyzedEntry],
    food_insights: Sequence[FoodInsight],
    now: datetime,
    config: InsightsConfig,
) -> List[TrendingFood]:
    """Safe foods eaten within the last week, by recent count."""
    recent_counts = {
        key: len(food.ratings)
        for key, food in _group_by_food(
            entries_since(completed, now, config.week_days)
        ).items()
    }

    trending = [
        TrendingFood(
            food=insight.food,
            recent_count=recent_counts[insight.food.casefold()],
            count=insight.count,
        )
        for insight in food_insights
        if insight.safety_level == "safe" and recent_counts.get(insight.food.casefold())
    ]
    trending.sort(key=lambda t: (-t.recent_count, -t.count, t.food.casefold()))
    return trending[: config.trending_safe_limit]
