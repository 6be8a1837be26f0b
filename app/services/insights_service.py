"""
Insights orchestrator: one call from raw meal entries to the composite result.

The engine is a pure, synchronous transform. It never reads or writes storage;
callers re-run `analyze` whenever their entry set changes.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from app.services.combination_service import detect_combinations
from app.services.entry_normalizer import RawEntry, normalize_entries
from app.services.food_safety import analyze_food_safety, trending_safe_foods
from app.services.insight_math import (
    SECONDS_PER_DAY,
    entries_since,
    safe_mean,
)
from app.services.insight_schemas import (
    AnalyzedEntry,
    InsightsResult,
    MealSnapshot,
    NarrativePayload,
    PayloadFoodEntry,
    PayloadTimePatterns,
    PayloadTrigger,
)
from app.services.insights_config import InsightsConfig
from app.services.notes_patterns import analyze_notes_patterns
from app.services.recommendation_service import (
    build_smart_swaps,
    generate_recommendations,
)
from app.services.success_metrics import calculate_success_metrics
from app.services.temporal_analysis import (
    analyze_time_patterns,
    build_weekly_comparison,
    top_triggers_eaten,
)
from app.services.trigger_analysis import analyze_trigger_confidence

logger = logging.getLogger(__name__)

MEAL_LABEL_MAX_LENGTH = 80


def _meal_label(entry: AnalyzedEntry) -> str:
    if entry.title:
        return entry.title
    return entry.description[:MEAL_LABEL_MAX_LENGTH]


def _trigger_category_names(entry: AnalyzedEntry) -> List[str]:
    names = []
    for trigger in entry.triggers:
        if trigger.category.value not in names:
            names.append(trigger.category.value)
    return names


def _days_tracked(completed: List[AnalyzedEntry], now: datetime) -> int:
    if not completed:
        return 0
    elapsed = now.timestamp() - completed[0].timestamp
    return max(1, math.ceil(elapsed / SECONDS_PER_DAY))


class InsightsService:
    """Runs every analysis component over one snapshot of meal entries."""

    def __init__(self, config: Optional[InsightsConfig] = None):
        self.config = config or InsightsConfig.from_settings()

    def analyze(
        self, entries: Iterable[RawEntry], now: Optional[datetime] = None
    ) -> InsightsResult:
        """
        Compute the full insights result for a snapshot of meal entries.

        Args:
            entries: MealEntry objects or raw mappings, in any order
            now: Reference time for rolling windows (defaults to current UTC)

        Returns:
            InsightsResult; empty input yields zeroed counters and empty lists
        """
        now = now or datetime.now(timezone.utc)
        config = self.config
        normalized = normalize_entries(entries, now, config)
        completed = normalized.completed
        recent = normalized.recent

        trigger_confidence = analyze_trigger_confidence(completed, config)
        food_insights = analyze_food_safety(completed, config)
        combinations = detect_combinations(completed, config)

        recent_meals = [
            MealSnapshot(
                food=_meal_label(e),
                trigger_categories=_trigger_category_names(e),
                timestamp=e.created_at,
                bloat_rating=e.rating,
                notes=e.notes or None,
            )
            for e in reversed(recent[-config.payload_max_food_entries:])
        ]

        result = InsightsResult(
            total_meals=len(completed),
            meals_this_week=len(entries_since(completed, now, config.week_days)),
            days_tracked=_days_tracked(completed, now),
            avg_bloating=round(safe_mean(e.rating for e in completed), 2),
            high_bloating_count=sum(1 for e in completed if config.is_high(e.rating)),
            low_bloating_count=sum(1 for e in completed if config.is_low(e.rating)),
            has_sufficient_data=len(completed) >= config.min_entries_for_insights,
            skipped_entries=normalized.skipped,
            trigger_confidence=trigger_confidence,
            food_insights=food_insights,
            trending_safe_foods=trending_safe_foods(completed, food_insights, now, config),
            combinations=combinations,
            time_patterns=analyze_time_patterns(recent, config),
            weekly_comparison=build_weekly_comparison(completed, now, config),
            success_metrics=calculate_success_metrics(
                completed, trigger_confidence, now, config
            ),
            testing_recommendations=generate_recommendations(
                trigger_confidence, combinations, now, config
            ),
            smart_swaps=build_smart_swaps(top_triggers_eaten(completed, now, config)),
            notes_patterns=analyze_notes_patterns(completed, config),
            recent_meals=recent_meals,
        )

        logger.info(
            "Analyzed %d completed meals: %d categories, %d foods, %d recommendations",
            result.total_meals,
            len(result.trigger_confidence),
            len(result.food_insights),
            len(result.testing_recommendations),
        )
        return result

    def build_narrative_payload(self, result: InsightsResult) -> NarrativePayload:
        """
        Derive the compact payload sent to the narrative generator.

        Built from the result alone; entries are not re-scanned.
        """
        identified = [
            t for t in result.trigger_confidence if t.confidence != "needsData"
        ][: self.config.payload_max_triggers]

        return NarrativePayload(
            days_tracked=result.days_tracked,
            total_logs=result.total_meals,
            food_entries=[
                PayloadFoodEntry(**meal.model_dump())
                for meal in result.recent_meals[: self.config.payload_max_food_entries]
            ],
            identified_triggers=[
                PayloadTrigger(
                    category=t.category.value,
                    confidence=t.confidence_percentage / 100,
                    average_bloat_rating=t.avg_bloating_with,
                    occurrences=t.occurrences,
                    common_foods=t.top_foods,
                )
                for t in identified
            ],
            time_patterns=PayloadTimePatterns(
                worst_time=result.time_patterns.worst_time,
                distribution=dict(result.time_patterns.distribution),
            ),
            avg_bloating=round(result.avg_bloating, 1),
            high_bloating_count=result.high_bloating_count,
            low_bloating_count=result.low_bloating_count,
        )


def analyze(
    entries: Iterable[RawEntry],
    now: Optional[datetime] = None,
    config: Optional[InsightsConfig] = None,
) -> InsightsResult:
    """Convenience wrapper around InsightsService(config).analyze."""
    return InsightsService(config).analyze(entries, now)
