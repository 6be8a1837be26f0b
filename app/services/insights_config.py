"""
Engine thresholds, declared once.

Every constant that decides a label the UI shows (confidence tiers, safety
levels, impact bands, streak comfort level) lives on InsightsConfig so the
analysis can be tested independently of rendering. Defaults come from
app.config.settings; callers may pass their own instance.
"""
from typing import Tuple

from pydantic import BaseModel, ConfigDict

from app.config import settings


# Impact score bands, highest first: (lower bound inclusive, band name).
# Anything below the last bound is "helpful" (less bloating when present).
DEFAULT_IMPACT_BANDS: Tuple[Tuple[float, str], ...] = (
    (2.0, "high"),
    (1.0, "moderate"),
    (0.5, "mild"),
    (0.0, "low"),
)


class InsightsConfig(BaseModel):
    """Thresholds used by every analysis component."""

    model_config = ConfigDict(frozen=True)

    # Rating predicates on the 1-5 scale
    high_bloating_threshold: int = 4
    low_bloating_threshold: int = 2
    min_rating: int = 1
    max_rating: int = 5

    # Confidence tiers by occurrence count
    investigating_min_occurrences: int = 2
    high_confidence_min_occurrences: int = 5

    top_foods_limit: int = 3
    impact_bands: Tuple[Tuple[float, str], ...] = DEFAULT_IMPACT_BANDS

    # Windows (days)
    recent_days: int = 14
    week_days: int = 7

    # Food safety
    min_food_observations: int = 2
    safe_low_share: float = 0.7
    danger_high_share: float = 0.6
    danger_avg_threshold: float = 4.0
    safe_avg_threshold: float = 2.0
    trending_safe_limit: int = 3

    # Combinations
    min_combination_occurrences: int = 2

    # Weekly trend
    trend_dead_zone: float = 0.3
    trend_window_entries: int = 14
    trend_min_window_entries: int = 4
    new_pattern_min_occurrences: int = 2
    new_pattern_min_rise: float = 0.2

    # Weekly trigger intelligence; averages must exceed this to count
    weekly_trigger_min_avg: float = 3.0
    smart_swap_limit: int = 3

    # Recommendations
    max_recommendations: int = 5
    eliminate_min_impact: float = 1.0
    avoidance_min_impact: float = 0.5
    reintroduce_min_days: int = 14

    # Narrative payload
    payload_max_food_entries: int = 20
    payload_max_triggers: int = 6

    min_entries_for_insights: int = 3

    @classmethod
    def from_settings(cls) -> "InsightsConfig":
        """Build the default config from environment-backed settings."""
        return cls(
            high_bloating_threshold=settings.insights_high_bloating_threshold,
            low_bloating_threshold=settings.insights_low_bloating_threshold,
            investigating_min_occurrences=settings.insights_investigating_min_occurrences,
            high_confidence_min_occurrences=settings.insights_high_confidence_min_occurrences,
            recent_days=settings.insights_recent_days,
            week_days=settings.insights_week_days,
            min_food_observations=settings.insights_min_food_observations,
            safe_low_share=settings.insights_safe_low_share,
            danger_high_share=settings.insights_danger_high_share,
            min_combination_occurrences=settings.insights_min_combination_occurrences,
            trend_dead_zone=settings.insights_trend_dead_zone,
            max_recommendations=settings.insights_max_recommendations,
        )

    def is_high(self, rating: int) -> bool:
        return rating >= self.high_bloating_threshold

    def is_low(self, rating: int) -> bool:
        return rating <= self.low_bloating_threshold
