"""
Pydantic models for meal entries and every value the insights engine derives.

Result models serialize with camelCase aliases (triggerConfidence,
avgBloatingWith, ...) because presentation views depend on those names.
The outbound narrative payload keeps snake_case wire names.
"""

import enum
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.services.trigger_categories import TriggerCategory


ConfidenceTier = Literal["needsData", "investigating", "high"]
SafetyLevel = Literal["safe", "caution", "danger"]
Trend = Literal["improving", "worsening", "stable"]
TimeOfDay = Literal["morning", "afternoon", "evening", "night"]
WorstTime = Literal["morning", "afternoon", "evening", "night", "unknown"]
RecommendationType = Literal["eliminate", "reintroduce", "monitor"]
Priority = Literal["high", "medium", "low"]
ImpactBand = Literal["high", "moderate", "mild", "low", "helpful"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Input (owned by the persistence layer) ---


class RatingStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class DetectedTrigger(CamelModel):
    category: Optional[str] = None
    food: str = ""
    confidence: Optional[float] = None

    @field_validator("food", mode="before")
    @classmethod
    def _none_food_is_empty(cls, value):
        return "" if value is None else value

    @field_validator("confidence", mode="before")
    @classmethod
    def _ignore_unusable_confidence(cls, value):
        # Unused by the analysis; upstream sometimes sends labels like "high"
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value


class MealEntry(CamelModel):
    id: str
    created_at: datetime
    rating_status: RatingStatus = RatingStatus.PENDING
    bloating_rating: Optional[int] = None
    # Raw items; each is validated on its own by the entry normalizer
    detected_triggers: list[Any] = []
    notes: Optional[str] = None
    description: str = Field(
        default="",
        validation_alias=AliasChoices("description", "meal_description", "mealDescription"),
    )
    title: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "title", "custom_title", "customTitle", "meal_title", "mealTitle"
        ),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if value is not None else value

    @field_validator("detected_triggers", "description", mode="before")
    @classmethod
    def _none_to_default(cls, value, info):
        if value is None:
            return [] if info.field_name == "detected_triggers" else ""
        if info.field_name == "detected_triggers" and not isinstance(value, (list, tuple)):
            return [value]
        return value


class NormalizedTrigger(BaseModel):
    """A trigger after category validation."""

    category: TriggerCategory
    food: str
    raw_category: str = ""


class AnalyzedEntry(BaseModel):
    """A completed entry with a valid rating and validated triggers."""

    id: str
    created_at: datetime
    rating: int
    triggers: list[NormalizedTrigger] = []
    notes: str = ""
    description: str = ""
    title: Optional[str] = None

    @property
    def timestamp(self) -> float:
        return self.created_at.timestamp()

    @property
    def categories(self) -> set[TriggerCategory]:
        return {t.category for t in self.triggers if t.category is not TriggerCategory.UNKNOWN}


# --- Derived ---


class TriggerConfidenceLevel(CamelModel):
    category: TriggerCategory
    display_name: str
    occurrences: int
    avg_bloating_with: float
    avg_bloating_without: float
    impact_score: float
    percentage: int
    confidence: ConfidenceTier
    confidence_percentage: int
    top_foods: list[str] = []
    risk_percentage: int = 0
    impact_band: ImpactBand = "low"
    high_bloating_count: int = 0
    last_seen: Optional[datetime] = None


class FoodInsight(CamelModel):
    food: str
    count: int
    avg_bloating: float
    safety_level: SafetyLevel
    high_count: int = 0
    low_count: int = 0
    categories: list[TriggerCategory] = []
    last_eaten: Optional[datetime] = None


class TrendingFood(CamelModel):
    food: str
    recent_count: int
    count: int


class FoodCombination(CamelModel):
    triggers: list[TriggerCategory]
    occurrences: int
    avg_bloating_together: float
    avg_bloating_separate: float
    impact: float
    separate_occurrences: int = 0


class TimePatterns(CamelModel):
    worst_time: WorstTime = "unknown"
    distribution: dict[str, int] = Field(
        default_factory=lambda: {"morning": 0, "afternoon": 0, "evening": 0, "night": 0}
    )
    meal_counts: dict[str, int] = Field(
        default_factory=lambda: {"morning": 0, "afternoon": 0, "evening": 0, "night": 0}
    )


class BehavioralChange(CamelModel):
    """Share of meals whose notes mention a behavior, this week vs last."""

    type: Literal["stress", "timing", "rushing"]
    label: str
    this_week: float = 0.0
    last_week: float = 0.0
    change: float = 0.0
    bloating_rate: float = 0.0


class WeeklyComparison(CamelModel):
    this_week_avg_bloating: float = 0.0
    overall_avg_bloating: float = 0.0
    last_week_avg_bloating: float = 0.0
    week_over_week_change: float = 0.0
    trend: Trend = "stable"
    trend_delta: float = 0.0
    new_patterns: list[TriggerCategory] = []
    best_day: Optional[str] = None
    worst_day: Optional[str] = None
    successfully_avoided: list[TriggerCategory] = []
    behavioral_changes: list[BehavioralChange] = []


class SuccessMetrics(CamelModel):
    comfortable_meal_rate: int = 0
    trigger_avoidance_rate: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    improvement_percentage: float = 0.0
    current_avg_bloating: float = 0.0
    previous_period_avg_bloating: float = 0.0


class TestingRecommendation(CamelModel):
    food: str
    type: RecommendationType
    priority: Priority
    reason: str
    days_avoided: Optional[int] = None
    categories: list[TriggerCategory] = []
    impact_score: float = 0.0


class NotesPattern(CamelModel):
    type: Literal["stress", "timing", "rushing", "hunger", "restaurant"]
    label: str
    count: int
    high_bloating_count: int
    avg_bloating: float
    correlation: Literal["high", "medium", "low"]


class SmartSwap(CamelModel):
    trigger: TriggerCategory
    display_name: str
    alternatives: list[str] = []
    occurrences: int
    avg_bloating: float


class MealSnapshot(CamelModel):
    """Compact view of a recent meal, kept for the narrative payload."""

    food: str
    trigger_categories: list[str] = []
    timestamp: datetime
    bloat_rating: int
    notes: Optional[str] = None


class InsightsResult(CamelModel):
    total_meals: int = 0
    meals_this_week: int = 0
    days_tracked: int = 0
    avg_bloating: float = 0.0
    high_bloating_count: int = 0
    low_bloating_count: int = 0
    has_sufficient_data: bool = False
    skipped_entries: int = 0
    trigger_confidence: list[TriggerConfidenceLevel] = []
    food_insights: list[FoodInsight] = []
    trending_safe_foods: list[TrendingFood] = []
    combinations: list[FoodCombination] = []
    time_patterns: TimePatterns = Field(default_factory=TimePatterns)
    weekly_comparison: WeeklyComparison = Field(default_factory=WeeklyComparison)
    success_metrics: SuccessMetrics = Field(default_factory=SuccessMetrics)
    testing_recommendations: list[TestingRecommendation] = []
    smart_swaps: list[SmartSwap] = []
    notes_patterns: list[NotesPattern] = []
    recent_meals: list[MealSnapshot] = []


# --- Outbound narrative payload (snake_case wire format) ---


class PayloadFoodEntry(BaseModel):
    food: str
    trigger_categories: list[str]
    timestamp: datetime
    bloat_rating: int
    notes: Optional[str] = None


class PayloadTrigger(BaseModel):
    category: str
    confidence: float = Field(ge=0, le=1)
    average_bloat_rating: float
    occurrences: int
    common_foods: list[str] = []


class PayloadTimePatterns(BaseModel):
    worst_time: str
    distribution: dict[str, int]


class NarrativePayload(BaseModel):
    days_tracked: int
    total_logs: int
    food_entries: list[PayloadFoodEntry] = []
    identified_triggers: list[PayloadTrigger] = []
    time_patterns: PayloadTimePatterns
    avg_bloating: float
    high_bloating_count: int
    low_bloating_count: int


class DailyInsight(CamelModel):
    insight_text: str
    action_items: list[str] = []
    confidence_level: str = "low"
    triggers_mentioned: list[str] = []
    generated_at: datetime
