"""Time-of-day distribution, rolling trend and week-over-week comparison."""
import calendar
import logging
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence, Tuple

from app.services.insight_math import (
    SECONDS_PER_DAY,
    clamp,
    entries_between,
    entries_since,
    safe_mean,
)
from app.services.insight_schemas import (
    AnalyzedEntry,
    TimeOfDay,
    TimePatterns,
    Trend,
    WeeklyComparison,
)
from app.services.insights_config import InsightsConfig
from app.services.notes_patterns import compare_weekly_behaviors
from app.services.trigger_categories import KNOWN_CATEGORIES, TriggerCategory

logger = logging.getLogger(__name__)

# Hour ranges [start, end); order is also the worst-time tie-break priority
TIME_BUCKETS = {
    "morning": (0, 12),
    "afternoon": (12, 17),
    "evening": (17, 21),
    "night": (21, 24),
}


def time_of_day(moment: datetime) -> TimeOfDay:
    """Bucket the wall-clock hour of a timestamp."""
    for bucket, (start, end) in TIME_BUCKETS.items():
        if start <= moment.hour < end:
            return bucket
    return "night"


def analyze_time_patterns(
    entries: Sequence[AnalyzedEntry], config: InsightsConfig
) -> TimePatterns:
    """
    Tally high-bloating meals per time-of-day bucket.

    worst_time is the bucket with the most high-bloating meals, ties going to
    the earlier bucket; "unknown" when there are none.
    """
    distribution = {bucket: 0 for bucket in TIME_BUCKETS}
    meal_counts = {bucket: 0 for bucket in TIME_BUCKETS}
    for entry in entries:
        bucket = time_of_day(entry.created_at)
        meal_counts[bucket] += 1
        if config.is_high(entry.rating):
            distribution[bucket] += 1

    worst_time = "unknown"
    worst_count = 0
    for bucket in TIME_BUCKETS:
        if distribution[bucket] > worst_count:
            worst_time = bucket
            worst_count = distribution[bucket]

    return TimePatterns(
        worst_time=worst_time, distribution=distribution, meal_counts=meal_counts
    )


def _trend_window(
    completed: Sequence[AnalyzedEntry], now: datetime, config: InsightsConfig
) -> List[AnalyzedEntry]:
    window = entries_since(completed, now, config.recent_days)
    if len(window) < config.trend_min_window_entries:
        window = list(completed[-config.trend_window_entries:])
    return window


def weekly_trend(
    completed: Sequence[AnalyzedEntry], now: datetime, config: InsightsConfig
) -> Tuple[Trend, float]:
    """
    Compare the older and newer halves of the recent window.

    Args:
        completed: Chronologically sorted completed entries
        now: Reference time
        config: Engine thresholds (trend_dead_zone, window sizes)

    Returns:
        Tuple of (trend, delta) where delta is newer-half average minus
        older-half average. Lower ratings are better, so a negative delta
        outside the dead-zone is "improving".
    """
    window = _trend_window(completed, now, config)
    if len(window) < 2:
        return "stable", 0.0

    half = len(window) // 2
    older = safe_mean(e.rating for e in window[:half])
    newer = safe_mean(e.rating for e in window[half:])
    delta = newer - older

    if abs(delta) <= config.trend_dead_zone:
        trend = "stable"
    elif delta < 0:
        trend = "improving"
    else:
        trend = "worsening"
    return trend, round(delta, 2)


def compare_weeks(
    completed: Sequence[AnalyzedEntry], now: datetime, config: InsightsConfig
) -> Tuple[float, float, float]:
    """
    Average rating this week vs the week before.

    Returns:
        Tuple of (this_week_avg, last_week_avg, change_percent). The change is
        signed (negative = less bloating), clamped to [-100, 100], and 0 when
        either week has no meals.
    """
    days = config.week_days
    this_week = entries_since(completed, now, days)
    last_week = entries_between(completed, now, days, 2 * days)

    this_avg = safe_mean(e.rating for e in this_week)
    last_avg = safe_mean(e.rating for e in last_week)
    change = 0.0
    if this_week and last_avg > 0:
        change = clamp((this_avg - last_avg) / last_avg * 100, -100.0, 100.0)
    return round(this_avg, 2), round(last_avg, 2), round(change, 1)


def detect_new_patterns(
    completed: Sequence[AnalyzedEntry], now: datetime, config: InsightsConfig
) -> List[TriggerCategory]:
    """Categories whose share of this week's meals rose sharply over earlier meals."""
    cutoff = now.timestamp() - config.week_days * SECONDS_PER_DAY
    recent = [e for e in completed if e.timestamp >= cutoff]
    earlier = [e for e in completed if e.timestamp < cutoff]
    if not recent:
        return []

    patterns = []
    for category in KNOWN_CATEGORIES:
        recent_count = sum(1 for e in recent if category in e.categories)
        if recent_count < config.new_pattern_min_occurrences:
            continue
        recent_share = recent_count / len(recent)
        earlier_share = (
            sum(1 for e in earlier if category in e.categories) / len(earlier)
            if earlier
            else 0.0
        )
        if recent_share - earlier_share >= config.new_pattern_min_rise:
            patterns.append(category)
    return patterns


class WeeklyTrigger(NamedTuple):
    category: TriggerCategory
    count: int
    avg_bloating: float


def _category_stats(entries: Sequence[AnalyzedEntry]) -> List[WeeklyTrigger]:
    stats = []
    for category in KNOWN_CATEGORIES:
        rated = [e.rating for e in entries if category in e.categories]
        if rated:
            stats.append(WeeklyTrigger(category, len(rated), safe_mean(rated)))
    return stats


def top_triggers_eaten(
    completed: Sequence[AnalyzedEntry], now: datetime, config: InsightsConfig
) -> List[WeeklyTrigger]:
    """
    Bloating categories eaten in the last week, weightiest first.

    A category qualifies when its average rating this week exceeds
    weekly_trigger_min_avg. Ranking is by count times average; ties keep
    category order. At most smart_swap_limit are returned.
    """
    this_week = entries_since(completed, now, config.week_days)
    eaten = [
        t
        for t in _category_stats(this_week)
        if t.avg_bloating > config.weekly_trigger_min_avg
    ]
    eaten.sort(key=lambda t: -(t.count * t.avg_bloating))
    return eaten[: config.smart_swap_limit]


def successfully_avoided(
    completed: Sequence[AnalyzedEntry], now: datetime, config: InsightsConfig
) -> List[TriggerCategory]:
    """Established triggers (high-confidence count, bloating average) not eaten this week."""
    this_week = entries_since(completed, now, config.week_days)
    if not this_week:
        return []
    eaten = set().union(*(e.categories for e in this_week))
    return [
        t.category
        for t in _category_stats(completed)
        if t.count >= config.high_confidence_min_occurrences
        and t.avg_bloating > config.weekly_trigger_min_avg
        and t.category not in eaten
    ]


def best_and_worst_days(
    entries: Sequence[AnalyzedEntry],
) -> Tuple[Optional[str], Optional[str]]:
    """Weekday names with the lowest and highest average rating."""
    by_day = {}
    for entry in entries:
        by_day.setdefault(entry.created_at.weekday(), []).append(entry.rating)
    if not by_day:
        return None, None

    averages = [(safe_mean(r), day) for day, r in by_day.items()]
    best = min(averages)[1]
    worst = min(averages, key=lambda a: (-a[0], a[1]))[1]
    return calendar.day_name[best], calendar.day_name[worst]


def build_weekly_comparison(
    completed: Sequence[AnalyzedEntry], now: datetime, config: InsightsConfig
) -> WeeklyComparison:
    """Assemble the weekly comparison block of the insights result."""
    trend, delta = weekly_trend(completed, now, config)
    this_avg, last_avg, change = compare_weeks(completed, now, config)
    best_day, worst_day = best_and_worst_days(
        entries_since(completed, now, config.week_days)
    )

    comparison = WeeklyComparison(
        this_week_avg_bloating=this_avg,
        overall_avg_bloating=round(safe_mean(e.rating for e in completed), 2),
        last_week_avg_bloating=last_avg,
        week_over_week_change=change,
        trend=trend,
        trend_delta=delta,
        new_patterns=detect_new_patterns(completed, now, config),
        best_day=best_day,
        worst_day=worst_day,
        successfully_avoided=successfully_avoided(completed, now, config),
        behavioral_changes=compare_weekly_behaviors(completed, now, config),
    )
    logger.debug("Weekly trend %s (delta %.2f)", trend, delta)
    return comparison
