"""Filter raw meal records down to the entries every statistic runs over."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from app.services.insight_math import entries_since
from app.services.insight_schemas import (
    AnalyzedEntry,
    DetectedTrigger,
    MealEntry,
    NormalizedTrigger,
    RatingStatus,
)
from app.services.insights_config import InsightsConfig
from app.services.trigger_categories import parse_category

logger = logging.getLogger(__name__)

RawEntry = Union[MealEntry, Mapping[str, Any]]


@dataclass
class NormalizedEntries:
    """Completed entries (chronological) plus the recent-window subset."""

    completed: List[AnalyzedEntry] = field(default_factory=list)
    recent: List[AnalyzedEntry] = field(default_factory=list)
    skipped: int = 0


def _coerce_entry(raw: RawEntry) -> Optional[MealEntry]:
    if isinstance(raw, MealEntry):
        return raw
    try:
        return MealEntry.model_validate(raw)
    except ValidationError as e:
        entry_id = raw.get("id") if isinstance(raw, Mapping) else None
        logger.warning(
            "Skipping malformed meal entry %s: %d validation error(s)",
            entry_id,
            e.error_count(),
        )
        return None


def _coerce_trigger(raw: Any, entry_id: str) -> Optional[DetectedTrigger]:
    try:
        return DetectedTrigger.model_validate(raw)
    except ValidationError as e:
        logger.warning(
            "Dropping malformed trigger on entry %s: %d validation error(s)",
            entry_id,
            e.error_count(),
        )
        return None


def _normalize_triggers(entry: MealEntry) -> List[NormalizedTrigger]:
    """
    Validate each trigger on its own and drop duplicate category/food pairs.

    A malformed trigger is dropped without affecting the entry's rating.
    """
    triggers = []
    seen = set()
    for raw in entry.detected_triggers:
        trigger = _coerce_trigger(raw, entry.id)
        if trigger is None:
            continue
        category = parse_category(trigger.category)
        food = trigger.food.strip()
        key = (category, food.casefold())
        if key in seen:
            continue
        seen.add(key)
        triggers.append(
            NormalizedTrigger(
                category=category, food=food, raw_category=trigger.category or ""
            )
        )
    return triggers


def normalize_entries(
    raw_entries: Iterable[RawEntry],
    now: datetime,
    config: InsightsConfig,
) -> NormalizedEntries:
    """
    Keep completed, validly rated entries and build the recent window.

    Args:
        raw_entries: MealEntry objects or raw mappings, in any order
        now: Reference time for the recent window
        config: Engine thresholds

    Returns:
        NormalizedEntries with `completed` sorted by (created_at, id)
    """
    completed: List[AnalyzedEntry] = []
    skipped = 0

    for raw in raw_entries:
        entry = _coerce_entry(raw)
        if entry is None:
            skipped += 1
            continue
        if entry.rating_status != RatingStatus.COMPLETED:
            continue

        rating = entry.bloating_rating
        if rating is None or not (config.min_rating <= rating <= config.max_rating):
            logger.warning(
                "Skipping completed entry %s with invalid rating %r", entry.id, rating
            )
            skipped += 1
            continue

        completed.append(
            AnalyzedEntry(
                id=entry.id,
                created_at=entry.created_at,
                rating=rating,
                triggers=_normalize_triggers(entry),
                notes=entry.notes or "",
                description=entry.description,
                title=entry.title,
            )
        )

    completed.sort(key=lambda e: (e.timestamp, e.id))
    recent = entries_since(completed, now, config.recent_days)

    logger.debug(
        "Normalized entries: %d completed, %d recent, %d skipped",
        len(completed),
        len(recent),
        skipped,
    )
    return NormalizedEntries(completed=completed, recent=recent, skipped=skipped)
