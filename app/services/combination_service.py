"""Category pairs whose joint average rating exceeds their separate average."""
import itertools
import logging
from typing import List, Sequence

from app.services.insight_math import safe_mean
from app.services.insight_schemas import AnalyzedEntry, FoodCombination
from app.services.insights_config import InsightsConfig
from app.services.trigger_categories import CATEGORY_ORDER, KNOWN_CATEGORIES

logger = logging.getLogger(__name__)


def detect_combinations(
    completed: Sequence[AnalyzedEntry], config: InsightsConfig
) -> List[FoodCombination]:
    """
    Find co-occurring category pairs that are worse together than apart.

    "Separate" means an entry containing exactly one of the two categories.
    A pair with no separate entries has no baseline and is not reported.

    Args:
        completed: Completed entries
        config: Engine thresholds (min_combination_occurrences)

    Returns:
        Combinations ordered by gap desc, occurrences desc, then pair order
    """
    present = [c for c in KNOWN_CATEGORIES if any(c in e.categories for e in completed)]
    combinations = []

    for first, second in itertools.combinations(present, 2):
        together = []
        separate = []
        for entry in completed:
            has_first = first in entry.categories
            has_second = second in entry.categories
            if has_first and has_second:
                together.append(entry.rating)
            elif has_first or has_second:
                separate.append(entry.rating)

        if len(together) < config.min_combination_occurrences or not separate:
            continue

        avg_together = safe_mean(together)
        avg_separate = safe_mean(separate)
        gap = avg_together - avg_separate
        if gap <= 0:
            continue

        combinations.append(
            FoodCombination(
                triggers=[first, second],
                occurrences=len(together),
                avg_bloating_together=round(avg_together, 2),
                avg_bloating_separate=round(avg_separate, 2),
                impact=round(gap, 2),
                separate_occurrences=len(separate),
            )
        )

    combinations.sort(
        key=lambda c: (
            -c.impact,
            -c.occurrences,
            CATEGORY_ORDER[c.triggers[0]],
            CATEGORY_ORDER[c.triggers[1]],
        )
    )
    logger.debug("Detected %d trigger combinations", len(combinations))
    return combinations
