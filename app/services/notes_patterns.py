"""Behavioral context (stress, late eating, rushing ...) mined from meal notes."""
import re
from datetime import datetime
from typing import List, NamedTuple, Sequence, Tuple

from app.services.insight_math import entries_between, entries_since, safe_mean
from app.services.insight_schemas import AnalyzedEntry, BehavioralChange, NotesPattern
from app.services.insights_config import InsightsConfig


class NoteKeywords(NamedTuple):
    type: str
    label: str
    keywords: Tuple[str, ...]


NOTE_PATTERNS: Tuple[NoteKeywords, ...] = (
    NoteKeywords("stress", "Stressed", ("stress", "stressed", "anxiety", "anxious", "\U0001F630")),
    NoteKeywords("timing", "Ate Late", ("late", "night", "evening", "bedtime", "\U0001F319")),
    NoteKeywords(
        "rushing",
        "Rushed",
        ("rush", "rushed", "hurry", "hurried", "quick", "fast", "\u26A1", "\U0001F374"),
    ),
    NoteKeywords("hunger", "Very Hungry", ("hungry", "starving", "famished", "\U0001F60B")),
    NoteKeywords(
        "restaurant",
        "Restaurant",
        ("restaurant", "dining out", "ate out", "\U0001F37D"),
    ),
)


def _keyword_regex(keywords: Sequence[str]) -> re.Pattern:
    # Word keywords match whole words so "fast" does not fire on "breakfast"
    parts = [
        rf"\b{re.escape(k)}\b" if k[0].isalpha() else re.escape(k) for k in keywords
    ]
    return re.compile("|".join(parts), re.IGNORECASE)


_MATCHERS = [(pattern, _keyword_regex(pattern.keywords)) for pattern in NOTE_PATTERNS]


def _correlation(matches: int, high: int) -> str:
    if matches < 2:
        return "low"
    share = high / matches
    if share >= 0.6:
        return "high"
    if share >= 0.3:
        return "medium"
    return "low"


def analyze_notes_patterns(
    completed: Sequence[AnalyzedEntry], config: InsightsConfig
) -> List[NotesPattern]:
    """Patterns with at least one matching note, most frequent first."""
    with_notes = [e for e in completed if e.notes]
    results = []
    for pattern, matcher in _MATCHERS:
        matching = [e for e in with_notes if matcher.search(e.notes)]
        if not matching:
            continue
        high = sum(1 for e in matching if config.is_high(e.rating))
        results.append(
            NotesPattern(
                type=pattern.type,
                label=pattern.label,
                count=len(matching),
                high_bloating_count=high,
                avg_bloating=round(safe_mean(e.rating for e in matching), 1),
                correlation=_correlation(len(matching), high),
            )
        )
    # Stable sort keeps the declaration order for equal counts
    results.sort(key=lambda p: -p.count)
    return results


# Behaviors tracked week over week in the weekly summary
WEEKLY_BEHAVIORS = ("stress", "timing", "rushing")


def _share_matching(entries: Sequence[AnalyzedEntry], matcher: re.Pattern) -> float:
    if not entries:
        return 0.0
    return sum(1 for e in entries if e.notes and matcher.search(e.notes)) / len(entries)


def compare_weekly_behaviors(
    completed: Sequence[AnalyzedEntry], now: datetime, config: InsightsConfig
) -> List[BehavioralChange]:
    """
    Share of meals mentioning each weekly behavior, this week vs last week.

    Shares are fractions in [0, 1] over all meals of the week, notes or not;
    change is this week minus last week. bloating_rate is the average rating
    of this week's matching meals (0 when none).
    """
    days = config.week_days
    this_week = entries_since(completed, now, days)
    last_week = entries_between(completed, now, days, 2 * days)

    changes = []
    for pattern, matcher in _MATCHERS:
        if pattern.type not in WEEKLY_BEHAVIORS:
            continue
        this_share = _share_matching(this_week, matcher)
        last_share = _share_matching(last_week, matcher)
        matching = [e.rating for e in this_week if e.notes and matcher.search(e.notes)]
        changes.append(
            BehavioralChange(
                type=pattern.type,
                label=pattern.label,
                this_week=round(this_share, 2),
                last_week=round(last_share, 2),
                change=round(this_share - last_share, 2),
                bloating_rate=round(safe_mean(matching), 2),
            )
        )
    return changes
