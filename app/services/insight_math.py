"""Division-safe arithmetic shared by the analysis modules."""
import math
from datetime import datetime
from typing import Iterable, List, Sequence

from app.services.insight_schemas import AnalyzedEntry

SECONDS_PER_DAY = 86400


def safe_mean(values: Iterable[float]) -> float:
    """Mean of values, 0.0 when there are none."""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def safe_percentage(part: float, whole: float) -> int:
    """part/whole as a rounded percentage clamped to [0, 100]; 0 for an empty whole."""
    if whole <= 0:
        return 0
    return int(clamp(math.floor(part / whole * 100 + 0.5), 0, 100))


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def ratings(entries: Sequence[AnalyzedEntry]) -> List[int]:
    return [e.rating for e in entries]


def entries_since(
    entries: Sequence[AnalyzedEntry], now: datetime, days: int
) -> List[AnalyzedEntry]:
    """Entries logged within the last `days` days of `now` (order preserved)."""
    cutoff = now.timestamp() - days * SECONDS_PER_DAY
    return [e for e in entries if e.timestamp >= cutoff]


def entries_between(
    entries: Sequence[AnalyzedEntry], now: datetime, newer_days: int, older_days: int
) -> List[AnalyzedEntry]:
    """Entries logged between `older_days` and `newer_days` days before `now`."""
    newest = now.timestamp() - newer_days * SECONDS_PER_DAY
    oldest = now.timestamp() - older_days * SECONDS_PER_DAY
    return [e for e in entries if oldest <= e.timestamp < newest]


def days_since(moment: datetime, now: datetime) -> int:
    """Whole days elapsed from `moment` to `now` (never negative)."""
    return max(0, int((now.timestamp() - moment.timestamp()) // SECONDS_PER_DAY))
