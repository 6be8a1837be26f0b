"""
Unit tests for the category combination detector.
"""
from app.services.combination_service import detect_combinations
from app.services.entry_normalizer import normalize_entries
from app.services.trigger_categories import TriggerCategory
from tests.factories import NOW, create_entry, create_trigger


def _completed(entries, config):
    return normalize_entries(entries, NOW, config).completed


def _meal(rating, days_ago, *categories):
    return create_entry(
        rating=rating,
        days_ago=days_ago,
        triggers=[create_trigger(c, f"{c} food") for c in categories],
    )


class TestDetectCombinations:
    """Pairs that are worse together than apart."""

    def test_pair_worse_together(self, config):
        entries = [
            _meal(5, 5, "dairy", "gluten"),
            _meal(5, 4, "dairy", "gluten"),
            _meal(2, 3, "dairy"),
            _meal(2, 2, "dairy"),
            _meal(3, 1, "gluten"),
        ]

        combos = detect_combinations(_completed(entries, config), config)

        assert len(combos) == 1
        combo = combos[0]
        assert combo.triggers == [TriggerCategory.GLUTEN, TriggerCategory.DAIRY]
        assert combo.occurrences == 2
        assert combo.avg_bloating_together == 5.0
        assert combo.avg_bloating_separate == 2.33
        assert combo.impact == 2.67
        assert combo.separate_occurrences == 3

    def test_below_minimum_co_occurrence(self, config):
        """A single co-occurrence is never reported."""
        entries = [
            _meal(5, 3, "dairy", "gluten"),
            _meal(1, 2, "dairy"),
            _meal(1, 1, "gluten"),
        ]

        assert detect_combinations(_completed(entries, config), config) == []

    def test_no_separate_baseline(self, config):
        """Categories that only ever appear together have nothing to compare."""
        entries = [_meal(5, 2, "dairy", "gluten"), _meal(5, 1, "dairy", "gluten")]

        assert detect_combinations(_completed(entries, config), config) == []

    def test_together_not_worse(self, config):
        entries = [
            _meal(2, 4, "dairy", "gluten"),
            _meal(2, 3, "dairy", "gluten"),
            _meal(4, 2, "dairy"),
            _meal(4, 1, "gluten"),
        ]

        assert detect_combinations(_completed(entries, config), config) == []

    def test_sorted_by_gap(self, config):
        entries = [
            _meal(4, 9, "gluten", "alcohol"),
            _meal(4, 8, "gluten", "alcohol"),
            _meal(3, 7, "gluten"),
            _meal(5, 6, "dairy", "high-fat"),
            _meal(5, 5, "dairy", "high-fat"),
            _meal(1, 4, "dairy"),
        ]

        combos = detect_combinations(_completed(entries, config), config)

        assert [c.triggers for c in combos] == [
            [TriggerCategory.DAIRY, TriggerCategory.HIGH_FAT],
            [TriggerCategory.GLUTEN, TriggerCategory.ALCOHOL],
        ]
        assert combos[0].impact == 4.0
        assert combos[1].impact == 1.0

    def test_empty_input(self, config):
        assert detect_combinations([], config) == []
