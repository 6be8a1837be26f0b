"""
Unit tests for behavioral patterns found in meal notes.
"""
from app.services.entry_normalizer import normalize_entries
from app.services.notes_patterns import analyze_notes_patterns, compare_weekly_behaviors
from tests.factories import NOW, create_entry


def _patterns(entries, config):
    completed = normalize_entries(entries, NOW, config).completed
    return analyze_notes_patterns(completed, config)


class TestAnalyzeNotesPatterns:
    """Keyword matching, correlation and ordering."""

    def test_stress_with_high_bloating(self, config):
        entries = [
            create_entry(rating=5, days_ago=3, notes="Very stressed at work"),
            create_entry(rating=4, days_ago=2, notes="Stress about deadline"),
            create_entry(rating=2, days_ago=1, notes="Ate late tonight"),
        ]

        patterns = _patterns(entries, config)

        assert [p.type for p in patterns] == ["stress", "timing"]
        stress = patterns[0]
        assert stress.label == "Stressed"
        assert stress.count == 2
        assert stress.high_bloating_count == 2
        assert stress.avg_bloating == 4.5
        assert stress.correlation == "high"

    def test_single_match_is_low_correlation(self, config):
        entries = [create_entry(rating=5, notes="so hungry")]

        patterns = _patterns(entries, config)

        assert patterns[0].type == "hunger"
        assert patterns[0].correlation == "low"

    def test_medium_correlation(self, config):
        entries = [
            create_entry(rating=5, days_ago=3, notes="restaurant dinner"),
            create_entry(rating=2, days_ago=2, notes="Restaurant lunch"),
            create_entry(rating=1, days_ago=1, notes="restaurant brunch"),
        ]

        assert _patterns(entries, config)[0].correlation == "medium"

    def test_keywords_match_whole_words(self, config):
        """'breakfast' is not a rushed meal."""
        entries = [create_entry(rating=3, notes="big breakfast")]

        assert _patterns(entries, config) == []

    def test_emoji_keyword(self, config):
        entries = [create_entry(rating=4, notes="lunch \U0001F630")]

        assert _patterns(entries, config)[0].type == "stress"

    def test_one_note_can_match_several_patterns(self, config):
        entries = [create_entry(rating=4, notes="rushed and stressed")]

        types = {p.type for p in _patterns(entries, config)}

        assert types == {"stress", "rushing"}

    def test_entries_without_notes(self, config):
        entries = [create_entry(rating=5), create_entry(rating=4, notes="")]

        assert _patterns(entries, config) == []


class TestCompareWeeklyBehaviors:
    """Week-over-week share of meals mentioning stress, late eating or rushing."""

    def _changes(self, entries, config):
        completed = normalize_entries(entries, NOW, config).completed
        return {c.type: c for c in compare_weekly_behaviors(completed, NOW, config)}

    def test_shares_and_change(self, config):
        entries = [
            create_entry(rating=5, days_ago=1, notes="stressed at work"),
            create_entry(rating=4, days_ago=2, notes="anxious"),
            create_entry(rating=2, days_ago=2, notes="ate late"),
            create_entry(rating=1, days_ago=3),
            create_entry(rating=3, days_ago=8, notes="stress"),
            create_entry(rating=2, days_ago=9),
            create_entry(rating=2, days_ago=10),
            create_entry(rating=2, days_ago=11),
        ]

        changes = self._changes(entries, config)

        stress = changes["stress"]
        assert stress.label == "Stressed"
        assert stress.this_week == 0.5
        assert stress.last_week == 0.25
        assert stress.change == 0.25
        assert stress.bloating_rate == 4.5

        timing = changes["timing"]
        assert timing.this_week == 0.25
        assert timing.last_week == 0.0
        assert timing.bloating_rate == 2.0

        assert changes["rushing"].change == 0.0

    def test_fewer_mentions_is_negative_change(self, config):
        entries = [
            create_entry(rating=2, days_ago=1),
            create_entry(rating=4, days_ago=8, notes="rushed lunch"),
        ]

        rushing = self._changes(entries, config)["rushing"]

        assert rushing.change == -1.0
        assert rushing.bloating_rate == 0.0

    def test_empty_weeks(self, config):
        changes = compare_weekly_behaviors([], NOW, config)

        assert [c.type for c in changes] == ["stress", "timing", "rushing"]
        assert all(c.this_week == 0.0 and c.last_week == 0.0 for c in changes)
