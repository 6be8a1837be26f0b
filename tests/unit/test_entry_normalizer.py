"""
Unit tests for the entry normalizer.

Covers filtering of pending/unrated entries, malformed input, trigger
category validation, de-duplication and the recent window.
"""
from datetime import timedelta

from app.services.entry_normalizer import normalize_entries
from app.services.insight_schemas import MealEntry, RatingStatus
from app.services.trigger_categories import TriggerCategory
from tests.factories import NOW, create_entry, create_trigger


class TestCompletedFilter:
    """Only completed entries with a valid rating participate."""

    def test_empty_input(self, config):
        """Empty input yields empty collections without raising."""
        result = normalize_entries([], NOW, config)

        assert result.completed == []
        assert result.recent == []
        assert result.skipped == 0

    def test_pending_entries_are_ignored(self, config):
        """Pending entries are excluded but not counted as skipped."""
        entries = [create_entry(rating=None, status="pending"), create_entry(rating=3)]

        result = normalize_entries(entries, NOW, config)

        assert len(result.completed) == 1
        assert result.skipped == 0

    def test_completed_without_rating_is_skipped(self, config):
        """A completed entry without a rating is excluded and counted."""
        result = normalize_entries([create_entry(rating=None)], NOW, config)

        assert result.completed == []
        assert result.skipped == 1

    def test_out_of_range_rating_is_skipped(self, config):
        """Ratings outside 1-5 are excluded."""
        entries = [create_entry(rating=0), create_entry(rating=7), create_entry(rating=5)]

        result = normalize_entries(entries, NOW, config)

        assert [e.rating for e in result.completed] == [5]
        assert result.skipped == 2

    def test_malformed_timestamp_does_not_abort(self, config):
        """A single bad entry never prevents analysis of the rest."""
        entries = [create_entry(rating=4), create_entry(rating=2)]
        entries[0]["created_at"] = "not-a-date"

        result = normalize_entries(entries, NOW, config)

        assert len(result.completed) == 1
        assert result.completed[0].rating == 2
        assert result.skipped == 1


class TestInputShapes:
    """Both database rows and camelCase client payloads are accepted."""

    def test_camel_case_mapping(self, config):
        """camelCase keys and numeric ids are accepted."""
        raw = {
            "id": 42,
            "createdAt": NOW.isoformat(),
            "ratingStatus": "completed",
            "bloatingRating": 2,
            "detectedTriggers": [{"category": "gluten", "food": "bread", "confidence": 0.8}],
            "customTitle": "Toast",
        }

        result = normalize_entries([raw], NOW, config)

        entry = result.completed[0]
        assert entry.id == "42"
        assert entry.title == "Toast"
        assert entry.categories == {TriggerCategory.GLUTEN}

    def test_meal_entry_objects(self, config):
        """Already-validated MealEntry objects pass straight through."""
        entry = MealEntry(
            id="m1",
            created_at=NOW,
            rating_status=RatingStatus.COMPLETED,
            bloating_rating=4,
        )

        result = normalize_entries([entry], NOW, config)

        assert result.completed[0].id == "m1"

    def test_null_triggers_and_notes(self, config):
        """Null trigger lists and notes normalize to empty values."""
        raw = create_entry(rating=3, notes=None)
        raw["detected_triggers"] = None

        result = normalize_entries([raw], NOW, config)

        assert result.completed[0].triggers == []
        assert result.completed[0].notes == ""


class TestTriggerValidation:
    """Trigger categories are validated at the boundary."""

    def test_unknown_category_maps_to_unknown(self, config):
        """Unrecognized categories become UNKNOWN and keep their food."""
        entry = create_entry(triggers=[create_trigger("spicy-things", "chili")])

        result = normalize_entries([entry], NOW, config)

        trigger = result.completed[0].triggers[0]
        assert trigger.category is TriggerCategory.UNKNOWN
        assert trigger.food == "chili"
        assert trigger.raw_category == "spicy-things"
        assert result.completed[0].categories == set()

    def test_category_matching_is_lenient(self, config):
        """Case, whitespace and underscores do not matter."""
        entry = create_entry(triggers=[create_trigger(" High_Fat ", "fries")])

        result = normalize_entries([entry], NOW, config)

        assert result.completed[0].categories == {TriggerCategory.HIGH_FAT}

    def test_duplicate_triggers_are_collapsed(self, config):
        """The same category/food pair is kept once per entry."""
        entry = create_entry(
            triggers=[
                create_trigger("dairy", "Cheese"),
                create_trigger("dairy", "cheese"),
                create_trigger("dairy", "milk"),
            ]
        )

        result = normalize_entries([entry], NOW, config)

        assert [t.food for t in result.completed[0].triggers] == ["Cheese", "milk"]

    def test_label_confidence_keeps_meal(self, config):
        """A non-numeric confidence never drops the meal or its trigger."""
        trigger = {"category": "dairy", "food": "cheese", "confidence": "high"}
        entry = create_entry(rating=5, triggers=[trigger])

        result = normalize_entries([entry], NOW, config)

        assert result.skipped == 0
        assert result.completed[0].rating == 5
        assert result.completed[0].categories == {TriggerCategory.DAIRY}

    def test_malformed_trigger_is_dropped_alone(self, config):
        """A bad trigger item is dropped while the meal and its other triggers stay."""
        entry = create_entry(
            rating=5,
            triggers=[
                create_trigger("dairy", "cheese"),
                {"category": 7, "food": "x"},
                "dairy",
            ],
        )

        result = normalize_entries([entry], NOW, config)

        assert result.skipped == 0
        assert len(result.completed) == 1
        assert [t.food for t in result.completed[0].triggers] == ["cheese"]

    def test_single_trigger_object_is_accepted(self, config):
        """A lone trigger mapping instead of a list is treated as one item."""
        raw = create_entry(rating=4)
        raw["detected_triggers"] = create_trigger("gluten", "bread")

        result = normalize_entries([raw], NOW, config)

        assert result.completed[0].categories == {TriggerCategory.GLUTEN}


class TestOrderingAndWindow:
    """Chronological ordering and the recent window."""

    def test_completed_sorted_chronologically(self, config):
        """Input order does not matter; output is oldest first."""
        entries = [
            create_entry(rating=1, days_ago=1),
            create_entry(rating=2, days_ago=3),
            create_entry(rating=3, days_ago=2),
        ]

        result = normalize_entries(entries, NOW, config)

        assert [e.rating for e in result.completed] == [2, 3, 1]

    def test_recent_window(self, config):
        """Entries older than the recent window stay in completed only."""
        entries = [
            create_entry(rating=5, days_ago=20),
            create_entry(rating=2, days_ago=3),
        ]

        result = normalize_entries(entries, NOW, config)

        assert len(result.completed) == 2
        assert [e.rating for e in result.recent] == [2]

    def test_recent_window_boundary_is_inclusive(self, config):
        """An entry exactly recent_days old is still recent."""
        entry = create_entry(created_at=NOW - timedelta(days=config.recent_days))

        result = normalize_entries([entry], NOW, config)

        assert len(result.recent) == 1
