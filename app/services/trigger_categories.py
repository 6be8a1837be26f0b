"""Closed set of trigger categories the meal analyzer can tag."""
import enum
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class TriggerCategory(str, enum.Enum):
    """Known trigger classes. Anything else maps to UNKNOWN."""

    FODMAPS_FRUCTANS = "fodmaps-fructans"
    FODMAPS_GOS = "fodmaps-gos"
    FODMAPS_LACTOSE = "fodmaps-lactose"
    FODMAPS_FRUCTOSE = "fodmaps-fructose"
    FODMAPS_POLYOLS = "fodmaps-polyols"
    GLUTEN = "gluten"
    DAIRY = "dairy"
    CRUCIFEROUS = "cruciferous"
    HIGH_FAT = "high-fat"
    CARBONATED = "carbonated"
    REFINED_SUGAR = "refined-sugar"
    ALCOHOL = "alcohol"
    UNKNOWN = "unknown"


# Enumeration order doubles as the stable tie-break order for categories
KNOWN_CATEGORIES: List[TriggerCategory] = [
    c for c in TriggerCategory if c is not TriggerCategory.UNKNOWN
]
CATEGORY_ORDER = {c: i for i, c in enumerate(KNOWN_CATEGORIES)}

DISPLAY_NAMES = {
    TriggerCategory.FODMAPS_FRUCTANS: "FODMAPs - Fructans",
    TriggerCategory.FODMAPS_GOS: "FODMAPs - GOS",
    TriggerCategory.FODMAPS_LACTOSE: "FODMAPs - Lactose",
    TriggerCategory.FODMAPS_FRUCTOSE: "FODMAPs - Fructose",
    TriggerCategory.FODMAPS_POLYOLS: "FODMAPs - Polyols",
    TriggerCategory.GLUTEN: "Gluten",
    TriggerCategory.DAIRY: "Dairy",
    TriggerCategory.CRUCIFEROUS: "Cruciferous",
    TriggerCategory.HIGH_FAT: "High-Fat/Fried",
    TriggerCategory.CARBONATED: "Carbonated",
    TriggerCategory.REFINED_SUGAR: "Refined Sugar",
    TriggerCategory.ALCOHOL: "Alcohol",
    TriggerCategory.UNKNOWN: "Unknown",
}

SAFE_ALTERNATIVES = {
    TriggerCategory.FODMAPS_FRUCTANS: ["garlic-infused oil", "green part of scallions", "chives", "asafoetida"],
    TriggerCategory.FODMAPS_GOS: ["canned lentils (rinsed)", "firm tofu", "tempeh"],
    TriggerCategory.FODMAPS_LACTOSE: ["lactose-free milk", "hard cheeses", "almond milk", "oat milk"],
    TriggerCategory.FODMAPS_FRUCTOSE: ["blueberries", "strawberries", "oranges", "grapes"],
    TriggerCategory.FODMAPS_POLYOLS: ["maple syrup", "rice malt syrup", "glucose"],
    TriggerCategory.GLUTEN: ["rice", "quinoa", "gluten-free bread", "sourdough (long ferment)"],
    TriggerCategory.DAIRY: ["lactose-free milk", "almond milk", "oat milk", "coconut yogurt"],
    TriggerCategory.CRUCIFEROUS: ["carrots", "zucchini", "bell peppers", "spinach", "cucumber"],
    TriggerCategory.HIGH_FAT: ["grilled proteins", "baked alternatives", "air-fried options"],
    TriggerCategory.CARBONATED: ["still water", "herbal tea", "infused water"],
    TriggerCategory.REFINED_SUGAR: ["maple syrup", "stevia", "fresh fruit"],
    TriggerCategory.ALCOHOL: ["mocktails", "sparkling water with lime", "kombucha"],
}


def parse_category(value: Optional[str]) -> TriggerCategory:
    """
    Map a raw category string from the upstream classifier onto the enum.

    Matching ignores case and surrounding whitespace, and accepts underscores
    in place of hyphens. Unrecognized values return TriggerCategory.UNKNOWN.
    """
    if not value:
        return TriggerCategory.UNKNOWN
    key = value.strip().lower().replace("_", "-")
    try:
        return TriggerCategory(key)
    except ValueError:
        logger.info("Unrecognized trigger category %r mapped to unknown", value)
        return TriggerCategory.UNKNOWN


def display_name(category: TriggerCategory) -> str:
    return DISPLAY_NAMES.get(category, category.value)


def safe_alternatives(category: TriggerCategory) -> List[str]:
    """Lower-risk swaps for a category (empty for UNKNOWN)."""
    return list(SAFE_ALTERNATIVES.get(category, []))
