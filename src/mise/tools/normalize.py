"""
Mise - Name Normalization.

Utilities for normalizing recipe titles, ingredient names and units
so that overlap comparisons across recipes are consistent.
"""

import re

_PUNCTUATION = re.compile(r"[^\w\s]")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def normalize_name(name: str) -> str:
    """
    Normalize a name for consistent matching.

    Operations:
    - Lowercase
    - Strip leading/trailing whitespace
    - Collapse multiple spaces to single space

    Examples:
        normalize_name("  Chicken Thighs  ") -> "chicken thighs"
        normalize_name("green   pepper") -> "green pepper"
    """
    return " ".join(name.lower().strip().split())


def canonical_id(name: str) -> str:
    """
    Canonical ingredient identifier used for overlap comparisons.

    Lowercase, punctuation removed, whitespace runs replaced by "_".

    Examples:
        canonical_id("Parmesan Cheese") -> "parmesan_cheese"
        canonical_id("all-purpose flour") -> "allpurpose_flour"
    """
    cleaned = _PUNCTUATION.sub("", name.lower())
    return "_".join(cleaned.split())


def normalize_title(title: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    return " ".join(_PUNCTUATION.sub("", title.lower()).split())


def title_key(title: str) -> str:
    """Final-dedup key for a plan: case-insensitive, whitespace-trimmed title."""
    return title.strip().lower()


def significant_words(title: str, min_length: int = 3) -> set[str]:
    """
    Words of a title that carry meaning for overlap checks.

    Short words ("and", "the", "of") are dropped.

    Examples:
        significant_words("Chicken Fajitas with Peppers")
            -> {"chicken", "fajitas", "with", "peppers"}
    """
    cleaned = _NON_ALNUM.sub("", title.lower())
    return {w for w in cleaned.split() if len(w) >= min_length}


def display_cuisine(cuisine: str) -> str:
    """Cuisine codes like "MIDDLE_EASTERN" -> "middle eastern"."""
    return cuisine.lower().replace("_", " ").strip()


def clean_unit(unit: str) -> str:
    """
    Clean and normalize a unit string.

    Args:
        unit: Raw unit input (e.g., "LBS", "Pounds", "lb")

    Returns:
        Normalized unit (lowercase, singular form where applicable)
    """
    unit = unit.lower().strip()

    unit_aliases = {
        "pounds": "lb",
        "pound": "lb",
        "lbs": "lb",
        "ounces": "oz",
        "ounce": "oz",
        "grams": "g",
        "gram": "g",
        "kilograms": "kg",
        "kilogram": "kg",
        "liters": "l",
        "liter": "l",
        "litres": "l",
        "litre": "l",
        "milliliters": "ml",
        "milliliter": "ml",
        "cups": "cup",
        "tablespoons": "tbsp",
        "tablespoon": "tbsp",
        "teaspoons": "tsp",
        "teaspoon": "tsp",
        "cloves": "clove",
        "cans": "can",
        "pieces": "piece",
    }

    return unit_aliases.get(unit, unit)


_KNOWN_UNITS = {
    "lb", "lbs", "pound", "pounds",
    "oz", "ounce", "ounces",
    "g", "gram", "grams", "kg",
    "cup", "cups", "tbsp", "tsp",
    "ml", "l",
    "piece", "pieces",
    "clove", "cloves",
    "can", "cans",
    "bunch", "bunches",
    "head", "heads",
}


def extract_quantity_unit(text: str) -> tuple[float | None, str | None, str]:
    """
    Extract quantity and unit from a text string.

    Used to turn inventory entries like "2 lb chicken" into structured items.

    Examples:
        "3 lbs chicken" -> (3.0, "lb", "chicken")
        "chicken" -> (None, None, "chicken")
        "1/2 cup flour" -> (0.5, "cup", "flour")
    """
    text = text.strip()

    # Fractions first so they match before whole numbers
    match = re.match(r"^(\d+/\d+|\d+(?:\.\d+)?)\s*", text)
    if not match:
        return (None, None, text)

    qty_str = match.group(1)
    remaining = text[match.end():].strip()

    if "/" in qty_str:
        numerator, denominator = qty_str.split("/")
        quantity = float(numerator) / float(denominator)
    else:
        quantity = float(qty_str)

    unit_match = re.match(r"^(\w+)\s*(?:of\s+)?(.*)$", remaining, re.IGNORECASE)
    if unit_match and unit_match.group(1).lower() in _KNOWN_UNITS:
        return (quantity, clean_unit(unit_match.group(1)), unit_match.group(2).strip())

    return (quantity, None, remaining)
