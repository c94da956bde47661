"""
Mise - Dietary Compliance Filter.

Hard constraints from a preference bundle: diet style, allergies and
exclusions. Pure functions, no I/O. Soft preferences (cuisines, goals)
live in the preference embedding instead.

Matching is keyword/substring based and case-insensitive. It errs on
the side of rejecting: "peanut butter" is rejected for a vegan diet.
"""

import logging
from typing import Iterable

from mise.models import Candidate, PreferenceBundle, Recipe

logger = logging.getLogger(__name__)


# =============================================================================
# Keyword sets
# =============================================================================

MEAT_KEYWORDS = (
    "chicken", "beef", "pork", "lamb", "turkey", "duck", "veal", "bacon",
    "sausage", "ham", "steak", "ground meat", "meatball", "meat", "poultry",
    "prosciutto", "salami", "pepperoni", "chorizo",
)

DAIRY_KEYWORDS = (
    "milk", "cheese", "butter", "cream", "yogurt", "whey", "casein", "lactose",
    "parmesan", "cheddar", "mozzarella", "ricotta", "feta", "goat cheese",
    "sour cream", "half and half",
)

FISH_KEYWORDS = (
    "fish", "salmon", "tuna", "cod", "shrimp", "crab", "lobster", "shellfish",
    "seafood", "anchovy", "tilapia", "halibut", "trout", "mahi mahi", "catfish",
    "clam", "mussel", "oyster", "scallop", "calamari", "squid",
)

EGG_KEYWORDS = ("egg", "eggs", "mayonnaise", "mayo")

HONEY_KEYWORDS = ("honey",)

# Diet style -> keyword groups it forbids. Other diet styles impose no
# hard constraint (keto, paleo, ...); they only guide generation.
DIET_RULES: dict[str, tuple[tuple[str, ...], ...]] = {
    "vegan": (MEAT_KEYWORDS, DAIRY_KEYWORDS, FISH_KEYWORDS, EGG_KEYWORDS, HONEY_KEYWORDS),
    "vegetarian": (MEAT_KEYWORDS, FISH_KEYWORDS),
    "pescatarian": (MEAT_KEYWORDS,),
}


# =============================================================================
# Helpers
# =============================================================================


def _squash(text: str) -> str:
    """Lowercase and drop whitespace so "pea nut" and "peanut" match alike."""
    return "".join(text.lower().split())


def _patterns(values: Iterable[str]) -> list[str]:
    return [p for p in (_squash(v) for v in values if v) if p]


def _contains_any(text: str, keywords: Iterable[str]) -> str | None:
    for keyword in keywords:
        if keyword in text:
            return keyword
    return None


def _forbidden_keyword(recipe: Recipe, diet_style: str | None) -> str | None:
    groups = DIET_RULES.get((diet_style or "").strip().lower())
    if not groups:
        return None

    for ingredient in recipe.ingredients:
        text = ingredient.search_text
        for keywords in groups:
            hit = _contains_any(text, keywords)
            if hit:
                return hit
    return None


def _allergen(recipe: Recipe, allergies: list[str]) -> str | None:
    patterns = _patterns(allergies)
    if not patterns:
        return None

    for ingredient in recipe.ingredients:
        hit = _contains_any(_squash(ingredient.search_text), patterns)
        if hit:
            return hit
    return None


def _exclusion(recipe: Recipe, exclusions: list[str]) -> str | None:
    patterns = _patterns(exclusions)
    if not patterns:
        return None

    # Title and description count too ("Shrimp Scampi" with no shrimp line)
    hit = _contains_any(_squash(f"{recipe.title} {recipe.description or ''}"), patterns)
    if hit:
        return hit

    for ingredient in recipe.ingredients:
        hit = _contains_any(_squash(ingredient.search_text), patterns)
        if hit:
            return hit
    return None


# =============================================================================
# Public API
# =============================================================================


def violation(recipe: Recipe, bundle: PreferenceBundle) -> str | None:
    """
    First hard-constraint violation of a recipe, or None if compliant.

    Returns a short description like "diet:vegan:milk" or "allergy:peanut".
    """
    diet_hit = _forbidden_keyword(recipe, bundle.diet_style)
    if diet_hit:
        return f"diet:{bundle.diet_style.strip().lower()}:{diet_hit}"

    allergy_hit = _allergen(recipe, bundle.allergies)
    if allergy_hit:
        return f"allergy:{allergy_hit}"

    exclusion_hit = _exclusion(recipe, bundle.exclusions)
    if exclusion_hit:
        return f"exclusion:{exclusion_hit}"

    return None


def is_compliant(recipe: Recipe, bundle: PreferenceBundle) -> bool:
    """True if the recipe satisfies the bundle's diet style, allergies and exclusions."""
    return violation(recipe, bundle) is None


def has_restrictions(bundle: PreferenceBundle) -> bool:
    """
    True if the bundle carries any hard constraint.

    Any diet style counts (even "omnivore"); the filter is cheap but
    skipped entirely when nothing could be rejected.
    """
    return bool(
        (bundle.diet_style and bundle.diet_style.strip())
        or any(a.strip() for a in bundle.allergies)
        or any(e.strip() for e in bundle.exclusions)
    )


def filter_compliant(candidates: list[Candidate], bundle: PreferenceBundle) -> list[Candidate]:
    """Keep compliant candidates, order preserved. An empty result is valid."""
    kept: list[Candidate] = []
    for candidate in candidates:
        reason = violation(candidate.recipe, bundle)
        if reason is None:
            kept.append(candidate)
        else:
            logger.debug(f"Compliance: rejected '{candidate.title}' ({reason})")
    return kept
