"""
Mise - Diversity Selection.

Greedy re-ranking that keeps near-duplicate recipes out of one plan.
Two signals, each a ratio over the smaller of the two sets compared:
- title word overlap (significant words, longer than two characters)
- canonical ingredient overlap

Diversity is a soft preference: when too few candidates survive, the
result is backfilled best-first so the plan can still be completed.
"""

import logging
from typing import Iterable, Sequence

from mise.models import Candidate, Ingredient, Recipe
from mise.tools.normalize import normalize_title, significant_words

logger = logging.getLogger(__name__)

TITLE_SIMILARITY_THRESHOLD = 0.6
INGREDIENT_OVERLAP_THRESHOLD = 0.7

# is_duplicate_recipe() is stricter about what counts as the same dish
DUPLICATE_OVERLAP_THRESHOLD = 0.7
DUPLICATE_CONTAINMENT_MIN_LENGTH = 10
DUPLICATE_WORD_MIN_LENGTH = 4


def _overlap(a: set, b: set) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / min(len(a), len(b))


def title_overlap(title_a: str, title_b: str) -> float:
    """
    Shared significant words / word count of the shorter title.

    Examples:
        title_overlap("Chicken Fajitas", "Chicken Fajitas with Peppers") -> 1.0
        title_overlap("Beef Stew", "Lentil Soup") -> 0.0
    """
    return _overlap(significant_words(title_a), significant_words(title_b))


def _ingredient_keys(ingredients: Iterable[Ingredient]) -> set[str]:
    return {ing.canonical_id for ing in ingredients if ing.canonical_id}


def ingredient_overlap(recipe_a: Recipe, recipe_b: Recipe) -> float:
    """Shared canonical ingredient ids / size of the smaller ingredient set."""
    return _overlap(recipe_a.canonical_ingredient_ids, recipe_b.canonical_ingredient_ids)


def select_diverse(
    candidates: Sequence[Candidate],
    target_count: int,
    title_threshold: float = TITLE_SIMILARITY_THRESHOLD,
    ingredient_threshold: float = INGREDIENT_OVERLAP_THRESHOLD,
) -> list[Candidate]:
    """
    Pick up to target_count candidates, skipping near-duplicates.

    Candidates are taken in the order given (callers pass them most
    similar first). A candidate is skipped if its title overlap or its
    ingredient overlap with any already-selected candidate reaches the
    threshold. If fewer than target_count survive, the remaining
    candidates are appended best-first regardless of similarity.

    Returns:
        At most target_count candidates; empty for empty input.
    """
    if target_count <= 0 or not candidates:
        return []
    if len(candidates) <= target_count:
        return list(candidates)

    selected: list[Candidate] = []

    for candidate in candidates:
        if len(selected) >= target_count:
            break

        too_similar = False
        for chosen in selected:
            title_sim = title_overlap(candidate.title, chosen.title)
            if title_sim >= title_threshold:
                logger.debug(
                    f"Diversity: skipping '{candidate.title}', too similar to "
                    f"'{chosen.title}' ({title_sim:.0%} title match)"
                )
                too_similar = True
                break

            ing_sim = ingredient_overlap(candidate.recipe, chosen.recipe)
            if ing_sim >= ingredient_threshold:
                logger.debug(
                    f"Diversity: skipping '{candidate.title}', too similar to "
                    f"'{chosen.title}' ({ing_sim:.0%} ingredient overlap)"
                )
                too_similar = True
                break

        if not too_similar:
            selected.append(candidate)

    if len(selected) < target_count:
        logger.info(
            f"Diversity: only {len(selected)} diverse recipes, "
            f"backfilling {target_count - len(selected)} more"
        )
        picked = {id(c) for c in selected}
        for candidate in candidates:
            if len(selected) >= target_count:
                break
            if id(candidate) not in picked:
                selected.append(candidate)
                picked.add(id(candidate))

    return selected


# =============================================================================
# Duplicate check (before persisting a new recipe)
# =============================================================================


def _titles_match(a: str, b: str) -> bool:
    if a == b:
        return True

    if len(a) > DUPLICATE_CONTAINMENT_MIN_LENGTH and len(b) > DUPLICATE_CONTAINMENT_MIN_LENGTH:
        if a in b or b in a:
            return True

    words_a = significant_words(a, min_length=DUPLICATE_WORD_MIN_LENGTH)
    words_b = significant_words(b, min_length=DUPLICATE_WORD_MIN_LENGTH)
    return _overlap(words_a, words_b) > DUPLICATE_OVERLAP_THRESHOLD


def is_duplicate_recipe(
    title: str,
    ingredients: Sequence[Ingredient],
    existing: Iterable[Recipe],
) -> bool:
    """
    True if a recipe is effectively the same dish as one already known.

    Same dish means any of:
    - identical normalized title
    - one title contains the other (both longer than 10 characters)
    - more than 70% overlap of title words longer than three characters
    - more than 70% canonical ingredient overlap
    """
    key = normalize_title(title)
    keys = _ingredient_keys(ingredients)

    for recipe in existing:
        if _titles_match(key, normalize_title(recipe.title)):
            return True
        if _overlap(keys, recipe.canonical_ingredient_ids) > DUPLICATE_OVERLAP_THRESHOLD:
            return True

    return False
