"""
Mise - Retrieval.

Search tiers, the dietary compliance filter and diversity selection.
"""

from mise.retrieval.compliance import filter_compliant, has_restrictions, is_compliant, violation
from mise.retrieval.diversity import (
    ingredient_overlap,
    is_duplicate_recipe,
    select_diverse,
    title_overlap,
)
from mise.retrieval.search import RecipeSearch, tag_keywords

__all__ = [
    "RecipeSearch",
    "filter_compliant",
    "has_restrictions",
    "ingredient_overlap",
    "is_compliant",
    "is_duplicate_recipe",
    "select_diverse",
    "tag_keywords",
    "title_overlap",
    "violation",
]
