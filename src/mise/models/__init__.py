"""
Mise - Data models.
"""

from mise.models.plan import Candidate, MealPlan, MealPlanDay, MealPlanResult, SearchTier
from mise.models.preferences import (
    DEFAULT_DIET_STYLE,
    CuisineLevel,
    CuisinePreference,
    InventoryItem,
    PreferenceBundle,
)
from mise.models.recipe import (
    Ingredient,
    Recipe,
    RecipeSource,
    Step,
    from_pgvector,
    recipe_from_row,
    recipe_to_row,
    to_pgvector,
)

__all__ = [
    "Candidate",
    "CuisineLevel",
    "CuisinePreference",
    "DEFAULT_DIET_STYLE",
    "Ingredient",
    "InventoryItem",
    "MealPlan",
    "MealPlanDay",
    "MealPlanResult",
    "PreferenceBundle",
    "Recipe",
    "RecipeSource",
    "SearchTier",
    "Step",
    "from_pgvector",
    "recipe_from_row",
    "recipe_to_row",
    "to_pgvector",
]
