"""
Mise - Candidate and Meal-Plan Models.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from mise.models.recipe import Recipe

SearchTier = Literal["vector", "tag", "random", "query", "none"]


class Candidate(BaseModel):
    """
    A recipe annotated with a similarity score in [0, 1].

    Tag and random tiers assign fixed placeholder scores; those are only
    meaningful as "ranks above random", not comparable to vector scores.
    """

    recipe: Recipe
    similarity: float
    tier: SearchTier = "vector"

    @property
    def id(self) -> str | None:
        return self.recipe.id

    @property
    def title(self) -> str:
        return self.recipe.title


class MealPlanDay(BaseModel):
    """One calendar day with a single dinner slot."""

    date: date
    dinner: Recipe | None = None


class MealPlan(BaseModel):
    start_date: date
    end_date: date
    days: list[MealPlanDay] = Field(default_factory=list)

    @property
    def recipes(self) -> list[Recipe]:
        return [d.dinner for d in self.days if d.dinner is not None]


class MealPlanResult(BaseModel):
    """
    Output of one planner run.

    corpus_count / generated_count feed cost reporting; used_recipe_ids
    are the ids recorded (or to be recorded) as served to the requester.
    """

    plan: MealPlan
    requested_count: int
    corpus_count: int = 0
    generated_count: int = 0
    used_recipe_ids: list[str] = Field(default_factory=list)
    recency_window_days: int | None = None
    search_tier: SearchTier = "none"
    cost: dict = Field(default_factory=dict)

    @property
    def achieved_count(self) -> int:
        return len(self.plan.recipes)

    @property
    def shortfall(self) -> int:
        return max(0, self.requested_count - self.achieved_count)
