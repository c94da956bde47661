"""
Mise - Recipe Generator.

The generative fallback: asks the LLM for recipes when the corpus
cannot fill a plan, or for a single replacement recipe.

Output is validated by Instructor against the models below. Anything
that does not yield at least one usable recipe is a generation failure,
never a silently empty success.
"""

import logging
from typing import Sequence

import instructor
from pydantic import BaseModel, Field

from mise.errors import GenerationFailedError, MiseError
from mise.generation.prompts import (
    GENERATE_SYSTEM_PROMPT,
    REPLACE_SYSTEM_PROMPT,
    build_generation_prompt,
    build_replacement_prompt,
)
from mise.llm.client import call_llm
from mise.models import Ingredient, InventoryItem, PreferenceBundle, Recipe, RecipeSource, Step
from mise.observability.costs import CostTracker

logger = logging.getLogger(__name__)


# =============================================================================
# Structured output models
# =============================================================================


class GeneratedIngredient(BaseModel):
    name: str = Field(min_length=1)
    qty: float | None = None
    unit: str | None = None
    notes: str | None = None
    canonicalId: str = Field(description="lowercase underscore_separated ingredient name")


class GeneratedRecipe(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    servings: int | None = None
    totalMinutes: int | None = None
    cuisine: str | None = None
    tags: list[str] = Field(default_factory=list)
    ingredients: list[GeneratedIngredient] = Field(min_length=1)
    steps: list[str] = Field(default_factory=list)

    def to_recipe(self, source: RecipeSource = RecipeSource.GENERATED) -> Recipe:
        return Recipe(
            title=self.title.strip(),
            description=self.description,
            servings=self.servings,
            total_minutes=self.totalMinutes,
            cuisine=self.cuisine,
            tags=self.tags,
            ingredients=[
                Ingredient(
                    name=ing.name,
                    quantity=ing.qty,
                    unit=ing.unit,
                    notes=ing.notes,
                    canonical_id=ing.canonicalId,
                )
                for ing in self.ingredients
            ],
            steps=[Step(order=i + 1, text=s) for i, s in enumerate(self.steps)] or None,
            source=source,
        )


class GeneratedRecipes(BaseModel):
    recipes: list[GeneratedRecipe]


# =============================================================================
# Generator
# =============================================================================


class RecipeGenerator:
    """
    LLM-backed recipe generation.

    Args:
        client: Instructor client override (defaults to the shared client)
        cost_tracker: Optional tracker for token usage
    """

    def __init__(
        self,
        client: instructor.AsyncInstructor | None = None,
        cost_tracker: CostTracker | None = None,
    ):
        self.client = client
        self.cost_tracker = cost_tracker

    async def generate(
        self,
        bundle: PreferenceBundle,
        inventory: Sequence[InventoryItem],
        count: int,
        avoid_titles: Sequence[str] = (),
    ) -> list[Recipe]:
        """
        Generate up to `count` dinner recipes for a preference bundle.

        Raises:
            GenerationFailedError: model/transport failure, output that
                fails validation, or no recipes at all
        """
        if count <= 0:
            return []

        user_prompt = build_generation_prompt(bundle, inventory, count, avoid_titles)
        logger.info(f"Generator: requesting {count} recipes (avoiding {len(avoid_titles)} titles)")

        try:
            response = await call_llm(
                response_model=GeneratedRecipes,
                system_prompt=GENERATE_SYSTEM_PROMPT,
                user_prompt=user_prompt,
                task="generate",
                client=self.client,
                cost_tracker=self.cost_tracker,
            )
        except MiseError:
            raise
        except Exception as e:
            logger.error(f"Generator: generation call failed: {e}")
            raise GenerationFailedError(f"Recipe generation failed: {e}", requested=count) from e

        recipes = [r.to_recipe() for r in response.recipes]
        if not recipes:
            raise GenerationFailedError("Generator returned no recipes", requested=count)

        if len(recipes) > count:
            logger.info(f"Generator: got {len(recipes)} recipes, keeping {count}")
            recipes = recipes[:count]
        elif len(recipes) < count:
            logger.warning(f"Generator: asked for {count} recipes, got {len(recipes)}")

        return recipes

    async def generate_replacement(
        self,
        original: Recipe,
        reason: str,
        bundle: PreferenceBundle | None = None,
    ) -> Recipe:
        """
        Generate one alternative to `original`.

        Raises:
            GenerationFailedError: as for generate()
        """
        try:
            response = await call_llm(
                response_model=GeneratedRecipe,
                system_prompt=REPLACE_SYSTEM_PROMPT,
                user_prompt=build_replacement_prompt(original, reason, bundle),
                task="replace",
                client=self.client,
                cost_tracker=self.cost_tracker,
            )
        except MiseError:
            raise
        except Exception as e:
            logger.error(f"Generator: replacement call failed: {e}")
            raise GenerationFailedError(f"Replacement generation failed: {e}", requested=1) from e

        return response.to_recipe()
