"""
Mise - Embedding Service.

Turns recipe text and preference bundles into fixed-length vectors.

Vectors are persisted and compared against future queries, so the
model and dimensionality must stay fixed for a given embedding_version.
The service is constructed explicitly and passed to its callers; tests
substitute a fake by overriding _create().
"""

import logging
import math
from typing import Sequence

from openai import AsyncOpenAI

from mise.errors import EmptyInputError
from mise.models import DEFAULT_DIET_STYLE, PreferenceBundle, Recipe
from mise.observability.costs import CostTracker, record_usage

logger = logging.getLogger(__name__)

# Fallback when a preference bundle yields no phrases
FALLBACK_PREFERENCE_TEXT = "dinner recipe meal"

# Time caps at or below this read as "quick dinner"
QUICK_MEAL_MINUTES = 45


# =============================================================================
# Text builders
# =============================================================================


def recipe_text(recipe: Recipe) -> str:
    """
    Text representation of a recipe for embedding.

    Title, description, tags, ingredient names - in that order.
    """
    parts = [recipe.title]

    if recipe.description:
        parts.append(recipe.description)

    if recipe.tags:
        parts.append(" ".join(recipe.tags))

    names = ", ".join(n for n in recipe.ingredient_names if n)
    if names:
        parts.append(names)

    return ". ".join(parts)


def preference_phrases(bundle: PreferenceBundle) -> list[str]:
    """
    Recipe-shaped phrases for a preference bundle.

    The corpus is recipe text, so preferences are phrased the way
    recipes describe themselves. Allergies, exclusions and goals are
    left out: they hurt semantic matching and are enforced by the
    compliance filter instead.
    """
    phrases: list[str] = []

    for cuisine in bundle.loved_cuisines():
        phrases.append(f"{cuisine} recipe")
        phrases.append(f"{cuisine} dish")

    for cuisine in bundle.liked_cuisines():
        phrases.append(f"{cuisine} meal")

    if bundle.explanation and bundle.explanation.strip():
        phrases.append(bundle.explanation.strip())

    diet = (bundle.diet_style or "").strip()
    if diet and diet.lower() != DEFAULT_DIET_STYLE:
        phrases.append(f"{diet} recipe")

    if bundle.max_minutes is not None and bundle.max_minutes <= QUICK_MEAL_MINUTES:
        phrases.append("quick dinner recipe")
        phrases.append("easy meal")

    return phrases


def preferences_text(bundle: PreferenceBundle) -> str:
    phrases = preference_phrases(bundle)
    if not phrases:
        logger.info(f"Embeddings: no preference phrases, using fallback '{FALLBACK_PREFERENCE_TEXT}'")
        return FALLBACK_PREFERENCE_TEXT
    return ". ".join(phrases)


def replacement_text(
    original: Recipe,
    reason: str,
    bundle: PreferenceBundle | None = None,
) -> str:
    """Text for finding a replacement: the reason matters most."""
    parts = [reason.strip(), f"Alternative to {original.title}"]

    if bundle is not None:
        if bundle.diet_style:
            parts.append(f"{bundle.diet_style} diet")
        loved = bundle.loved_cuisines()
        if loved:
            parts.append(f"Prefers {', '.join(loved)} cuisine")

    return ". ".join(p for p in parts if p)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors, in [-1, 1].

    Raises ValueError for vectors of different length; zero vectors give 0.0.
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have the same length ({len(a)} != {len(b)})")

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += float(x) * float(y)
        norm_a += float(x) * float(x)
        norm_b += float(y) * float(y)

    denominator = math.sqrt(norm_a) * math.sqrt(norm_b)
    if denominator == 0:
        return 0.0
    return dot / denominator


# =============================================================================
# Service
# =============================================================================


class EmbeddingService:
    """
    Text -> vector via the OpenAI embeddings API.

    Args:
        client: AsyncOpenAI client (created from settings if omitted)
        model: Embedding model name
        dimensions: Output dimensionality (must match the vector column)
        cost_tracker: Optional tracker for token usage
    """

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        *,
        model: str | None = None,
        dimensions: int | None = None,
        cost_tracker: CostTracker | None = None,
    ):
        if model is None or dimensions is None:
            from mise.config import settings

            model = model or settings.embedding_model
            dimensions = dimensions or settings.embedding_dimensions
        self._client = client
        self.model = model
        self.dimensions = dimensions
        self.cost_tracker = cost_tracker

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            from mise.llm.client import get_raw_async_client

            self._client = get_raw_async_client()
        return self._client

    async def embed(self, text: str) -> list[float]:
        """
        Embed a piece of text.

        Raises:
            EmptyInputError: text is blank after trimming
        """
        if not text or not text.strip():
            raise EmptyInputError("Cannot generate embedding for empty text")

        vector = await self._create(text.strip())
        if len(vector) != self.dimensions:
            raise ValueError(
                f"Embedding backend returned {len(vector)} dimensions, expected {self.dimensions}"
            )
        return vector

    async def embed_recipe(self, recipe: Recipe) -> list[float]:
        return await self.embed(recipe_text(recipe))

    async def embed_preferences(self, bundle: PreferenceBundle) -> list[float]:
        text = preferences_text(bundle)
        logger.debug(f"Embeddings: preference text = {text!r}")
        return await self.embed(text)

    async def embed_replacement(
        self,
        original: Recipe,
        reason: str,
        bundle: PreferenceBundle | None = None,
    ) -> list[float]:
        return await self.embed(replacement_text(original, reason, bundle))

    async def _create(self, text: str) -> list[float]:
        response = await self.client.embeddings.create(
            model=self.model,
            input=text,
            dimensions=self.dimensions,
        )
        record_usage(self.cost_tracker, self.model, getattr(response, "usage", None), "embedding")
        return [float(v) for v in response.data[0].embedding]
