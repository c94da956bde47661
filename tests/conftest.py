"""
Pytest configuration and fixtures for Mise tests.

In-memory stand-ins for the storage protocols, a deterministic
embedder and a scripted generator, so the planner can be exercised
without Supabase or OpenAI.
"""

import hashlib
import math
import os
import random
from datetime import datetime, timedelta, timezone
from typing import Sequence
from unittest.mock import MagicMock

import pytest

# Set test environment before importing mise modules
os.environ["MISE_ENV"] = "development"
os.environ.setdefault("OPENAI_API_KEY", "test-key-not-real")

from mise.db.adapter import RANDOM_SAMPLE_SIMILARITY, TAG_MATCH_SIMILARITY, VectorFilters
from mise.embeddings import EmbeddingService, cosine_similarity, recipe_text
from mise.models import Candidate, Ingredient, Recipe, RecipeSource

FAKE_DIMENSIONS = 64


def fake_vector(text: str, dimensions: int = FAKE_DIMENSIONS) -> list[float]:
    """Bag-of-words hashed into a fixed number of buckets, L2-normalized."""
    vector = [0.0] * dimensions
    for word in text.lower().replace(".", " ").replace(",", " ").split():
        bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % dimensions
        vector[bucket] += 1.0
    norm = math.sqrt(sum(v * v for v in vector)) or 1.0
    return [v / norm for v in vector]


def make_recipe(
    title: str,
    ingredients: Sequence[str] = ("salt", "olive oil"),
    *,
    id: str | None = None,
    tags: Sequence[str] = (),
    description: str | None = None,
    total_minutes: int | None = None,
    source: RecipeSource = RecipeSource.MANUAL,
) -> Recipe:
    return Recipe(
        id=id,
        title=title,
        description=description,
        total_minutes=total_minutes,
        tags=list(tags),
        ingredients=[Ingredient(name=name) for name in ingredients],
        source=source,
    )


# =============================================================================
# Fakes
# =============================================================================


class FakeEmbedder(EmbeddingService):
    """EmbeddingService with the network call replaced by fake_vector()."""

    def __init__(self, fail_for: Sequence[str] = ()):
        super().__init__(client=MagicMock(), model="fake-embedding", dimensions=FAKE_DIMENSIONS)
        self.texts: list[str] = []
        self.fail_for = set(fail_for)

    async def _create(self, text: str) -> list[float]:
        self.texts.append(text)
        if any(marker in text for marker in self.fail_for):
            raise ConnectionError("embedding backend unreachable")
        return fake_vector(text)


class InMemoryRecipeCorpus:
    """RecipeCorpus over a dict; vector search by brute-force cosine."""

    def __init__(self, recipes: Sequence[Recipe] = ()):
        self.recipes: dict[str, Recipe] = {}
        self.created: list[Recipe] = []
        self.embedding_updates: list[tuple[str, int]] = []
        self.calls: list[str] = []
        for recipe in recipes:
            self.add(recipe)

    def add(self, recipe: Recipe, embed: bool = True) -> Recipe:
        recipe_id = recipe.id or f"r{len(self.recipes) + 1}"
        update = {"id": recipe_id}
        if embed and recipe.embedding is None:
            update["embedding"] = fake_vector(recipe_text(recipe))
        stored = recipe.model_copy(update=update)
        self.recipes[recipe_id] = stored
        return stored

    async def find_by_id(self, recipe_id):
        return self.recipes.get(recipe_id)

    async def find_many(self, *, ids=None, user_id=None, missing_embedding=False, limit=1000):
        out = list(self.recipes.values())
        if ids is not None:
            out = [r for r in out if r.id in set(ids)]
        if user_id:
            out = [r for r in out if r.user_id == user_id]
        if missing_embedding:
            out = [r for r in out if r.embedding is None]
        return out[:limit]

    async def find_by_title(self, user_id, title):
        for recipe in self.recipes.values():
            if recipe.user_id == user_id and recipe.title == title:
                return recipe
        return None

    async def create(self, recipe):
        stored = recipe.model_copy(update={"id": f"gen-{len(self.created) + 1}"})
        self.recipes[stored.id] = stored
        self.created.append(stored)
        return stored

    async def count(self):
        return len(self.recipes)

    async def update_embedding(self, recipe_id, embedding, version):
        self.recipes[recipe_id] = self.recipes[recipe_id].model_copy(
            update={"embedding": embedding, "embedding_version": version}
        )
        self.embedding_updates.append((recipe_id, version))

    async def query_by_vector(self, vector, limit, filters=None):
        self.calls.append("vector")
        filters = filters or VectorFilters()
        excluded = set(filters.exclude_ids)
        scored = []
        for recipe in self.recipes.values():
            if recipe.embedding is None or recipe.id in excluded:
                continue
            if filters.max_minutes is not None and recipe.total_minutes is not None:
                if recipe.total_minutes > filters.max_minutes:
                    continue
            similarity = max(0.0, min(1.0, cosine_similarity(vector, recipe.embedding)))
            if filters.min_similarity is not None and similarity < filters.min_similarity:
                continue
            scored.append(Candidate(recipe=recipe, similarity=similarity, tier="vector"))
        scored.sort(key=lambda c: c.similarity, reverse=True)
        return scored[:limit]

    async def search_by_tags(self, keywords, limit, exclude_ids=()):
        self.calls.append("tag")
        excluded = set(exclude_ids)
        matches = [
            Candidate(recipe=r, similarity=TAG_MATCH_SIMILARITY, tier="tag")
            for r in reversed(list(self.recipes.values()))
            if r.id not in excluded
            and any(k.lower() in t.lower() for t in r.tags for k in keywords)
        ]
        return matches[:limit]

    async def random_sample(self, count, exclude_ids=()):
        self.calls.append("random")
        pool = [r for r in self.recipes.values() if r.id not in set(exclude_ids)]
        picked = random.sample(pool, min(count, len(pool)))
        return [Candidate(recipe=r, similarity=RANDOM_SAMPLE_SIMILARITY, tier="random") for r in picked]


class InMemoryUsageLog:
    """UsageLog with controllable timestamps."""

    def __init__(self):
        self.records: list[tuple[str, str, datetime]] = []
        self.recorded_batches: list[list[str]] = []
        self.queried_windows: list[int] = []

    def add(self, requester_id: str, recipe_id: str, days_ago: float) -> None:
        used_at = datetime.now(timezone.utc) - timedelta(days=days_ago)
        self.records.append((requester_id, recipe_id, used_at))

    async def record_usage(self, requester_id, recipe_ids):
        if not recipe_ids:
            return
        self.recorded_batches.append(list(recipe_ids))
        for rid in recipe_ids:
            self.add(requester_id, rid, 0)

    async def recently_used(self, requester_id, days):
        self.queried_windows.append(days)
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        ordered = sorted(self.records, key=lambda r: r[2], reverse=True)
        seen: list[str] = []
        for user, rid, used_at in ordered:
            if user == requester_id and used_at >= cutoff and rid not in seen:
                seen.append(rid)
        return seen


class ScriptedGenerator:
    """
    Generator stand-in.

    Returns scripted batches (lists of titles) in order; once the script
    runs out it invents uniquely titled recipes.
    """

    def __init__(self, batches: Sequence[Sequence[str]] = (), error: Exception | None = None):
        self.batches = [list(b) for b in batches]
        self.error = error
        self.calls: list[dict] = []
        self.replacement_calls: list[tuple[str, str]] = []
        self._counter = 0

    def _recipe(self, title: str) -> Recipe:
        self._counter += 1
        return make_recipe(
            title,
            ingredients=(f"ingredient {self._counter}a", f"ingredient {self._counter}b"),
            source=RecipeSource.GENERATED,
        )

    async def generate(self, bundle, inventory, count, avoid_titles=()):
        self.calls.append({"count": count, "inventory": list(inventory), "avoid_titles": list(avoid_titles)})
        if self.error is not None:
            raise self.error
        if self.batches:
            return [self._recipe(t) for t in self.batches.pop(0)]
        return [self._recipe(f"Generated Dish {self._counter + 1}") for _ in range(count)]

    async def generate_replacement(self, original, reason, bundle=None):
        self.replacement_calls.append((original.title, reason))
        if self.error is not None:
            raise self.error
        return self._recipe(f"Fresh Take on {original.title}")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def corpus():
    return InMemoryRecipeCorpus()


@pytest.fixture
def usage_log():
    return InMemoryUsageLog()


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def mock_supabase():
    """Mock Supabase client; query builders return themselves."""
    mock_client = MagicMock()

    mock_table = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "gte", "in_", "is_", "order", "limit"):
        getattr(mock_table, method).return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[], count=0)

    mock_client.table.return_value = mock_table
    mock_client.rpc.return_value = MagicMock(execute=MagicMock(return_value=MagicMock(data=[])))

    return mock_client
