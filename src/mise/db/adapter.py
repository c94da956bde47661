"""
Storage Protocols.

The planner depends only on these interfaces. The Supabase
implementations live in db/corpus.py and db/usage.py; tests use
in-memory fakes.

Concurrency control is the storage layer's job: corpus reads and usage
appends rely on the database's own atomic row operations.
"""

from typing import Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, Field

from mise.models import Candidate, Recipe


class VectorFilters(BaseModel):
    """
    Filters for a nearest-neighbour query.

    Recipes without an embedding are never returned. Recipes with no
    total_minutes always pass the time bound.
    """

    max_minutes: int | None = None
    exclude_ids: list[str] = Field(default_factory=list)
    min_similarity: float | None = None


@runtime_checkable
class RecipeCorpus(Protocol):
    """The persisted recipe collection (relational + vector)."""

    async def find_by_id(self, recipe_id: str) -> Recipe | None:
        ...

    async def find_many(
        self,
        *,
        ids: Sequence[str] | None = None,
        user_id: str | None = None,
        missing_embedding: bool = False,
        limit: int = 1000,
    ) -> list[Recipe]:
        ...

    async def find_by_title(self, user_id: str, title: str) -> Recipe | None:
        ...

    async def create(self, recipe: Recipe) -> Recipe:
        ...

    async def count(self) -> int:
        ...

    async def update_embedding(self, recipe_id: str, embedding: list[float], version: int) -> None:
        ...

    async def query_by_vector(
        self,
        vector: list[float],
        limit: int,
        filters: VectorFilters | None = None,
    ) -> list[Candidate]:
        """Nearest neighbours by cosine distance, most similar first."""
        ...

    async def search_by_tags(
        self,
        keywords: Sequence[str],
        limit: int,
        exclude_ids: Sequence[str] = (),
    ) -> list[Candidate]:
        """Recipes whose tags contain any keyword (case-insensitive), newest first."""
        ...

    async def random_sample(
        self,
        count: int,
        exclude_ids: Sequence[str] = (),
    ) -> list[Candidate]:
        ...


@runtime_checkable
class UsageLog(Protocol):
    """Append-only log of recipes served to each requester."""

    async def record_usage(self, requester_id: str, recipe_ids: Sequence[str]) -> None:
        ...

    async def recently_used(self, requester_id: str, days: int) -> list[str]:
        ...


# Placeholder scores for tiers that compute no real similarity.
# Only meaningful as "ranks above random"; not comparable to vector scores.
TAG_MATCH_SIMILARITY = 0.8
RANDOM_SAMPLE_SIMILARITY = 0.5
