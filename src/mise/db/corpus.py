"""
Mise - Supabase Recipe Corpus.

Relational + pgvector recipe store. Vector, tag and random queries go
through Postgres functions (see migrations/001_recipe_retrieval.sql)
called with named parameters; exclusion lists travel as arrays and
are never spliced into SQL text.
"""

import logging
from typing import Sequence

from supabase import Client

from mise.db.adapter import RANDOM_SAMPLE_SIMILARITY, TAG_MATCH_SIMILARITY, VectorFilters
from mise.models import Candidate, Recipe, SearchTier, recipe_from_row, recipe_to_row, to_pgvector

logger = logging.getLogger(__name__)

TABLE = "recipes"

# Embedding column is left out of list reads
RECIPE_COLUMNS = (
    "id, user_id, title, description, servings, total_minutes, cuisine, "
    "tags, ingredients, steps, source, embedding_version, created_at"
)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _candidates(rows: list[dict] | None, tier: SearchTier, default: float | None = None) -> list[Candidate]:
    out: list[Candidate] = []
    for row in rows or []:
        similarity = default if default is not None else row.get("similarity", 0.0)
        out.append(Candidate(recipe=recipe_from_row(row), similarity=_clamp(similarity), tier=tier))
    return out


class SupabaseRecipeCorpus:
    """RecipeCorpus backed by a Supabase project."""

    def __init__(self, client: Client | None = None):
        if client is None:
            from mise.db.client import get_client

            client = get_client()
        self.client = client

    # ------------------------------------------------------------------
    # Row access
    # ------------------------------------------------------------------

    async def find_by_id(self, recipe_id: str) -> Recipe | None:
        result = self.client.table(TABLE).select(RECIPE_COLUMNS).eq("id", recipe_id).limit(1).execute()
        if not result.data:
            return None
        return recipe_from_row(result.data[0])

    async def find_many(
        self,
        *,
        ids: Sequence[str] | None = None,
        user_id: str | None = None,
        missing_embedding: bool = False,
        limit: int = 1000,
    ) -> list[Recipe]:
        query = self.client.table(TABLE).select(RECIPE_COLUMNS)

        if ids is not None:
            if not ids:
                return []
            query = query.in_("id", list(ids))
        if user_id:
            query = query.eq("user_id", user_id)
        if missing_embedding:
            query = query.is_("embedding", "null")

        result = query.order("created_at", desc=True).limit(limit).execute()
        return [recipe_from_row(row) for row in result.data or []]

    async def find_by_title(self, user_id: str, title: str) -> Recipe | None:
        result = (
            self.client.table(TABLE)
            .select(RECIPE_COLUMNS)
            .eq("user_id", user_id)
            .eq("title", title)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return recipe_from_row(result.data[0])

    async def create(self, recipe: Recipe) -> Recipe:
        result = self.client.table(TABLE).insert(recipe_to_row(recipe)).execute()
        return recipe_from_row(result.data[0])

    async def count(self) -> int:
        result = self.client.table(TABLE).select("id", count="exact").limit(0).execute()
        return int(result.count or 0)

    async def update_embedding(self, recipe_id: str, embedding: list[float], version: int) -> None:
        (
            self.client.table(TABLE)
            .update({"embedding": to_pgvector(embedding), "embedding_version": version})
            .eq("id", recipe_id)
            .execute()
        )

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    async def query_by_vector(
        self,
        vector: list[float],
        limit: int,
        filters: VectorFilters | None = None,
    ) -> list[Candidate]:
        """
        Nearest neighbours by cosine distance (match_recipes).

        Similarity is 1 - cosine distance, most similar first. Fewer
        than `limit` rows (or none) is a normal result.
        """
        if limit <= 0:
            return []
        filters = filters or VectorFilters()

        result = self.client.rpc(
            "match_recipes",
            {
                "query_embedding": vector,
                "match_count": int(limit),
                "max_minutes": filters.max_minutes,
                "exclude_ids": list(filters.exclude_ids),
                "min_similarity": filters.min_similarity,
            },
        ).execute()

        candidates = _candidates(result.data, "vector")
        logger.debug(f"Corpus: match_recipes returned {len(candidates)} rows (limit={limit})")
        return candidates

    async def search_by_tags(
        self,
        keywords: Sequence[str],
        limit: int,
        exclude_ids: Sequence[str] = (),
    ) -> list[Candidate]:
        keywords = [k.lower() for k in keywords if k and k.strip()]
        if not keywords or limit <= 0:
            return []

        result = self.client.rpc(
            "search_recipes_by_tags",
            {
                "keywords": keywords,
                "exclude_ids": list(exclude_ids),
                "match_count": int(limit),
            },
        ).execute()

        return _candidates(result.data, "tag", default=TAG_MATCH_SIMILARITY)

    async def random_sample(
        self,
        count: int,
        exclude_ids: Sequence[str] = (),
    ) -> list[Candidate]:
        if count <= 0:
            return []

        result = self.client.rpc(
            "random_recipes",
            {
                "sample_count": int(count),
                "exclude_ids": list(exclude_ids),
            },
        ).execute()

        return _candidates(result.data, "random", default=RANDOM_SAMPLE_SIMILARITY)
