"""
Mise - Recipe Search.

Retrieval tiers over the recipe corpus, tried strictly in order:
1. Vector search on the preference embedding
2. Tag search on loved/liked cuisines (only if vector search found nothing)
3. Random sample (only if both found nothing)

Each tier is one awaited round-trip; later tiers never run when an
earlier one returned anything. An empty result is never an error.
"""

import logging
from typing import Sequence

from mise.db.adapter import RecipeCorpus, VectorFilters
from mise.embeddings import EmbeddingService
from mise.models import Candidate, PreferenceBundle, SearchTier

logger = logging.getLogger(__name__)

# Free-text lookups ("something with chickpeas") need a closer match
# than preference search, which is already scoped by the bundle.
QUERY_MIN_SIMILARITY = 0.6
QUERY_DEFAULT_LIMIT = 10


def tag_keywords(bundle: PreferenceBundle) -> list[str]:
    """Loved then liked cuisines, lowercase with spaces ("middle eastern")."""
    seen: set[str] = set()
    keywords: list[str] = []
    for cuisine in bundle.loved_cuisines() + bundle.liked_cuisines():
        if cuisine and cuisine not in seen:
            seen.add(cuisine)
            keywords.append(cuisine)
    return keywords


class RecipeSearch:
    """
    Tiered candidate retrieval.

    Args:
        corpus: Recipe store (vector, tag and random queries)
        embedder: Embedding service for preference and query text
    """

    def __init__(self, corpus: RecipeCorpus, embedder: EmbeddingService):
        self.corpus = corpus
        self.embedder = embedder

    async def vector_search(
        self,
        bundle: PreferenceBundle,
        limit: int,
        exclude_ids: Sequence[str] = (),
        min_similarity: float | None = None,
    ) -> list[Candidate]:
        vector = await self.embedder.embed_preferences(bundle)
        filters = VectorFilters(
            max_minutes=bundle.max_minutes,
            exclude_ids=list(exclude_ids),
            min_similarity=min_similarity,
        )
        return await self.corpus.query_by_vector(vector, limit, filters)

    async def tag_search(
        self,
        bundle: PreferenceBundle,
        limit: int,
        exclude_ids: Sequence[str] = (),
    ) -> list[Candidate]:
        keywords = tag_keywords(bundle)
        if not keywords:
            return []
        return await self.corpus.search_by_tags(keywords, limit, exclude_ids)

    async def random_search(
        self,
        count: int,
        exclude_ids: Sequence[str] = (),
    ) -> list[Candidate]:
        return await self.corpus.random_sample(count, exclude_ids)

    async def find_candidates(
        self,
        bundle: PreferenceBundle,
        limit: int,
        exclude_ids: Sequence[str] = (),
        min_similarity: float | None = None,
    ) -> tuple[list[Candidate], SearchTier]:
        """
        Run the tier chain until one returns candidates.

        Returns:
            (candidates, tier) where tier names the tier that produced
            them, or "none" if every tier came back empty.
        """
        if limit <= 0:
            return [], "none"

        candidates = await self.vector_search(bundle, limit, exclude_ids, min_similarity)
        logger.info(f"Search: vector search returned {len(candidates)} candidates (limit={limit})")
        if candidates:
            return candidates, "vector"

        if bundle.has_cuisine_affinities:
            candidates = await self.tag_search(bundle, limit, exclude_ids)
            logger.info(f"Search: tag fallback returned {len(candidates)} candidates")
            if candidates:
                return candidates, "tag"

        candidates = await self.random_search(limit, exclude_ids)
        logger.info(f"Search: random fallback returned {len(candidates)} candidates")
        if candidates:
            return candidates, "random"

        return [], "none"

    async def search_by_query(
        self,
        text: str,
        limit: int = QUERY_DEFAULT_LIMIT,
        exclude_ids: Sequence[str] = (),
        min_similarity: float = QUERY_MIN_SIMILARITY,
    ) -> list[Candidate]:
        """
        Free-text recipe lookup ("creamy tomato pasta").

        Raises:
            EmptyInputError: text is blank
        """
        vector = await self.embedder.embed(text)
        filters = VectorFilters(exclude_ids=list(exclude_ids), min_similarity=min_similarity)
        candidates = await self.corpus.query_by_vector(vector, limit, filters)
        # Stores without server-side thresholding still honour the cut-off
        candidates = [
            c.model_copy(update={"tier": "query"})
            for c in candidates
            if c.similarity >= min_similarity
        ]
        logger.info(f"Search: query {text.strip()!r} matched {len(candidates)} recipes")
        return candidates
