"""
Mise - Embedding Backfill.

Embeds recipes whose vector is missing (or every recipe with force=True)
and stamps them with the current embedding version.

Recipes without a vector are invisible to vector search, so this runs
after bulk imports and picks up any generated recipe whose embedding
could not be stored at creation time.
"""

import logging
from dataclasses import dataclass, field

from mise.db.adapter import RecipeCorpus
from mise.embeddings import EmbeddingService

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 20
MAX_RECIPES_PER_RUN = 1000


@dataclass
class BackfillResult:
    """Outcome of one backfill run."""

    found: int = 0
    updated: int = 0
    failed_ids: list[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failed_ids)


async def backfill_embeddings(
    corpus: RecipeCorpus,
    embedder: EmbeddingService,
    batch_size: int = DEFAULT_BATCH_SIZE,
    force: bool = False,
    embedding_version: int | None = None,
) -> BackfillResult:
    """
    Compute and store missing recipe embeddings.

    A failure on one recipe is logged and counted; the run continues
    with the next one.

    Args:
        corpus: Recipe store
        embedder: Embedding service
        batch_size: Recipes per logged batch
        force: Re-embed every recipe, not only those without a vector
        embedding_version: Version to stamp (defaults to settings)
    """
    if embedding_version is None:
        from mise.config import settings

        embedding_version = settings.embedding_version

    recipes = await corpus.find_many(missing_embedding=not force, limit=MAX_RECIPES_PER_RUN)
    result = BackfillResult(found=len(recipes))

    if not recipes:
        logger.info("Backfill: no recipes need embeddings")
        return result

    logger.info(f"Backfill: embedding {len(recipes)} recipes (force={force})")
    batch_size = max(1, batch_size)

    for start in range(0, len(recipes), batch_size):
        batch = recipes[start:start + batch_size]
        for recipe in batch:
            try:
                vector = await embedder.embed_recipe(recipe)
                await corpus.update_embedding(recipe.id, vector, embedding_version)
                result.updated += 1
            except Exception as e:
                logger.warning(f"Backfill: failed to embed recipe {recipe.id} ('{recipe.title}'): {e}")
                result.failed_ids.append(str(recipe.id))

        logger.info(f"Backfill: processed batch {start // batch_size + 1} ({len(batch)} recipes)")

    logger.info(f"Backfill: updated {result.updated}, failed {result.failed}")
    return result
